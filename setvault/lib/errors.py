"""Error hierarchy for setvault.

Every failure surfaces as a `SettingsError` subclass; callers can catch the
base class or pick the precise condition.
"""
from __future__ import annotations


class SettingsError(Exception):
	"""Base error for all setvault exceptions."""

	code = "SETTINGS_ERROR"

	def __init__(self, message: str, details: dict | None = None):
		self.message = message
		self.details = details or {}
		super().__init__(message)

	def to_dict(self) -> dict:
		return {"error": self.code, "message": self.message, "details": self.details}


class ConfigurationError(SettingsError):
	"""Encryptor unusable: password too short or already closed."""

	code = "CONFIGURATION"


# Storage errors
class StorageError(SettingsError):
	code = "STORAGE"


class NotFoundError(StorageError):
	code = "NOT_FOUND"

	def __init__(self, message: str, path=None):
		super().__init__(message, {"path": str(path) if path is not None else None})
		self.path = path


class SizeLimitError(StorageError):
	code = "SIZE_LIMIT"

	def __init__(self, message: str, size: int = 0, limit: int = 0):
		super().__init__(message, {"size": size, "limit": limit})
		self.size = size
		self.limit = limit


class FormatError(StorageError):
	"""File does not carry the envelope signature (plain XML, most likely)."""

	code = "FORMAT"


class CryptoError(SettingsError):
	"""Decryption failed. Wrong password and corruption look the same."""

	code = "CRYPTO"


class DocumentError(SettingsError):
	"""Plain settings document could not be parsed."""

	code = "DOCUMENT"


class VersionError(SettingsError):
	code = "VERSION"

	def __init__(self, message: str, current=None, found=None):
		super().__init__(message, {
			"current": str(current) if current is not None else None,
			"found": str(found) if found is not None else None,
		})
		self.current = current
		self.found = found


class ConcurrencyError(SettingsError):
	"""The store guard could not be acquired in time."""

	code = "BUSY"

	def __init__(self, message: str, timeout: float = 0.0):
		super().__init__(message, {"timeout": timeout})
		self.timeout = timeout


# Codec errors
class SerializationError(SettingsError):
	code = "SERIALIZATION"

	def __init__(self, message: str, key: str | None = None, type_name: str | None = None):
		super().__init__(message, {"key": key, "type": type_name})
		self.key = key
		self.type_name = type_name


class DeserializationError(SerializationError):
	code = "DESERIALIZATION"


class InvariantError(SettingsError, AssertionError):
	"""Programming error while building a document (e.g. duplicate key)."""

	code = "INVARIANT"
