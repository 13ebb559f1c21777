"""setvault - versioned, optionally encrypted XML settings files.

Typical use:

	storage = open_storage("app.settings", password="secret-pass")
	settings = AppSettings(storage)
	if storage.exists:
		settings.load()
	settings["Theme"] = "dark"
	settings.save()
"""
from .lib.document import DocumentBuilder, Entry, SettingsDocument
from .lib.envelope import FileEncryptor
from .lib.errors import (
	SettingsError, ConfigurationError, StorageError, NotFoundError, SizeLimitError, FormatError,
	CryptoError, DocumentError, VersionError, ConcurrencyError, SerializationError,
	DeserializationError, InvariantError,
)
from .lib.guard import MutualExclusionGuard
from .lib.schema import MISSING, SettingItem, SettingsSchema
from .lib.settings import Settings
from .lib.storage import EncryptedSettingsStorage, PlainSettingsStorage, SettingsStorage, open_storage
from .lib.version import Version

__version__ = "1.0.0"

__all__ = [
	'DocumentBuilder', 'Entry', 'SettingsDocument', 'FileEncryptor',
	'SettingsError', 'ConfigurationError', 'StorageError', 'NotFoundError', 'SizeLimitError', 'FormatError',
	'CryptoError', 'DocumentError', 'VersionError', 'ConcurrencyError', 'SerializationError',
	'DeserializationError', 'InvariantError', 'MutualExclusionGuard', 'MISSING', 'SettingItem',
	'SettingsSchema', 'Settings', 'EncryptedSettingsStorage', 'PlainSettingsStorage', 'SettingsStorage',
	'open_storage', 'Version',
]
