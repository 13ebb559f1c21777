"""Settings storage: guarded, versioned load/save of settings documents.

Two flavours share the merge/versioning logic:
- PlainSettingsStorage: raw UTF-8 XML file.
- EncryptedSettingsStorage: XML inside the signature + AES-CBC envelope.
  A file without the envelope signature is read as plain XML, so an old
  unencrypted file gets encrypted on its next save.

Every load/save holds the store guard for the whole operation. Saves
rewrite the file in full; a crash mid-write can leave a truncated file.
"""
from __future__ import annotations
import logging, shutil
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, TYPE_CHECKING
from config.settings import LOCK_TIMEOUT, LEGACY_ZERO_VERSION, MAX_FILE_SIZE
from .document import DocumentBuilder, Entry, SettingsDocument
from .envelope import FileEncryptor
from .errors import (
	CryptoError, DocumentError, FormatError, NotFoundError,
	SizeLimitError, VersionError,
)
from .guard import MutualExclusionGuard
from .version import Version

if TYPE_CHECKING:  # pragma: no cover
	from .settings import Settings

log = logging.getLogger(__name__)

MigrationHook = Callable[[SettingsDocument, Version, Version], Optional[SettingsDocument]]


class SettingsStorage:
	"""Base class; subclasses supply `_load_document` and `_commit_bytes`."""

	def __init__(self, path, migration_hook: MigrationHook | None = None,
				lock_timeout: float = LOCK_TIMEOUT, legacy_zero_version: bool = LEGACY_ZERO_VERSION,
				max_file_size: int = MAX_FILE_SIZE):
		self.path = Path(path)
		self.migration_hook = migration_hook
		self.legacy_zero_version = legacy_zero_version
		self.max_file_size = max_file_size
		self.guard = MutualExclusionGuard(lock_timeout)

	@property
	def exists(self) -> bool:
		return self.path.is_file()

	# --- subclass I/O ---

	def _check_usable(self) -> None:
		pass

	def _load_document(self) -> SettingsDocument:
		raise NotImplementedError

	def _commit_bytes(self, data: bytes) -> None:
		raise NotImplementedError

	def _read_plain_bytes(self) -> bytes:
		if not self.path.is_file():
			raise NotFoundError(f"Settings file not found: {self.path}", self.path)
		size = self.path.stat().st_size
		if size > self.max_file_size:
			raise SizeLimitError(f"File too large: {size} bytes (limit {self.max_file_size})", size, self.max_file_size)
		return self.path.read_bytes()

	def _write_plain_bytes(self, data: bytes) -> None:
		self.path.parent.mkdir(parents=True, exist_ok=True)
		with open(self.path, 'wb') as f:
			f.write(data)

	# --- raw document access ---

	def read_document(self) -> SettingsDocument:
		"""Read the stored document as-is (no version check, no migration)."""
		with self.guard.hold("read"):
			self._check_usable()
			return self._load_document()

	def write_document(self, document: SettingsDocument) -> None:
		"""Overwrite the stored document."""
		with self.guard.hold("write"):
			self._check_usable()
			self._commit_bytes(document.to_bytes())

	def backup(self, dest) -> Path:
		dest = Path(dest)
		with self.guard.hold("back up"):
			if not self.exists:
				raise NotFoundError(f"Settings file not found: {self.path}", self.path)
			dest.parent.mkdir(parents=True, exist_ok=True)
			shutil.copy2(self.path, dest)
		log.info("Settings backed up to: %s", dest)
		return dest

	# --- load ---

	def _resolve_version(self, document: SettingsDocument, current: Version) -> Tuple[SettingsDocument, Version]:
		found = document.version
		if found is None:
			raise VersionError("Settings file has no version attribute", current)
		if self.legacy_zero_version and found.is_zero:
			found = current
		if found == current:
			return document, found
		if self.migration_hook is None:
			raise VersionError(f"The settings file version is not supported: {found}. Should be: {current}", current, found)
		log.info("Migrating settings %s from %s to %s", self.path, found, current)
		migrated = self.migration_hook(document, current, found)
		if migrated is None:
			raise VersionError("Cannot load settings, because they were not updated properly", current, found)
		return migrated, found

	def load(self, settings: 'Settings') -> bool:
		"""Load stored values into `settings`; False when there was nothing to load."""
		with self.guard.hold("load"):
			self._check_usable()
			document = self._load_document()
			if document.is_empty:
				log.info("No settings to load from %s", self.path)
				return False
			document, found = self._resolve_version(document, settings.version)
			recognized, unrecognized = document.partition(settings.schema)
			values: Dict[str, object] = {}
			for key, item in settings.schema.items():
				entry = recognized.get(key)
				if entry is None:
					if item.has_default:
						values[key] = item.initial_value()
				elif entry.is_null:
					values[key] = None
				else:
					values[key] = item.deserialize(entry.payload)
			settings._apply_loaded(values, unrecognized, found)
		log.debug("Loaded %d settings (%d unrecognized) from %s", len(recognized), len(unrecognized), self.path)
		return True

	# --- save ---

	def build_document(self, settings: 'Settings') -> Tuple[SettingsDocument, Tuple[Entry, ...]]:
		"""Build the document a save would write, plus the unknown entries it
		carries. Caller holds the guard."""
		root_tag = None
		if self.exists:
			existing = self._load_document()
			_, unrecognized = existing.partition(settings.schema)
			root_tag = existing.root_tag
		else:
			unrecognized = settings.unrecognized
		builder = DocumentBuilder(settings.version, root_tag)
		for key, item in settings.schema.items():
			if key in settings:
				builder.add(Entry(key, item.serialize(settings[key])))
		builder.extend(unrecognized)
		return builder.build(), unrecognized

	def save(self, settings: 'Settings') -> SettingsDocument:
		with self.guard.hold("save"):
			self._check_usable()
			document, unrecognized = self.build_document(settings)
			self._commit_bytes(document.to_bytes())
			settings._apply_saved(unrecognized)
		log.info("Settings saved -> %s", self.path)
		return document

	def close(self) -> None:
		pass

	def __enter__(self):
		return self

	def __exit__(self, *exc):
		self.close()
		return False


class PlainSettingsStorage(SettingsStorage):

	def _load_document(self) -> SettingsDocument:
		return SettingsDocument.from_bytes(self._read_plain_bytes())

	def _commit_bytes(self, data: bytes) -> None:
		self._write_plain_bytes(data)


class EncryptedSettingsStorage(SettingsStorage):
	"""Encrypted XML storage. A short password disables it (ConfigurationError)."""

	def __init__(self, path, password: str, **options):
		super().__init__(path, **options)
		self.encryptor = FileEncryptor(password, self.max_file_size)

	@property
	def disabled(self) -> bool:
		return self.encryptor.disabled

	def _load_document(self) -> SettingsDocument:
		try:
			data = self.encryptor.read_bytes(self.path)
		except FormatError:
			log.info("%s is not encrypted; reading it as plain XML", self.path)
			return SettingsDocument.from_bytes(self._read_plain_bytes())
		try:
			return SettingsDocument.from_bytes(data)
		except DocumentError as e:
			raise CryptoError("Decrypted settings are unreadable (wrong password or corrupted file)") from e

	def _check_usable(self) -> None:
		self.encryptor.ensure_usable()

	def _commit_bytes(self, data: bytes) -> None:
		self.encryptor.ensure_usable()
		self.path.parent.mkdir(parents=True, exist_ok=True)
		self.encryptor.write(data, self.path)

	def close(self) -> None:
		self.encryptor.close()


def open_storage(path, password: str | None = None, **options) -> SettingsStorage:
	"""Plain storage without a password, encrypted storage otherwise."""
	if not password:
		return PlainSettingsStorage(path, **options)
	return EncryptedSettingsStorage(path, password, **options)
