"""Base class for typed settings sets.

A subclass lists its settings explicitly and may add properties on top:

	class AppSettings(Settings):
		version = Version(1, 2, 0, 0)
		schema = SettingsSchema([
			SettingItem("Theme", str, default="light"),
			SettingItem("RecentFiles", list, default=[]),
		])

		@property
		def theme(self) -> str:
			return self["Theme"]

Values live in a plain dict keyed by setting key; the storage reads and
writes them on load()/save().
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from .document import Entry
from .errors import ConfigurationError
from .schema import MISSING, SettingsSchema
from .storage import SettingsStorage
from .version import Version

log = logging.getLogger(__name__)


class Settings:
	schema: SettingsSchema = SettingsSchema()
	version: Version = Version(1, 0, 0, 0)

	def __init__(self, storage: Optional[SettingsStorage] = None, version: Optional[Version] = None):
		self.storage = storage
		if version is not None:
			self.version = version
		self._values: Dict[str, Any] = self.schema.initial_values()
		self._unrecognized: Tuple[Entry, ...] = ()
		self.file_version: Optional[Version] = None
		self._loaded: List[Callable] = []
		self._saved: List[Callable] = []
		self._changed: List[Callable] = []

	# --- live values ---

	def _check_key(self, key: str):
		if key not in self.schema:
			raise KeyError(f"Unknown setting: {key!r}")

	def __getitem__(self, key: str) -> Any:
		self._check_key(key)
		return self._values.get(key)

	def __setitem__(self, key: str, value: Any) -> None:
		self._check_key(key)
		old = self._values.get(key, MISSING)
		self._values[key] = value
		if old is MISSING or old != value:
			for cb in self._changed:
				cb(self, key)

	def __contains__(self, key) -> bool:
		return key in self._values

	def keys(self):
		return list(self.schema)

	def snapshot(self) -> Dict[str, Any]:
		return dict(self._values)

	@property
	def unrecognized(self) -> Tuple[Entry, ...]:
		"""Entries from the last load/save that this schema does not know."""
		return self._unrecognized

	# --- storage round trips ---

	def _require_storage(self) -> SettingsStorage:
		if self.storage is None:
			raise ConfigurationError("Settings object has no storage attached")
		return self.storage

	def load(self) -> bool:
		loaded = self._require_storage().load(self)
		for cb in self._loaded:
			cb(self)
		return loaded

	def save(self) -> None:
		self._require_storage().save(self)
		for cb in self._saved:
			cb(self)

	def _apply_loaded(self, values: Dict[str, Any], unrecognized: Tuple[Entry, ...], file_version: Version):
		self._values.update(values)
		self._unrecognized = tuple(unrecognized)
		self.file_version = file_version

	def _apply_saved(self, unrecognized: Tuple[Entry, ...]):
		self._unrecognized = tuple(unrecognized)

	# --- listeners ---

	def on_loaded(self, cb: Callable[['Settings'], None]):
		self._loaded.append(cb)
		return cb

	def on_saved(self, cb: Callable[['Settings'], None]):
		self._saved.append(cb)
		return cb

	def on_changed(self, cb: Callable[['Settings', str], None]):
		self._changed.append(cb)
		return cb

	def close(self):
		if self.storage is not None:
			self.storage.close()

	def __enter__(self):
		return self

	def __exit__(self, *exc):
		self.close()
		return False
