"""Settings schema: the explicit list of keys a settings type understands."""
from __future__ import annotations
import copy
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Optional
from .document import parse_fragment
from .errors import SerializationError, DeserializationError
from .xml_codec import serialize_value, deserialize_value, type_name


class _Missing:
	def __repr__(self):
		return 'MISSING'

	def __bool__(self):
		return False

MISSING: Any = _Missing()


@dataclass(frozen=True)
class SettingItem:
	"""One setting: key, declared type and optional (de)serializer hooks.

	`serializer` turns a value into an XML fragment (None writes a null
	marker); `deserializer` does the reverse. Without hooks the generic
	codec in `xml_codec` is used.
	"""
	key: str
	type: Any = object
	serializer: Optional[Callable[[Any], Optional[str]]] = None
	deserializer: Optional[Callable[[str], Any]] = None
	default: Any = MISSING

	def __post_init__(self):
		if not isinstance(self.key, str) or not self.key:
			raise ValueError("Setting key must be a non-empty string")

	@property
	def has_default(self) -> bool:
		return self.default is not MISSING

	def initial_value(self):
		return copy.deepcopy(self.default) if self.has_default else None

	def serialize(self, value) -> Optional[str]:
		if value is None:
			return None
		name = type_name(self.type)
		try:
			out = serialize_value(value) if self.serializer is None else self.serializer(value)
			if out is None:
				return None
			out = str(out)
			parse_fragment(out)
			return out
		except SerializationError as e:
			raise SerializationError(f"Cannot serialize setting '{self.key}' of type {name}: {e.message}", self.key, name) from e
		except Exception as e:
			raise SerializationError(f"Cannot serialize setting '{self.key}' of type {name}: {e}", self.key, name) from e

	def deserialize(self, payload: str):
		if self.deserializer is None:
			return deserialize_value(payload, self.type, key=self.key)
		try:
			return self.deserializer(payload)
		except Exception as e:
			name = type_name(self.type)
			raise DeserializationError(
				f"Cannot deserialize setting '{self.key}' of type {name} from xml: {payload!r}", self.key, name) from e


class SettingsSchema(Mapping):
	"""Immutable key -> SettingItem mapping, in declaration order."""

	def __init__(self, items: Iterable[SettingItem] = ()):
		entries: Dict[str, SettingItem] = {}
		for item in items:
			if item.key in entries:
				raise ValueError(f"Duplicate setting key: {item.key}")
			entries[item.key] = item
		self._items = MappingProxyType(entries)

	def __getitem__(self, key: str) -> SettingItem:
		return self._items[key]

	def __iter__(self):
		return iter(self._items)

	def __len__(self) -> int:
		return len(self._items)

	def __repr__(self) -> str:
		return f"SettingsSchema({list(self._items)})"

	def initial_values(self) -> Dict[str, Any]:
		return {k: item.initial_value() for k, item in self._items.items()}
