"""Generic structured-value <-> XML fragment codec.

Values are written with self-describing tags, e.g. `<int>5</int>` or
`<list><string>a</string></list>`. Enums and dataclasses need the declared
type to come back; field types are taken from the dataclass annotations.
"""
from __future__ import annotations
import base64, binascii, dataclasses, typing
import xml.etree.ElementTree as ET
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from .document import parse_fragment
from .errors import DeserializationError, DocumentError, SerializationError


def type_name(tp) -> str:
	return getattr(tp, '__qualname__', None) or repr(tp)


def _leaf(tag: str, text: str, **attrs) -> ET.Element:
	el = ET.Element(tag, attrs)
	el.text = text
	return el

def to_element(value: Any) -> ET.Element:
	if value is None:
		return ET.Element('null')
	if isinstance(value, bool):
		return _leaf('boolean', 'true' if value else 'false')
	if isinstance(value, Enum):
		return _leaf('enum', value.name, type=type(value).__name__)
	if isinstance(value, int):
		return _leaf('int', str(value))
	if isinstance(value, float):
		return _leaf('double', repr(value))
	if isinstance(value, Decimal):
		return _leaf('decimal', str(value))
	if isinstance(value, str):
		return _leaf('string', value)
	if isinstance(value, (bytes, bytearray)):
		return _leaf('base64Binary', base64.b64encode(bytes(value)).decode('ascii'))
	if isinstance(value, datetime):
		return _leaf('dateTime', value.isoformat())
	if isinstance(value, date):
		return _leaf('date', value.isoformat())
	if dataclasses.is_dataclass(value) and not isinstance(value, type):
		el = ET.Element('object', type=type(value).__name__)
		for f in dataclasses.fields(value):
			fel = ET.SubElement(el, 'field', name=f.name)
			fel.append(to_element(getattr(value, f.name)))
		return el
	if isinstance(value, (list, tuple, set, frozenset)):
		tag = 'list' if isinstance(value, list) else 'tuple' if isinstance(value, tuple) else 'set'
		el = ET.Element(tag)
		items = sorted(value, key=repr) if tag == 'set' else value
		el.extend(to_element(v) for v in items)
		return el
	if isinstance(value, dict):
		el = ET.Element('dict')
		for k, v in value.items():
			entry = ET.SubElement(el, 'entry')
			entry.append(to_element(k))
			entry.append(to_element(v))
		return el
	raise SerializationError(f"Cannot serialize type {type_name(type(value))}", type_name=type_name(type(value)))

def serialize_value(value: Any) -> str:
	# a bare \r in text is read back as \n
	return ET.tostring(to_element(value), encoding='unicode').replace('\r', '&#13;')


def _unwrap_optional(hint):
	if typing.get_origin(hint) is typing.Union:
		args = [a for a in typing.get_args(hint) if a is not type(None)]
		return args[0] if len(args) == 1 else None
	return hint

def _args(hint, n: int):
	args = typing.get_args(hint) if hint is not None else ()
	return args if len(args) == n else (None,) * n

def _children(el: ET.Element, n: int):
	kids = list(el)
	if len(kids) != n:
		raise ValueError(f"<{el.tag}> expects {n} child element(s), got {len(kids)}")
	return kids

def from_element(el: ET.Element, hint=None) -> Any:
	hint = _unwrap_optional(hint)
	tag, text = el.tag, el.text or ''
	if tag == 'null':
		return None
	if tag == 'string':
		return text
	if tag == 'int':
		return int(text)
	if tag == 'double':
		return float(text)
	if tag == 'decimal':
		try:
			return Decimal(text)
		except InvalidOperation as e:
			raise ValueError(f"Invalid decimal {text!r}") from e
	if tag == 'boolean':
		if text not in ('true', 'false'):
			raise ValueError(f"Invalid boolean {text!r}")
		return text == 'true'
	if tag == 'base64Binary':
		raw = base64.b64decode(text, validate=True)
		return bytearray(raw) if hint is bytearray else raw
	if tag == 'dateTime':
		return datetime.fromisoformat(text)
	if tag == 'date':
		return date.fromisoformat(text)
	if tag == 'enum':
		if not (isinstance(hint, type) and issubclass(hint, Enum)):
			raise TypeError(f"Enum value {el.get('type')}.{text} needs an Enum target type")
		return hint[text]
	if tag in ('list', 'tuple', 'set'):
		origin = typing.get_origin(hint)
		args = typing.get_args(hint) if hint is not None else ()
		if origin is tuple and args and args[-1] is not Ellipsis:
			kids = _children(el, len(args))
			return tuple(from_element(k, a) for k, a in zip(kids, args))
		item_hint = args[0] if args else None
		items = [from_element(k, item_hint) for k in el]
		return {'list': list, 'tuple': tuple, 'set': set}[tag](items)
	if tag == 'dict':
		key_hint, val_hint = _args(hint, 2)
		out = {}
		for entry in el:
			k, v = _children(entry, 2)
			out[from_element(k, key_hint)] = from_element(v, val_hint)
		return out
	if tag == 'object':
		if not (isinstance(hint, type) and dataclasses.is_dataclass(hint)):
			raise TypeError(f"Object of type {el.get('type')} needs a dataclass target type")
		hints = typing.get_type_hints(hint)
		kwargs = {}
		for fel in el:
			name = fel.get('name')
			(child,) = _children(fel, 1)
			kwargs[name] = from_element(child, hints.get(name))
		return hint(**kwargs)
	raise ValueError(f"Unknown value tag <{tag}>")


def _conforms(value, target) -> bool:
	target = _unwrap_optional(target)
	if value is None or target is None or target is Any:
		return True
	origin = typing.get_origin(target) or target
	if not isinstance(origin, type):
		return True
	return isinstance(value, origin)

def deserialize_value(payload: str, target=None, key: Optional[str] = None) -> Any:
	"""Decode a payload produced by `serialize_value` into `target`."""
	name = type_name(target) if target is not None else None
	try:
		wrapper = parse_fragment(payload)
		if (wrapper.text or '').strip():
			raise ValueError("Unexpected text outside the value element")
		(el,) = _children(wrapper, 1)
		value = from_element(el, target)
	except (DocumentError, ValueError, TypeError, KeyError, binascii.Error) as e:
		raise DeserializationError(f"Cannot deserialize {name or 'value'} from xml: {payload!r}", key, name) from e
	if target is float and isinstance(value, int) and not isinstance(value, bool):
		value = float(value)
	if not _conforms(value, target):
		raise DeserializationError(
			f"Deserialized {type_name(type(value))} does not match declared type {name}", key, name)
	return value
