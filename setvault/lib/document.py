"""Settings document model.

A document is an immutable value: a version string plus an ordered tuple of
entries. On disk it is

	<Settings version="1.0.0.0">
		<item key="Name">...serialized value...</item>
		<item key="Empty" IsNull="true" />
	</Settings>

Entry payloads are kept as inner-XML strings and are only interpreted by the
value codec. A payload is kept as the exact source text of the item when that
text stands on its own, so entries nobody recognizes are written back as they
were read.
"""
from __future__ import annotations
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
from xml.parsers import expat
from xml.sax.saxutils import escape
from config.settings import ROOT_ELEMENT, ITEM_ELEMENT
from .errors import DocumentError, InvariantError
from .version import Version

log = logging.getLogger(__name__)

KEY_ATTR = "key"
NULL_ATTR = "IsNull"
VERSION_ATTR = "version"
XML_DECLARATION = "<?xml version='1.0' encoding='utf-8'?>\n"

# a bare \r in text is read back as \n
TEXT_ENTITIES = {'\r': '&#13;'}
ATTR_ENTITIES = {'"': '&quot;', '\r': '&#13;', '\n': '&#10;', '\t': '&#9;'}


def inner_xml(el: ET.Element) -> str:
	"""Re-serialize the content of `el`; namespaces are declared where used."""
	children = ''.join(ET.tostring(c, encoding='unicode') for c in el)
	return escape(el.text or '', TEXT_ENTITIES) + children.replace('\r', '&#13;')

def parse_fragment(payload: str) -> ET.Element:
	"""Parse an inner-XML string into a wrapper element holding it."""
	try:
		return ET.fromstring(f"<{ITEM_ELEMENT}>{payload}</{ITEM_ELEMENT}>")
	except ET.ParseError as e:
		raise DocumentError(f"Invalid XML fragment: {e}") from e

def _attr(value: str) -> str:
	return '"' + escape(value, ATTR_ENTITIES) + '"'

def _same_content(source: str, el: ET.Element) -> bool:
	try:
		wrapper = parse_fragment(source)
	except DocumentError:
		return False
	if (wrapper.text or '') != (el.text or ''):
		return False
	return [ET.tostring(c) for c in wrapper] == [ET.tostring(c) for c in el]

def _tag_end(data: bytes, start: int) -> int:
	"""Offset just past the '>' closing the tag that opens at `start`."""
	quote = None
	for i in range(start, len(data)):
		c = data[i]
		if quote is not None:
			if c == quote:
				quote = None
		elif c in b'"\'':
			quote = c
		elif c == 0x3e:
			return i + 1
	raise DocumentError("Unterminated tag in settings document")

def _scan_items(data: bytes) -> List[Tuple[Dict[str, str], Optional[str]]]:
	"""Raw attributes and raw inner source of every element under the root."""
	parser = expat.ParserCreate()
	found, state = [], {'depth': 0, 'open': 0, 'attrs': {}}

	def start(name, attrs):
		state['depth'] += 1
		if state['depth'] == 2:
			state['open'], state['attrs'] = parser.CurrentByteIndex, attrs

	def end(name):
		if state['depth'] == 2:
			body = _tag_end(data, state['open'])
			raw = b'' if data[body - 2:body] == b'/>' else data[body:parser.CurrentByteIndex]
			try:
				source = raw.decode('utf-8')
			except UnicodeDecodeError:
				source = None
			found.append((state['attrs'], source))
		state['depth'] -= 1

	parser.StartElementHandler, parser.EndElementHandler = start, end
	try:
		parser.Parse(data, True)
	except expat.ExpatError as e:
		raise DocumentError(f"Settings document is not valid XML: {e}") from e
	return found


@dataclass(frozen=True)
class Entry:
	key: str
	payload: Optional[str]  # None is the null marker
	attributes: Tuple[Tuple[str, str], ...] = ()

	@property
	def is_null(self) -> bool:
		return self.payload is None

	@classmethod
	def from_element(cls, el: ET.Element, raw_attrs: Optional[Dict[str, str]] = None,
			source: Optional[str] = None) -> 'Entry':
		attrs = el.attrib if raw_attrs is None else raw_attrs
		extra = tuple((k, v) for k, v in attrs.items() if k not in (KEY_ATTR, NULL_ATTR))
		if el.get(NULL_ATTR) == "true":
			return cls(el.get(KEY_ATTR), None, extra)
		if source is not None and _same_content(source, el):
			return cls(el.get(KEY_ATTR), source, extra)
		return cls(el.get(KEY_ATTR), inner_xml(el), extra)

	def to_xml(self) -> str:
		"""Render as an <item> element; the payload is written verbatim."""
		attrs = ''.join(f' {k}={_attr(v)}' for k, v in ((KEY_ATTR, self.key),) + self.attributes)
		if self.payload is None:
			return f'<{ITEM_ELEMENT}{attrs} {NULL_ATTR}="true" />'
		parse_fragment(self.payload)
		return f'<{ITEM_ELEMENT}{attrs}>{self.payload}</{ITEM_ELEMENT}>'


@dataclass(frozen=True)
class SettingsDocument:
	version_text: Optional[str] = None
	entries: Tuple[Entry, ...] = ()
	root_tag: Optional[str] = ROOT_ELEMENT  # None: no root element at all

	@classmethod
	def new(cls, version: Version, entries: Iterable[Entry] = ()) -> 'SettingsDocument':
		return cls(str(version), tuple(entries))

	@property
	def version(self) -> Optional[Version]:
		"""Parsed version; None when the attribute is absent."""
		if self.version_text is None:
			return None
		return Version.parse(self.version_text)

	@property
	def is_empty(self) -> bool:
		return not self.entries

	def __len__(self) -> int:
		return len(self.entries)

	def __iter__(self) -> Iterator[Entry]:
		return iter(self.entries)

	def __contains__(self, key) -> bool:
		return self.get(key) is not None

	def keys(self):
		return [e.key for e in self.entries]

	def get(self, key: str) -> Optional[Entry]:
		for e in self.entries:
			if e.key == key:
				return e
		return None

	# --- functional updates (handy inside migration hooks) ---

	def with_version(self, version: Version) -> 'SettingsDocument':
		return replace(self, version_text=str(version), root_tag=self.root_tag or ROOT_ELEMENT)

	def with_entry(self, entry: Entry) -> 'SettingsDocument':
		"""Replace the entry with the same key in place, or append it."""
		if entry.key in self:
			entries = tuple(entry if e.key == entry.key else e for e in self.entries)
		else:
			entries = self.entries + (entry,)
		return replace(self, entries=entries, root_tag=self.root_tag or ROOT_ELEMENT)

	def without(self, key: str) -> 'SettingsDocument':
		return replace(self, entries=tuple(e for e in self.entries if e.key != key))

	def renamed(self, old: str, new: str) -> 'SettingsDocument':
		if new in self:
			raise InvariantError(f"Cannot rename '{old}': '{new}' already exists")
		return replace(self, entries=tuple(replace(e, key=new) if e.key == old else e for e in self.entries))

	def partition(self, known_keys) -> Tuple[Dict[str, Entry], Tuple[Entry, ...]]:
		"""Split into ({key: entry} for known keys, tuple of unknown entries)."""
		recognized, unrecognized = {}, []
		for e in self.entries:
			if e.key in known_keys:
				recognized[e.key] = e
			else:
				unrecognized.append(e)
		return recognized, tuple(unrecognized)

	# --- (de)serialization ---

	@classmethod
	def from_bytes(cls, data: bytes) -> 'SettingsDocument':
		if not data or not data.replace(b"\xef\xbb\xbf", b"", 1).strip(b" \t\r\n\0"):
			return cls(None, (), None)
		try:
			root = ET.fromstring(data)
		except ET.ParseError as e:
			raise DocumentError(f"Settings document is not valid XML: {e}") from e
		entries, seen = [], set()
		for el, (raw_attrs, source) in zip(root, _scan_items(data)):
			if el.tag != ITEM_ELEMENT or el.get(KEY_ATTR) is None:
				log.debug("Skipping non-item node <%s>", el.tag)
				continue
			key = el.get(KEY_ATTR)
			if key in seen:
				raise DocumentError(f"Duplicate item key in settings document: {key!r}")
			seen.add(key)
			entries.append(Entry.from_element(el, raw_attrs, source))
		return cls(root.get(VERSION_ATTR), tuple(entries), root.tag.rpartition('}')[2])

	def to_xml(self) -> str:
		root = self.root_tag or ROOT_ELEMENT
		version = '' if self.version_text is None else f' {VERSION_ATTR}={_attr(self.version_text)}'
		if not self.entries:
			return f'<{root}{version} />'
		return f"<{root}{version}>{''.join(e.to_xml() for e in self.entries)}</{root}>"

	def to_bytes(self) -> bytes:
		return (XML_DECLARATION + self.to_xml()).encode('utf-8')


class DocumentBuilder:
	"""Accumulates entries for a save; a repeated key is a programming error."""

	def __init__(self, version: Version, root_tag: Optional[str] = None):
		self.version = version
		self.root_tag = root_tag or ROOT_ELEMENT
		self._entries: Dict[str, Entry] = {}

	def add(self, entry: Entry) -> None:
		if entry.key in self._entries:
			raise InvariantError(f"Trying to add duplicated item '{entry.key}'")
		self._entries[entry.key] = entry

	def extend(self, entries: Iterable[Entry]) -> None:
		for e in entries:
			self.add(e)

	def build(self) -> SettingsDocument:
		return SettingsDocument(str(self.version), tuple(self._entries.values()), self.root_tag)
