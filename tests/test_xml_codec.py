from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple
import pytest
from setvault.lib.errors import DeserializationError, SerializationError
from setvault.lib.xml_codec import deserialize_value, serialize_value


class Mode(Enum):
    FAST = 1
    SAFE = 2

@dataclass
class Endpoint:
    host: str
    port: int = 80

@dataclass
class Registration:
    user: Optional[str] = None
    endpoints: List[Endpoint] = field(default_factory=list)
    mode: Mode = Mode.SAFE


def test_scalar_encoding():
    assert serialize_value('hi & bye') == '<string>hi &amp; bye</string>'
    assert serialize_value(5) == '<int>5</int>'
    assert serialize_value(True) == '<boolean>true</boolean>'
    assert serialize_value(None) == '<null />'

@pytest.mark.parametrize('value,target', [
    ('', str),
    ('  spaced  ', str),
    (-42, int),
    (2.5, float),
    (False, bool),
    (b'\x00\x01bin', bytes),
    (Decimal('1.10'), Decimal),
    (datetime(2024, 5, 1, 12, 30), datetime),
    (date(2024, 5, 1), date),
    ([1, 'a', None], list),
    ((1, 2), tuple),
    ({'a': 1, 'b': [True]}, dict),
    (Mode.FAST, Mode),
])
def test_generic_values_come_back(value, target):
    assert deserialize_value(serialize_value(value), target) == value

def test_typed_containers():
    assert deserialize_value(serialize_value({1: 'x'}), Dict[int, str]) == {1: 'x'}
    assert deserialize_value(serialize_value((1, 'a')), Tuple[int, str]) == (1, 'a')
    assert deserialize_value(serialize_value({3, 1}), set) == {1, 3}

def test_dataclass_with_nested_types():
    reg = Registration('ann', [Endpoint('a.example', 8080), Endpoint('b.example')], Mode.FAST)
    xml = serialize_value(reg)
    assert xml.startswith('<object type="Registration">')
    assert deserialize_value(xml, Registration) == reg

def test_int_accepted_for_float():
    value = deserialize_value('<int>3</int>', float)
    assert value == 3.0 and isinstance(value, float)

def test_untyped_decode():
    assert deserialize_value('<list><int>1</int></list>') == [1]

def test_type_mismatch_reports_key_and_type():
    with pytest.raises(DeserializationError) as ei:
        deserialize_value('<string>abc</string>', int, key='Count')
    assert ei.value.key == 'Count'
    assert ei.value.type_name == 'int'

@pytest.mark.parametrize('payload', [
    '<int>abc</int>',
    '<boolean>maybe</boolean>',
    'plain text',
    '<int>1</int><int>2</int>',
    '<mystery>1</mystery>',
    '<unclosed>',
])
def test_bad_payloads(payload):
    with pytest.raises(DeserializationError):
        deserialize_value(payload, int)

def test_enum_needs_target():
    with pytest.raises(DeserializationError):
        deserialize_value(serialize_value(Mode.FAST))

def test_unsupported_type():
    with pytest.raises(SerializationError):
        serialize_value(object())
