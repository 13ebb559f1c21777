import pytest
from pathlib import Path
from setvault.lib.errors import ConfigurationError
from setvault.lib.schema import MISSING, SettingItem, SettingsSchema
from setvault.lib.settings import Settings
from setvault.lib.storage import EncryptedSettingsStorage, PlainSettingsStorage
from setvault.lib.version import Version


class UiSettings(Settings):
    version = Version(2, 0, 0, 0)
    schema = SettingsSchema([
        SettingItem('Theme', str, default='light'),
        SettingItem('FontSize', int, default=12),
        SettingItem('LastUser', str),
    ])

    @property
    def theme(self) -> str:
        return self['Theme']

    @theme.setter
    def theme(self, value: str):
        self['Theme'] = value


def test_initial_values():
    s = UiSettings()
    assert s.snapshot() == {'Theme': 'light', 'FontSize': 12, 'LastUser': None}
    assert s.theme == 'light'
    assert s.keys() == ['Theme', 'FontSize', 'LastUser']
    assert 'Theme' in s and 'Nope' not in s

def test_unknown_key():
    s = UiSettings()
    with pytest.raises(KeyError):
        s['Nope']
    with pytest.raises(KeyError):
        s['Nope'] = 1

def test_change_listener_fires_on_real_changes():
    s = UiSettings(); seen = []
    s.on_changed(lambda settings, key: seen.append(key))
    s.theme = 'dark'
    s.theme = 'dark'
    s['FontSize'] = 14
    assert seen == ['Theme', 'FontSize']

def test_loaded_and_saved_listeners(tmp_path: Path):
    s = UiSettings(PlainSettingsStorage(tmp_path / 'ui.xml')); events = []

    @s.on_saved
    def saved(settings):
        events.append('saved')

    s.on_loaded(lambda settings: events.append('loaded'))
    s.save()
    s.load()
    assert events == ['saved', 'loaded']

def test_no_storage():
    with pytest.raises(ConfigurationError):
        UiSettings().load()
    with pytest.raises(ConfigurationError):
        UiSettings().save()

def test_version_override_is_per_instance():
    s = UiSettings(version=Version(3, 1))
    assert s.version == Version(3, 1, 0, 0)
    assert UiSettings().version == Version(2, 0, 0, 0)

def test_written_version_is_schema_version(tmp_path: Path):
    s = UiSettings(PlainSettingsStorage(tmp_path / 'ui.xml'))
    s.save()
    assert s.storage.read_document().version == Version(2, 0, 0, 0)

def test_close_disposes_key_material(tmp_path: Path):
    storage = EncryptedSettingsStorage(tmp_path / 'ui.dat', 'abcdef')
    material = storage.encryptor._material
    with UiSettings(storage) as s:
        s.save()
    assert material.cleared
    with pytest.raises(ConfigurationError):
        s.load()

def test_schema_is_immutable_and_unique():
    schema = UiSettings.schema
    assert len(schema) == 3
    assert schema['FontSize'].default == 12
    assert schema['LastUser'].default is MISSING
    with pytest.raises(TypeError):
        schema['X'] = SettingItem('X')
    with pytest.raises(ValueError):
        SettingsSchema([SettingItem('A'), SettingItem('A')])
    with pytest.raises(ValueError):
        SettingItem('')

def test_custom_deserializer_failure_names_key(tmp_path: Path):
    from setvault.lib.errors import DeserializationError

    class Custom(Settings):
        schema = SettingsSchema([SettingItem('Port', int, serializer=str, deserializer=int)])

    path = tmp_path / 'c.xml'
    path.write_bytes(b'<Settings version="1.0.0.0"><item key="Port">eighty</item></Settings>')
    with pytest.raises(DeserializationError) as ei:
        Custom(PlainSettingsStorage(path)).load()
    assert ei.value.key == 'Port'
