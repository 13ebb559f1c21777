"""CLI commands implemented with click.

The commands work on raw settings documents, so no settings class is
needed: list and edit entries, and move a file between plain and encrypted
form.
"""
from __future__ import annotations
import logging, click
from datetime import datetime
from pathlib import Path
from config.settings import DEFAULT_SETTINGS_PATH, LOG_LEVEL, BACKUP_SUFFIX
from setvault.lib.document import Entry, SettingsDocument
from setvault.lib.errors import SettingsError, DeserializationError
from setvault.lib.storage import open_storage, PlainSettingsStorage, EncryptedSettingsStorage
from setvault.lib.version import Version
from setvault.lib.xml_codec import serialize_value, deserialize_value

TRUE_WORDS = ('1', 'true', 'yes', 'on')
FALSE_WORDS = ('0', 'false', 'no', 'off')


def _fail(e):
	click.echo(f'Error: {e}')
	raise SystemExit(1)

def _convert(value: str, kind: str):
	if kind == 'int': return int(value)
	if kind == 'float': return float(value)
	if kind == 'bool':
		if value.lower() in TRUE_WORDS: return True
		if value.lower() in FALSE_WORDS: return False
		raise click.BadParameter(f'not a boolean: {value}')
	return value

def file_option(f):
	return click.option('--file', 'path', envvar='SETVAULT_PATH', default=str(DEFAULT_SETTINGS_PATH),
		type=click.Path(dir_okay=False, path_type=Path), show_default=True, help='Settings file.')(f)

def password_option(f):
	return click.option('--password', envvar='SETVAULT_PASSWORD', default='', help='Password (empty for a plain file).')(f)

def _read(path: Path, password: str) -> SettingsDocument:
	with open_storage(path, password) as st:
		if not st.exists:
			return SettingsDocument(None, (), None)
		return st.read_document()

def _write(path: Path, password: str, doc: SettingsDocument):
	with open_storage(path, password) as st:
		st.write_document(doc)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
def cli(verbose):
	"""setvault settings file tool"""
	logging.basicConfig(level=logging.DEBUG if verbose else LOG_LEVEL, format='%(levelname)s %(name)s: %(message)s')

@cli.command()
@file_option
@password_option
def show(path, password):
	"""List the entries of a settings file."""
	try:
		doc = _read(path, password)
	except SettingsError as e:
		_fail(e)
	click.echo(f"version: {doc.version_text or '-'}")
	for e in doc:
		click.echo(f"{e.key} = {'<null>' if e.is_null else e.payload}")

@cli.command()
@click.argument('key')
@click.option('--raw', is_flag=True, help='Print the stored XML fragment.')
@file_option
@password_option
def get(key, raw, path, password):
	"""Print one setting."""
	try:
		entry = _read(path, password).get(key)
	except SettingsError as e:
		_fail(e)
	if entry is None:
		click.echo('Not found')
		raise SystemExit(1)
	if entry.is_null:
		click.echo('<null>')
		return
	if raw:
		click.echo(entry.payload)
		return
	try:
		click.echo(deserialize_value(entry.payload, key=key))
	except DeserializationError:
		# custom serializer format; show it as stored
		click.echo(entry.payload)

@cli.command('set')
@click.argument('key')
@click.argument('value', required=False)
@click.option('--type', 'kind', type=click.Choice(['str', 'int', 'float', 'bool']), default='str', show_default=True)
@click.option('--null', 'is_null', is_flag=True, help='Store a null marker.')
@click.option('--schema-version', default='1.0.0.0', show_default=True, help='Version for a new file.')
@file_option
@password_option
def set_value(key, value, kind, is_null, schema_version, path, password):
	"""Set one setting to a simple value."""
	if value is None and not is_null:
		raise click.UsageError('VALUE is required unless --null is given')
	try:
		doc = _read(path, password)
		old = doc.get(key)
		payload = None if is_null else serialize_value(_convert(value, kind))
		doc = doc.with_entry(Entry(key, payload, old.attributes if old else ()))
		if doc.version_text is None:
			doc = doc.with_version(Version.parse(schema_version))
		_write(path, password, doc)
	except ValueError as e:
		raise click.BadParameter(str(e))
	except SettingsError as e:
		_fail(e)
	click.echo(f'Set {key}.')

@cli.command()
@click.argument('key')
@file_option
@password_option
def unset(key, path, password):
	"""Remove one setting."""
	try:
		doc = _read(path, password)
		if key not in doc:
			click.echo('Not found')
			raise SystemExit(1)
		_write(path, password, doc.without(key))
	except SettingsError as e:
		_fail(e)
	click.echo(f'Removed {key}.')

@cli.command()
@file_option
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def encrypt(path, password):
	"""Encrypt a plain settings file in place."""
	try:
		with EncryptedSettingsStorage(path, password) as st:
			st.write_document(st.read_document())
	except SettingsError as e:
		_fail(e)
	click.echo('Settings encrypted.')

@cli.command()
@file_option
@click.option('--password', prompt=True, hide_input=True)
def decrypt(path, password):
	"""Write an encrypted settings file back as plain XML."""
	try:
		with EncryptedSettingsStorage(path, password) as st:
			doc = st.read_document()
		PlainSettingsStorage(path).write_document(doc)
	except SettingsError as e:
		_fail(e)
	click.echo('Settings decrypted.')

@cli.command()
@file_option
@click.option('--password', prompt=True, hide_input=True)
@click.option('--new-password', prompt=True, hide_input=True, confirmation_prompt=True)
def rekey(path, password, new_password):
	"""Re-encrypt a settings file with a new password."""
	try:
		with EncryptedSettingsStorage(path, password) as st:
			doc = st.read_document()
		with EncryptedSettingsStorage(path, new_password) as st:
			st.write_document(doc)
	except SettingsError as e:
		_fail(e)
	click.echo('Password changed.')

@cli.command()
@file_option
@click.option('--dest', type=click.Path(dir_okay=False, path_type=Path), default=None, help='Backup file (default: timestamped next to the settings file).')
def backup(path, dest):
	"""Copy the settings file (still encrypted, if it is)."""
	if dest is None:
		stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
		dest = path.with_name(f"{path.name}.{stamp}{BACKUP_SUFFIX}")
	try:
		written = PlainSettingsStorage(path).backup(dest)
	except SettingsError as e:
		_fail(e)
	click.echo(f'Backup written: {written}')
