from click.testing import CliRunner
from config.settings import SIGNATURE
from setvault.cli.commands import cli


def test_cli_help():
	r = CliRunner().invoke(cli, ['--help'])
	assert r.exit_code == 0
	assert 'encrypt' in r.output


def test_set_get_show(monkeypatch, tmp_path):
	monkeypatch.setenv('SETVAULT_PATH', str(tmp_path / 'app.xml'))
	runner = CliRunner()
	r = runner.invoke(cli, ['set', 'Theme', 'dark'])
	assert r.exit_code == 0, r.output
	runner.invoke(cli, ['set', 'Count', '5', '--type', 'int'])
	runner.invoke(cli, ['set', 'Gone', '--null'])
	assert runner.invoke(cli, ['get', 'Theme']).output.strip() == 'dark'
	assert runner.invoke(cli, ['get', 'Count', '--raw']).output.strip() == '<int>5</int>'
	assert runner.invoke(cli, ['get', 'Gone']).output.strip() == '<null>'
	show = runner.invoke(cli, ['show'])
	assert 'version: 1.0.0.0' in show.output
	assert 'Count = <int>5</int>' in show.output
	missing = runner.invoke(cli, ['get', 'Nope'])
	assert missing.exit_code == 1 and 'Not found' in missing.output
	assert runner.invoke(cli, ['unset', 'Theme']).exit_code == 0
	assert 'Theme' not in runner.invoke(cli, ['show']).output


def test_bad_int_value(monkeypatch, tmp_path):
	monkeypatch.setenv('SETVAULT_PATH', str(tmp_path / 'app.xml'))
	r = CliRunner().invoke(cli, ['set', 'Count', 'many', '--type', 'int'])
	assert r.exit_code != 0
	assert not (tmp_path / 'app.xml').exists()


def test_encrypt_decrypt_rekey(monkeypatch, tmp_path):
	path = tmp_path / 'app.xml'
	monkeypatch.setenv('SETVAULT_PATH', str(path))
	runner = CliRunner()
	runner.invoke(cli, ['set', 'Theme', 'dark'])
	enc = runner.invoke(cli, ['encrypt'], input='abcdef\nabcdef\n')
	assert enc.exit_code == 0, enc.output
	assert path.read_bytes()[:16] == SIGNATURE
	assert runner.invoke(cli, ['get', 'Theme', '--password', 'abcdef']).output.strip() == 'dark'
	plain = runner.invoke(cli, ['get', 'Theme'])
	assert plain.exit_code == 1 and 'Error' in plain.output
	rk = runner.invoke(cli, ['rekey'], input='abcdef\nnew-secret\nnew-secret\n')
	assert rk.exit_code == 0, rk.output
	bad = runner.invoke(cli, ['get', 'Theme', '--password', 'abcdef'])
	assert bad.exit_code == 1
	dec = runner.invoke(cli, ['decrypt'], input='new-secret\n')
	assert dec.exit_code == 0
	assert path.read_bytes().startswith(b'<?xml')
	assert runner.invoke(cli, ['get', 'Theme']).output.strip() == 'dark'


def test_encrypt_short_password(monkeypatch, tmp_path):
	monkeypatch.setenv('SETVAULT_PATH', str(tmp_path / 'app.xml'))
	runner = CliRunner()
	runner.invoke(cli, ['set', 'Theme', 'dark'])
	r = runner.invoke(cli, ['encrypt'], input='abcde\nabcde\n')
	assert r.exit_code == 1
	assert 'Error' in r.output


def test_backup(monkeypatch, tmp_path):
	monkeypatch.setenv('SETVAULT_PATH', str(tmp_path / 'app.xml'))
	runner = CliRunner()
	runner.invoke(cli, ['set', 'Theme', 'dark'])
	r = runner.invoke(cli, ['backup', '--dest', str(tmp_path / 'copy.xml')])
	assert r.exit_code == 0
	assert (tmp_path / 'copy.xml').read_bytes() == (tmp_path / 'app.xml').read_bytes()
	auto = runner.invoke(cli, ['backup'])
	assert 'Backup written' in auto.output
	assert list(tmp_path.glob('app.xml.*.backup'))
