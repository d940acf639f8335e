import logging
import sys

import pytest

from bombo import __version__
from bombo.interpreter import cli_main


def write_program(tmp_path, source):
    path = tmp_path / 'main.bo'
    path.write_text(source)
    return str(path)


def test_cli_runs_file(tmp_path, monkeypatch, capsys):
    path = write_program(tmp_path, '2 3 + out 7\n')
    monkeypatch.setattr(sys, 'argv', ['bombo', '--stack', path])
    cli_main()
    assert capsys.readouterr().out.splitlines() == ['5', 'STACK TRACE: [ 7 ]']


def test_cli_dump(tmp_path, monkeypatch, capsys):
    path = write_program(tmp_path, '1 out')
    monkeypatch.setattr(sys, 'argv', ['bombo', '-d', path])
    cli_main()
    assert capsys.readouterr().out.splitlines() == [
        '0  Push(Integer(1))',
        '1  Out',
        '2  EndOfProgram',
        '1',
    ]


def test_cli_reports_errors(tmp_path, monkeypatch):
    path = write_program(tmp_path, '1 if 2 out')
    monkeypatch.setattr(sys, 'argv', ['bombo', path])
    with pytest.raises(SystemExit) as e:
        cli_main()
    assert 'UnclosedIf' in str(e.value.code)
    assert 'line 1, column 3' in str(e.value.code)


def test_cli_small_memory(tmp_path, monkeypatch):
    path = write_program(tmp_path, 'mem 8 + read')
    monkeypatch.setattr(sys, 'argv', ['bombo', '-m', '8', path])
    with pytest.raises(SystemExit) as e:
        cli_main()
    assert 'OutOfBounds' in str(e.value.code)


def test_cli_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['bombo', str(tmp_path / 'nope.bo')])
    with pytest.raises(SystemExit) as e:
        cli_main()
    assert 'missing input file' in str(e.value.code)


def test_cli_version(monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['bombo', '--version'])
    with pytest.raises(SystemExit) as e:
        cli_main()
    assert e.value.code == 'bombo {}'.format(__version__)


def test_cli_verbose_logging(tmp_path, monkeypatch, capsys):
    path = write_program(tmp_path, '1 2 + out')
    monkeypatch.setattr(sys, 'argv', ['bombo', '-v', path])

    # basicConfig only configures a root logger without handlers
    root = logging.getLogger()
    handlers, level = root.handlers, root.level
    root.handlers = []
    try:
        cli_main()
    finally:
        root.handlers = handlers
        root.setLevel(level)

    lines = capsys.readouterr().out.splitlines()
    assert 'compiled 5 instructions, 0 words' in lines
    assert '3' in lines
    assert lines[-1] == 'run finished with 0 value(s) on the stack'
