import builtins

import pytest

from bombo import repl
from bombo.interpreter import Interpreter
from bombo.value import Integer, Unsigned


@pytest.fixture
def feed(tmp_path, monkeypatch):
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.setattr(repl.atexit, 'register', lambda *args: None)

    def feed(lines):
        lines = iter(lines)

        def fake_input(prompt=''):
            try:
                return next(lines)
            except StopIteration:
                raise EOFError
        monkeypatch.setattr(builtins, 'input', fake_input)
    return feed


def test_repl_continues_after_error(feed, capsys):
    feed(['1 2', 'foo', '+ out'])
    repl.repl()

    lines = capsys.readouterr().out.splitlines()
    assert lines[1] == 'STACK TRACE: [ 1 2 ]'
    assert 'line 1, column 1' in lines[2]
    assert 'UnknownWord: unknown word "foo" encountered' in lines[3]
    assert lines[4:6] == ['3', 'STACK TRACE: [ ]']


def test_repl_keeps_state_between_lines(feed):
    feed(['defvar x 5 @x', 'mem 7 write', '!x mem read +'])
    interpreter = Interpreter()
    repl.repl(interpreter)

    assert interpreter.stack == [Unsigned(12)]
    assert interpreter.variables == {'x': Integer(5)}
    assert interpreter.memory.data[0] == 7
