import atexit
import os
import readline

from termcolor import colored

from bombo.compiler import compile
from bombo.errors import BomboError
from bombo.interpreter import Interpreter, show_stack
from bombo.lexer import tokenize


def repl(interpreter=None):
    history_path = os.path.join(os.path.expanduser('~'), '.bombo_history')
    try:
        readline.read_history_file(history_path)
        readline.set_history_length(1000)
    except FileNotFoundError:
        pass

    atexit.register(readline.write_history_file, history_path)

    # stack, memory and variables persist between lines, words do not
    interpreter = interpreter if interpreter is not None else Interpreter()

    print('bombo stack language REPL (Ctrl-D to exit)')
    while True:
        try:
            line = input('>> ')
            program = compile(tokenize(line))
            interpreter.run(program)
            print(show_stack(interpreter.stack))
        except (EOFError, KeyboardInterrupt):
            print()
            break
        except BomboError as e:
            print(colored(str(e), 'red', attrs=['bold']))
            continue


if __name__ == '__main__':
    repl()
