import argparse
import logging
import os
import sys

from termcolor import colored

from bombo.compiler import Op, compile, format_program
from bombo.errors import BomboError, ExecutionError
from bombo.lexer import tokenize
from bombo import value

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())

MEMORY_SIZE = 1000


class Memory:
    """
    Fixed-size block of bytes shared by every run of a session.

    Addresses start at base and every access is bounds-checked.
    """

    def __init__(self, size=MEMORY_SIZE, base=0):
        self.data = bytearray(size)
        self.base = base

    def offset(self, address):
        offset = address - self.base
        if not 0 <= offset < len(self.data):
            s = 'address {} outside of memory [{}, {})'
            s = s.format(address, self.base, self.base + len(self.data))
            raise ExecutionError('OutOfBounds', s)
        return offset

    def read(self, address):
        return self.data[self.offset(address)]

    def write(self, address, byte):
        self.data[self.offset(address)] = byte & 0xff


def show_stack(stack):
    return 'STACK TRACE: [ {}]'.format(''.join('{} '.format(v) for v in stack))


class Interpreter:

    def __init__(self, stack=None, memory=None, variables=None, out=None):
        self.stack = stack if stack is not None else []
        self.memory = memory if memory is not None else Memory()
        # declared but never written variables map to None
        self.variables = variables if variables is not None else {}
        self.out = out

        self.primitives = {
            Op.PUSH:      self.op_push,
            Op.ADD:       self.binary(value.add),
            Op.SUB:       self.binary(value.sub),
            Op.MUL:       self.binary(value.mul),
            Op.DIV:       self.binary(value.div),
            Op.EQ:        self.binary(lambda a, b: value.Boolean(value.equals(a, b))),
            Op.GT:        self.binary(lambda a, b: value.Boolean(value.compare(a, b) > 0)),
            Op.LT:        self.binary(lambda a, b: value.Boolean(value.compare(a, b) < 0)),
            Op.GTEQ:      self.binary(lambda a, b: value.Boolean(value.compare(a, b) >= 0)),
            Op.LTEQ:      self.binary(lambda a, b: value.Boolean(value.compare(a, b) <= 0)),
            Op.DUP:       self.op_dup,
            Op.SWAP:      self.op_swap,
            Op.DROP:      self.op_drop,
            Op.OVER:      self.op_over,
            Op.ROTATE:    self.op_rotate,
            Op.OUT:       self.op_out,
            Op.INDEX:     self.op_index,
            Op.MEM:       self.op_mem,
            Op.READ:      self.op_read,
            Op.WRITE:     self.op_write,
            Op.DEFVAR:    self.op_defvar,
            Op.READ_VAR:  self.op_read_var,
            Op.WRITE_VAR: self.op_write_var,
        }

    # operands are checked before the stack is touched
    def args(self, count):
        if len(self.stack) < count:
            s = 'expected {} value(s) on the stack, found {}'
            s = s.format(count, len(self.stack))
            raise ExecutionError('StackUnderflow', s)
        return self.stack[len(self.stack) - count:]

    def replace(self, count, *values):
        del self.stack[len(self.stack) - count:]
        self.stack.extend(values)

    def binary(self, func):
        def inner(instruction):
            a, b = self.args(2)
            self.replace(2, func(a, b))
        return inner

    def op_push(self, instruction):
        self.stack.append(instruction.arg.copy())

    def op_dup(self, instruction):
        a, = self.args(1)
        self.stack.append(a.copy())

    def op_swap(self, instruction):
        a, b = self.args(2)
        self.replace(2, b, a)

    def op_drop(self, instruction):
        self.args(1)
        self.replace(1)

    def op_over(self, instruction):
        a, b = self.args(2)
        self.stack.append(a.copy())

    def op_rotate(self, instruction):
        a, b, c = self.args(3)
        self.replace(3, b, c, a)

    def op_out(self, instruction):
        a, = self.args(1)
        self.replace(1)
        print(a, file=self.out or sys.stdout)

    def op_index(self, instruction):
        items, index = self.args(2)
        i = value.as_index(index)
        if not isinstance(items, value.List):
            s = 'idx expected a List, got {} {}'
            s = s.format(value.kind_name(items), items)
            raise ExecutionError('TypeMismatch', s)
        if not 0 <= i < len(items.data):
            s = 'index {} out of range for list of length {}'
            s = s.format(i, len(items.data))
            raise ExecutionError('IndexOutOfRange', s)
        self.replace(2, items.data[i].copy())

    def op_mem(self, instruction):
        self.stack.append(value.Unsigned(self.memory.base))

    def op_read(self, instruction):
        address, = self.args(1)
        byte = self.memory.read(value.as_index(address))
        self.replace(1, value.Unsigned(byte))

    def op_write(self, instruction):
        address, data = self.args(2)
        self.memory.write(value.as_index(address), value.as_index(data))
        self.replace(2)

    def op_defvar(self, instruction):
        if instruction.arg not in self.variables:
            self.variables[instruction.arg] = None
            log.info('declared variable "{}"'.format(instruction.arg))

    def op_read_var(self, instruction):
        data = self.variables.get(instruction.arg)
        if data is None:
            s = 'variable "{}" is read before it is written'
            s = s.format(instruction.arg)
            raise ExecutionError('UninitializedVariable', s)
        self.stack.append(data.copy())

    def op_write_var(self, instruction):
        if instruction.arg not in self.variables:
            s = 'variable "{}" is written before `defvar`'
            s = s.format(instruction.arg)
            raise ExecutionError('UnknownVariable', s)
        data, = self.args(1)
        self.variables[instruction.arg] = data
        self.replace(1)

    def run(self, program):
        """
        Execute a compiled program against this interpreter's state.

        :param program: Instructions produced by compile
        :returns: The operand stack
        """
        # `ip` is the instruction pointer
        ip = 0
        returns = []
        while ip < len(program):
            instruction = program[ip]
            op = instruction.op
            try:
                if op in (Op.IF, Op.IFSTAR, Op.DO):
                    condition, = self.args(1)
                    self.replace(1)
                    if value.is_falsy(condition):
                        ip = instruction.target
                    else:
                        ip += 1
                elif op in (Op.ELSE, Op.END, Op.DEFWORD):
                    ip = instruction.target
                elif op == Op.WHILE:
                    ip += 1
                elif op == Op.CALL:
                    returns.append(ip + 1)
                    ip = instruction.target
                elif op == Op.RETURN:
                    if not returns:
                        raise ExecutionError('ReturnStackUnderflow', '`return` with an empty return stack (compiler bug)')
                    ip = returns.pop()
                elif op == Op.END_OF_PROGRAM:
                    ip = len(program)
                else:
                    self.primitives[op](instruction)
                    ip += 1
            except ExecutionError as e:
                raise e.locate(instruction.token)

        log.info('run finished with {} value(s) on the stack'.format(len(self.stack)))
        return self.stack


def run(program, stack=None, memory=None, variables=None, out=None):
    """
    Execute a program, mutating the given operand stack in place.

    :returns: The operand stack
    """
    return Interpreter(stack, memory, variables, out).run(program)


def read_source(path_or_source):
    if os.path.exists(path_or_source):
        log.info('reading file: {}'.format(os.path.abspath(path_or_source)))
        with open(path_or_source, encoding='utf-8') as f:
            return f.read()
    return path_or_source


def evaluate(path_or_source, interpreter=None):
    """
    Tokenize, compile and run a program.

    :param path_or_source: Path to a source file or raw source
    :param interpreter: Interpreter whose state the program runs against
    :returns: The interpreter after the run
    """
    interpreter = interpreter if interpreter is not None else Interpreter()
    source = read_source(path_or_source)
    program = compile(tokenize(source))
    interpreter.run(program)
    return interpreter


def cli_main():
    parser = argparse.ArgumentParser(
        description='Run bombo stack language programs',
        prog='bombo',
    )
    parser.add_argument('input', type=str, nargs='?', help='input source file (starts the REPL when omitted)')
    parser.add_argument('-m', '--memory', type=int, default=MEMORY_SIZE,
        help='size of the memory block in bytes (default {})'.format(MEMORY_SIZE))
    parser.add_argument('-d', '--dump', action='store_true', help='print the compiled program before running it')
    parser.add_argument('-s', '--stack', action='store_true', help='print the operand stack after running')
    parser.add_argument('-v', '--verbose', action='store_true', help='verbose interpreter output')
    parser.add_argument('--version', action='store_true', help='print interpreter version and exit')
    args = parser.parse_args()

    if args.version:
        from bombo import __version__
        version = 'bombo {}'.format(__version__)
        raise SystemExit(version)

    log_fmt = '%(message)s'
    if args.verbose:
        logging.basicConfig(format=log_fmt, level=logging.INFO, stream=sys.stdout)

    if args.memory <= 0:
        raise SystemExit('invalid memory size: {}'.format(args.memory))

    interpreter = Interpreter(memory=Memory(args.memory))

    if args.input is None:
        from bombo.repl import repl
        repl(interpreter)
        return

    if not os.path.exists(args.input):
        raise SystemExit('missing input file: {}'.format(args.input))

    try:
        program = compile(tokenize(read_source(args.input)))
        if args.dump:
            print(format_program(program))
        interpreter.run(program)
    except BomboError as e:
        raise SystemExit(colored(str(e), 'red', attrs=['bold']))

    if args.stack:
        print(show_stack(interpreter.stack))


if __name__ == '__main__':
    cli_main()
