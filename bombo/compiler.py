import enum
import logging

from bombo.errors import CompileError
from bombo.lexer import TokenKind, is_integer, tokenize
from bombo import value

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())


class Op(enum.Enum):
    PUSH = 'Push'
    ADD = 'Add'
    SUB = 'Sub'
    MUL = 'Mul'
    DIV = 'Div'
    EQ = 'Eq'
    GT = 'Gt'
    LT = 'Lt'
    GTEQ = 'Gteq'
    LTEQ = 'Lteq'
    DUP = 'Dup'
    SWAP = 'Swap'
    DROP = 'Drop'
    OVER = 'Over'
    ROTATE = 'Rotate'
    OUT = 'Out'
    INDEX = 'Index'
    MEM = 'Mem'
    READ = 'Read'
    WRITE = 'Write'
    DEFVAR = 'DefVar'
    READ_VAR = 'ReadVar'
    WRITE_VAR = 'WriteVar'
    IF = 'If'
    IFSTAR = 'Ifstar'
    ELSE = 'Else'
    END = 'End'
    WHILE = 'While'
    DO = 'Do'
    DEFWORD = 'Defword'
    RETURN = 'Return'
    CALL = 'Call'
    END_OF_PROGRAM = 'EndOfProgram'


# words that compile to exactly one instruction with no argument
PRIMITIVES = {
    '+':      Op.ADD,
    '-':      Op.SUB,
    '*':      Op.MUL,
    '/':      Op.DIV,
    '=':      Op.EQ,
    '>':      Op.GT,
    '<':      Op.LT,
    '>=':     Op.GTEQ,
    '<=':     Op.LTEQ,
    'dup':    Op.DUP,
    'swap':   Op.SWAP,
    'drop':   Op.DROP,
    'over':   Op.OVER,
    'rotate': Op.ROTATE,
    'out':    Op.OUT,
    'idx':    Op.INDEX,
    'mem':    Op.MEM,
    'read':   Op.READ,
    'write':  Op.WRITE,
}

OPENERS = {
    'if':    Op.IF,
    'if*':   Op.IFSTAR,
    'while': Op.WHILE,
    'do':    Op.DO,
}

KEYWORDS = set(OPENERS) | {'else', 'end', 'defword', 'defvar', 'return'}
RESERVED = set(PRIMITIVES) | KEYWORDS

# instructions that carry a jump target patched during compilation
JUMPS = {Op.IF, Op.IFSTAR, Op.ELSE, Op.END, Op.DO, Op.DEFWORD, Op.CALL}

UNCLOSED = {
    Op.IF:      ('UnclosedIf', '`if` is never closed'),
    Op.IFSTAR:  ('UnclosedIfStar', '`if*` is never closed'),
    Op.ELSE:    ('UnclosedElse', '`else` is never closed'),
    Op.WHILE:   ('UnclosedWhile', '`while` loop is never closed'),
    Op.DO:      ('UnclosedDo', '`do` block after loop condition is never closed'),
    Op.DEFWORD: ('UnclosedWord', 'word definition is never closed with `return`'),
}

UNRESOLVED = None


class Instruction:

    def __init__(self, op, arg=None, token=None):
        self.op = op
        self.arg = arg
        self.token = token

    @property
    def target(self):
        return self.arg

    @target.setter
    def target(self, index):
        self.arg = index

    def __eq__(self, other):
        if not isinstance(other, Instruction):
            return NotImplemented
        return self.op == other.op and self.arg == other.arg

    def __repr__(self):
        s = '{}({!r}, {!r})'
        s = s.format(type(self).__name__, self.op, self.arg)
        return s

    def __str__(self):
        if self.arg is None and self.op not in JUMPS:
            return self.op.value
        if isinstance(self.arg, value.Value):
            return '{}({!r})'.format(self.op.value, self.arg)
        return '{}({})'.format(self.op.value, self.arg)


def format_program(program):
    width = len(str(len(program)))
    return '\n'.join('{:>{}}  {}'.format(i, width, inst) for i, inst in enumerate(program))


def error(kind, message, token):
    return CompileError(kind, message, token.line, token.column)


def literal_value(token):
    if token.kind == TokenKind.NUMBER:
        if is_integer(token.text):
            result = value.integer_literal(int(token.text))
            if result is None:
                raise error('NumberOutOfRange', 'integer literal out of range: {}'.format(token.text), token)
            return result
        return value.Float(float(token.text))
    if token.kind == TokenKind.STRING:
        return value.String(token.text)
    if token.kind == TokenKind.BOOLEAN:
        return value.Boolean(token.text == 'true')
    if token.kind == TokenKind.LIST_LITERAL:
        return list_value(token)
    s = 'list literals only hold numbers, booleans, strings and lists: {}'
    s = s.format(token.text)
    raise error('InvalidListElement', s, token)


def list_value(token):
    # tokenize between the brackets, keeping absolute positions
    items = tokenize(token.text[1:-1], token.line, token.column + 1)
    return value.List(literal_value(item) for item in items)


class Compiler:
    """
    Single forward pass from tokens to a flat, jump-patched program.

    Openers push their own index onto the jump-site stack, closers pop
    it and patch the target of the instruction found there.
    """

    def __init__(self):
        self.program = []
        self.sites = []
        self.words = {}

    def compile(self, tokens):
        tokens = iter(tokens)
        for token in tokens:
            if token.kind == TokenKind.WORD:
                self.compile_word(token, tokens)
            elif token.kind == TokenKind.VARIABLE_OP:
                op = Op.WRITE_VAR if token.text[0] == '@' else Op.READ_VAR
                self.emit(op, token.text[1:], token)
            else:
                self.emit(Op.PUSH, literal_value(token), token)

        if self.sites:
            opener = self.program[self.sites[0]]
            kind, message = UNCLOSED[opener.op]
            raise error(kind, message, opener.token)

        self.emit(Op.END_OF_PROGRAM)
        log.info('compiled {} instructions, {} words'.format(len(self.program), len(self.words)))
        return self.program

    @property
    def here(self):
        return len(self.program)

    def emit(self, op, arg=None, token=None):
        self.program.append(Instruction(op, arg, token))
        return self.here - 1

    def open(self, op, token):
        index = self.emit(op, UNRESOLVED if op in JUMPS else None, token)
        self.sites.append(index)
        return index

    def pop_site(self, kind, message, token):
        if not self.sites:
            raise error(kind, message, token)
        return self.program[self.sites.pop()]

    def take_name(self, keyword, tokens):
        name = next(tokens, None)
        if name is None:
            raise error('ExpectedName', '`{}` expects a name'.format(keyword.text), keyword)
        if name.kind != TokenKind.WORD or name.text in RESERVED:
            s = '`{}` expects a name, got {!r}'
            s = s.format(keyword.text, name.text)
            raise error('ExpectedName', s, name)
        return name.text

    def compile_word(self, token, tokens):
        text = token.text
        if text in OPENERS:
            self.open(OPENERS[text], token)
        elif text == 'else':
            self.compile_else(token)
        elif text == 'end':
            self.compile_end(token)
        elif text == 'defword':
            self.open(Op.DEFWORD, token)
            name = self.take_name(token, tokens)
            # registered before the body so the word can call itself
            self.words[name] = self.here
            log.info('defined word "{}" at {}'.format(name, self.here))
        elif text == 'return':
            self.compile_return(token)
        elif text == 'defvar':
            name = self.take_name(token, tokens)
            self.emit(Op.DEFVAR, name, token)
        elif text in PRIMITIVES:
            self.emit(PRIMITIVES[text], None, token)
        elif text in self.words:
            self.emit(Op.CALL, self.words[text], token)
        else:
            s = 'unknown word "{}" encountered'
            s = s.format(text)
            raise error('UnknownWord', s, token)

    def compile_else(self, token):
        current = self.emit(Op.ELSE, UNRESOLVED, token)
        opener = self.pop_site('DanglingElse', 'dangling `else`', token)
        if opener.op not in (Op.IF, Op.IFSTAR):
            raise error('DanglingElse', '`else` expected to close an `if` or `if*`', token)

        # the true branch falls through past this else
        opener.target = current + 1
        if opener.op == Op.IFSTAR:
            self.chain_else(token).target = current
        self.sites.append(current)

    def chain_else(self, token):
        previous = self.pop_site('ExpectedElseBeforeIfStar', '`if*` expected an `else` before it', token)
        if previous.op != Op.ELSE:
            raise error('ExpectedElseBeforeIfStar', '`if*` expected an `else` before it', token)
        return previous

    def compile_end(self, token):
        current = self.here
        opener = self.pop_site('DanglingEnd', 'dangling `end`', token)

        if opener.op in (Op.IF, Op.ELSE):
            opener.target = current
            target = current + 1
        elif opener.op == Op.IFSTAR:
            opener.target = current
            self.chain_else(token).target = current
            target = current + 1
        elif opener.op == Op.DO:
            opener.target = current + 1
            if not self.sites or self.program[self.sites[-1]].op != Op.WHILE:
                raise error('ExpectedWhileBeforeDo', '`end` expected `while` before `do`', token)
            # loop back-edge
            target = self.sites.pop()
        elif opener.op == Op.WHILE:
            raise error('ExpectedDoAfterWhile', '`end` expected `do` after `while`', token)
        else:
            raise error('UseReturnToEndWord', 'use `return` to end a word definition', token)

        self.emit(Op.END, target, token)

    def compile_return(self, token):
        current = self.emit(Op.RETURN, None, token)
        opener = self.pop_site('DanglingReturn', '`return` outside of a word definition', token)
        if opener.op != Op.DEFWORD:
            raise error('DanglingReturn', '`return` expected to close a word definition', token)
        opener.target = current + 1


def compile(tokens):
    """
    Compile tokens into a program.

    :param tokens: Tokens produced by tokenize
    :returns: List of instructions ending with EndOfProgram
    """
    return Compiler().compile(tokens)
