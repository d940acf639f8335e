# lexer and compiler raise with a token position attached
# the interpreter attaches the position of the failing instruction
class BomboError(Exception):

    def __init__(self, kind, message, line=None, column=None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.line = line
        self.column = column

    def locate(self, token):
        if self.line is None and token is not None:
            self.line = token.line
            self.column = token.column
        return self

    def __str__(self):
        if self.line is None:
            return '{}: {}'.format(self.kind, self.message)
        s = 'line {}, column {}\n{}: {}'
        s = s.format(self.line, self.column, self.kind, self.message)
        return s


class LexError(BomboError):
    pass


class CompileError(BomboError):
    pass


class ExecutionError(BomboError):
    pass
