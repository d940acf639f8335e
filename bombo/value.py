import copy
import math
import operator

from bombo.errors import ExecutionError

INT64_MIN = -2**63
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class Value:

    def __init__(self, data):
        self.data = data

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return type(self) is type(other) and self.data == other.data

    # values hold lists, keep them out of sets and dicts
    __hash__ = None

    def __repr__(self):
        s = '{}({!r})'
        s = s.format(type(self).__name__, self.data)
        return s

    def __str__(self):
        return str(self.data)

    def copy(self):
        return self


class Null(Value):

    def __init__(self):
        super().__init__(None)

    def __repr__(self):
        return 'Null()'

    def __str__(self):
        return '∅'


class Boolean(Value):

    def __str__(self):
        return 'true' if self.data else 'false'


class Integer(Value):
    """Signed 64-bit integer"""

    def __init__(self, data):
        if not INT64_MIN <= data <= INT64_MAX:
            raise ExecutionError('Overflow', 'integer out of range: {}'.format(data))
        super().__init__(data)


class Unsigned(Value):
    """Unsigned 64-bit integer"""

    def __init__(self, data):
        if not 0 <= data <= UINT64_MAX:
            raise ExecutionError('Overflow', 'unsigned out of range: {}'.format(data))
        super().__init__(data)


class Float(Value):

    def __init__(self, data):
        super().__init__(float(data))


class String(Value):
    pass


class List(Value):

    def __init__(self, data):
        super().__init__(list(data))

    def __str__(self):
        return '[{}]'.format(' '.join(_show(item) for item in self.data))

    def copy(self):
        return List(copy.deepcopy(self.data))


def _show(value):
    # strings inside lists keep their quotes
    if isinstance(value, String):
        return '"{}"'.format(value.data)
    return str(value)


def kind_name(value):
    return type(value).__name__


def _by_sign(n):
    if n < 0:
        return Integer(n)
    return Unsigned(n)


# result constructor for every numeric operand pairing of + - *
COERCIONS = {
    (Integer,  Integer):  Integer,
    (Integer,  Unsigned): _by_sign,
    (Unsigned, Integer):  _by_sign,
    (Unsigned, Unsigned): _by_sign,
    (Integer,  Float):    Float,
    (Float,    Integer):  Float,
    (Unsigned, Float):    Float,
    (Float,    Unsigned): Float,
    (Float,    Float):    Float,
}

NUMERIC = (Integer, Unsigned, Float)

# ordering between values of unrelated kinds
KIND_RANK = {
    Null:     0,
    Boolean:  1,
    Integer:  2,
    Unsigned: 2,
    Float:    2,
    String:   3,
    List:     4,
}


def is_numeric(value):
    return isinstance(value, NUMERIC)


def is_falsy(value):
    if isinstance(value, Null):
        return True
    if isinstance(value, (Boolean, String)):
        return not value.data
    if is_numeric(value):
        return value.data == 0
    return False


def _coercion(symbol, a, b):
    try:
        return COERCIONS[type(a), type(b)]
    except KeyError:
        s = 'cannot apply "{}" to {} and {}'
        s = s.format(symbol, kind_name(a), kind_name(b))
        raise ExecutionError('TypeMismatch', s)


def _arithmetic(symbol, func, a, b):
    result = _coercion(symbol, a, b)
    if result is Float:
        return Float(func(float(a.data), float(b.data)))
    return result(func(a.data, b.data))


def add(a, b):
    return _arithmetic('+', operator.add, a, b)


def sub(a, b):
    return _arithmetic('-', operator.sub, a, b)


def mul(a, b):
    return _arithmetic('*', operator.mul, a, b)


def div(a, b):
    # always true division, even between two integers
    _coercion('/', a, b)
    if b.data == 0:
        raise ExecutionError('DivisionByZero', 'division by zero: {} / {}'.format(a, b))
    return Float(float(a.data) / float(b.data))


def _numbers(a, b):
    if isinstance(a, Float) or isinstance(b, Float):
        return float(a.data), float(b.data)
    return a.data, b.data


def _sign(x, y):
    return (x > y) - (x < y)


def _compare_numbers(a, b):
    x, y = _numbers(a, b)
    # NaN sorts after every other number and equals itself
    x_nan, y_nan = math.isnan(x), math.isnan(y)
    if x_nan or y_nan:
        return _sign(x_nan, y_nan)
    return _sign(x, y)


def equals(a, b):
    if is_numeric(a) and is_numeric(b):
        return _compare_numbers(a, b) == 0
    if type(a) is not type(b):
        return False
    if isinstance(a, List):
        if len(a.data) != len(b.data):
            return False
        return all(equals(x, y) for x, y in zip(a.data, b.data))
    return a.data == b.data


def compare(a, b):
    """Total order over all values: negative, zero or positive"""
    if is_numeric(a) and is_numeric(b):
        return _compare_numbers(a, b)

    rank_a, rank_b = KIND_RANK[type(a)], KIND_RANK[type(b)]
    if rank_a != rank_b:
        return _sign(rank_a, rank_b)

    if isinstance(a, List):
        for x, y in zip(a.data, b.data):
            order = compare(x, y)
            if order != 0:
                return order
        return _sign(len(a.data), len(b.data))
    if isinstance(a, Null):
        return 0
    return _sign(a.data, b.data)


def integer_literal(n):
    """Value for an integer literal, None when it fits no variant"""
    if INT64_MIN <= n <= INT64_MAX:
        return Integer(n)
    if 0 <= n <= UINT64_MAX:
        return Unsigned(n)
    return None


def as_index(value):
    """Python int from an Integer or Unsigned operand"""
    if not isinstance(value, (Integer, Unsigned)):
        s = 'expected an integer, got {} {}'
        s = s.format(kind_name(value), value)
        raise ExecutionError('TypeMismatch', s)
    return value.data
