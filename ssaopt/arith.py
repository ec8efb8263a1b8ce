""" Integer arithmetic with the semantics of the ir operations.

Values are python integers in the range of their ir type. Each
operation is evaluated at the bit width of the type and the result
wraps around, just like native fixed width arithmetic.
"""

import operator
from .utils.bitfun import correct, to_signed, to_unsigned
from .utils.bitfun import truncating_div, truncating_rem


def enhance(f):
    """ Create a new enhanced function that corrects for the given type """
    def evaluate(ty, a, b):
        return correct(f(a, b), ty.bits, ty.is_signed)
    return evaluate


def signed(f):
    """ Create a function operating on the signed interpretation """
    def evaluate(ty, a, b):
        a = to_signed(a, ty.bits)
        b = to_signed(b, ty.bits)
        return correct(f(a, b), ty.bits, ty.is_signed)
    return evaluate


def unsigned(f):
    """ Create a function operating on the unsigned interpretation """
    def evaluate(ty, a, b):
        a = to_unsigned(a, ty.bits)
        b = to_unsigned(b, ty.bits)
        return correct(f(a, b), ty.bits, ty.is_signed)
    return evaluate


def shift(f, interpret):
    """ Create a shift function, the shift amount is always unsigned """
    def evaluate(ty, a, b):
        a = interpret(a, ty.bits)
        # Shifting out all bits:
        b = min(to_unsigned(b, ty.bits), ty.bits)
        return correct(f(a, b), ty.bits, ty.is_signed)
    return evaluate


binop_functions = {
    'add': enhance(operator.add),
    'sub': enhance(operator.sub),
    'mul': enhance(operator.mul),
    'udiv': unsigned(operator.floordiv),
    'sdiv': signed(truncating_div),
    'urem': unsigned(operator.mod),
    'srem': signed(truncating_rem),
    'and': enhance(operator.and_),
    'or': enhance(operator.or_),
    'xor': enhance(operator.xor),
    'shl': shift(operator.lshift, to_unsigned),
    'ashr': shift(operator.rshift, to_signed),
    'lshr': shift(operator.rshift, to_unsigned),
}

division_operations = ('udiv', 'sdiv', 'urem', 'srem')


def evaluate_binop(operation, ty, a, b):
    """ Evaluate a binary operation on two integer values of type ty.

    Raises ZeroDivisionError when dividing by zero.
    """
    if operation in division_operations and b == 0:
        raise ZeroDivisionError(
            '{} {}, {} divides by zero'.format(operation, a, b))
    return binop_functions[operation](ty, a, b)


def evaluate_unop(operation, ty, a):
    """ Evaluate a unary operation on an integer value of type ty """
    if operation == 'neg':
        value = -a
    elif operation == 'not':
        value = ~a
    else:  # pragma: no cover
        raise NotImplementedError(operation)
    return correct(value, ty.bits, ty.is_signed)
