""" Integer helpers working at a fixed bit width. """


def correct(value, bits, signed):
    """ Wrap value into the range of a bits wide integer """
    base = 1 << bits
    value %= base
    if signed and value.bit_length() == bits:
        return value - base
    else:
        return value


def to_signed(value, bits):
    return correct(value, bits, True)


def to_unsigned(value, bits):
    return correct(value, bits, False)


def is_power_of_two(value: int) -> bool:
    """ Test if value is a positive power of two """
    return value > 0 and (value & (value - 1)) == 0


def log2(value: int) -> int:
    """ Integer logarithm of a power of two """
    assert is_power_of_two(value), str(value)
    return value.bit_length() - 1


def truncating_div(a: int, b: int) -> int:
    """ Divide and round toward zero, like C does """
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def truncating_rem(a: int, b: int) -> int:
    """ Remainder that goes with truncating_div """
    return a - b * truncating_div(a, b)
