""" Strength reduction and constant folding.

Arithmetic on constants is evaluated at compile time, and arithmetic
with special constants is replaced by cheaper operations:

.. code::

    x = 7 * 6     ->  x = 42
    x = a * 8     ->  x = a << 3
    x = a / 4     ->  x = a >> 2
    x = a * 1     ->  a
    x = a + 0     ->  a
    x = a - 0     ->  a

"""

from .transform import FunctionPass, delete_instructions
from .transform import blocks_in_dominance_order
from ..arith import evaluate_binop
from ..utils.bitfun import is_power_of_two, log2, to_signed, to_unsigned
from .. import ir


symbols = {
    'add': '+', 'sub': '-', 'mul': '*', 'udiv': '/', 'sdiv': '/',
    'shl': '<<', 'ashr': '>>', 'lshr': '>>>',
}


class StrengthReductionPass(FunctionPass):
    """ Fold constant arithmetic and reduce the strength of arithmetic
    with a constant operand.

    Only the add, sub, mul, udiv and sdiv operations are considered.
    """
    title = 'Strength Reduction & Constant Folding'

    def __init__(self):
        super().__init__()
        self.rules = {
            'add': self.reduce_add,
            'sub': self.reduce_sub,
            'mul': self.reduce_mul,
            'udiv': self.reduce_div,
            'sdiv': self.reduce_div,
        }

    def on_function(self, function):
        obsolete_instructions = []
        # Definitions are simplified before the uses they dominate:
        for block in blocks_in_dominance_order(function):
            # Loop over a copy, since shifts are inserted into the block:
            for instruction in list(block):
                replacement = self.simplify(function, instruction)
                if replacement is not None:
                    instruction.replace_by(replacement)
                    obsolete_instructions.append(instruction)

        delete_instructions(obsolete_instructions)

    def simplify(self, function, instruction):
        """ Determine a cheaper value for the given instruction.

        Returns None when no rule applies.
        """
        if not isinstance(instruction, ir.Binop):
            return
        if instruction.operation not in self.rules:
            return
        if not instruction.ty.is_integer:
            return

        a, b = instruction.a, instruction.b
        if isinstance(a, ir.Const) and isinstance(b, ir.Const):
            return self.fold(function, instruction)
        else:
            return self.rules[instruction.operation](function, instruction)

    def fold(self, function, instruction):
        """ Evaluate an operation on two constants """
        a, b = instruction.a, instruction.b
        symbol = symbols[instruction.operation]
        try:
            value = evaluate_binop(
                instruction.operation, instruction.ty, a.value, b.value)
        except ZeroDivisionError:
            self.logger.warning(
                'Cannot fold %s: %s%s%s divides by zero',
                instruction, a.value, symbol, b.value)
            return

        self.record(
            'fold', function, 'Constant folding: {}{}{} -> {} in {}',
            a.value, symbol, b.value, value, instruction)
        return ir.Const(value, instruction.ty)

    def reduce_add(self, function, instruction):
        """ Remove addition of zero """
        a, b = instruction.a, instruction.b
        if isinstance(a, ir.Const) and a.value == 0:
            return self.identity(function, instruction, b)
        elif isinstance(b, ir.Const) and b.value == 0:
            return self.identity(function, instruction, a)

    def reduce_sub(self, function, instruction):
        """ Remove subtraction of zero """
        a, b = instruction.a, instruction.b
        if isinstance(b, ir.Const) and b.value == 0:
            return self.identity(function, instruction, a)

    def reduce_mul(self, function, instruction):
        """ Multiplication by one or a power of two """
        a, b = instruction.a, instruction.b
        if isinstance(a, ir.Const):
            constant, value = a, b
        elif isinstance(b, ir.Const):
            constant, value = b, a
        else:
            return

        factor = to_unsigned(constant.value, instruction.ty.bits)
        if factor == 1:
            return self.identity(function, instruction, value)
        elif is_power_of_two(factor):
            return self.shift(function, instruction, value, 'shl', factor)

    def reduce_div(self, function, instruction):
        """ Division by one or a power of two.

        Only the divisor can be reduced, division does not commute.
        """
        a, b = instruction.a, instruction.b
        if not isinstance(b, ir.Const):
            return

        bits = instruction.ty.bits
        if instruction.operation == 'sdiv':
            divisor = to_signed(b.value, bits)
            operation = 'ashr'
        else:
            divisor = to_unsigned(b.value, bits)
            operation = 'lshr'

        if divisor == 1:
            return self.identity(function, instruction, a)
        elif is_power_of_two(divisor):
            return self.shift(function, instruction, a, operation, divisor)

    def identity(self, function, instruction, value):
        """ The instruction computes the given value """
        self.record(
            'reduce', function, 'Strength reduction: {} -> {}',
            instruction, value.name)
        return value

    def shift(self, function, instruction, value, operation, factor):
        """ Insert a shift in front of the instruction to replace it """
        amount = log2(factor)
        ty = instruction.ty
        shift = ir.Binop(
            value, operation, ir.Const(amount, ty), operation, ty)
        instruction.block.insert_instruction(
            shift, before_instruction=instruction)
        self.record(
            'reduce', function, 'Strength reduction: {} -> {}{}{}',
            instruction, value.name, symbols[operation], amount)
        return shift
