""" Interpreter for ir-code.

Executes functions of a module directly. This is mainly useful to check
that an optimization did not change the meaning of a program.
"""

import logging
import struct
from .. import ir
from ..arith import evaluate_binop, evaluate_unop
from ..utils.bitfun import correct


def evaluate(function, *args, **kwargs):
    """ Run a single function with the given arguments """
    return Interpreter(**kwargs).call(function, *args)


class Interpreter:
    """ Executes ir functions.

    Args:
        memory_size: the amount of bytes of memory available to loads
            and stores. Addresses are offsets into this memory.
        externals: a dictionary mapping names of external subroutines
            to python callables.
        max_steps: abort after this many instructions, to prevent
            looping forever.
    """
    logger = logging.getLogger('interpreter')

    load_formats = {
        ir.i64: '<q', ir.u64: '<Q',
        ir.i32: '<i', ir.u32: '<I',
        ir.i16: '<h', ir.u16: '<H',
        ir.i8: '<b', ir.u8: '<B',
        ir.ptr: '<I',
    }

    def __init__(self, memory_size=1024, externals=None, max_steps=100000):
        self.memory = bytearray(memory_size)
        self.externals = externals or {}
        self.max_steps = max_steps
        self.steps = 0

    def call(self, function, *args):
        """ Call a function and return its result """
        if len(args) != len(function.arguments):
            raise TypeError('{} expects {} arguments, got {}'.format(
                function.name, len(function.arguments), len(args)))
        values = {}
        for parameter, arg in zip(function.arguments, args):
            values[parameter] = self.wrap(arg, parameter.ty)
        self.logger.debug('Calling %s with %s', function.name, args)

        previous_block = None
        block = function.entry
        while True:
            # Phi nodes take their values at the same time:
            phi_values = [
                (phi, self.value_of(values, phi.get_value(previous_block)))
                for phi in block.phis]
            values.update(phi_values)

            for instruction in block:
                self.steps += 1
                if self.steps > self.max_steps:
                    raise RuntimeError('Maximum number of steps exceeded')
                if isinstance(instruction, ir.Phi):
                    continue
                elif isinstance(instruction, ir.FinalInstruction):
                    break
                else:
                    values[instruction] = self.execute(values, instruction)

            terminator = block.last_instruction
            if isinstance(terminator, ir.Return):
                return self.value_of(values, terminator.result)
            elif isinstance(terminator, ir.Exit):
                return None
            elif isinstance(terminator, ir.Jump):
                previous_block, block = block, terminator.target
            elif isinstance(terminator, ir.CJump):
                a = self.value_of(values, terminator.a)
                b = self.value_of(values, terminator.b)
                if self.compare(terminator.cond, a, b):
                    target = terminator.lab_yes
                else:
                    target = terminator.lab_no
                previous_block, block = block, target
            else:
                raise RuntimeError(
                    'Reached {} in {}'.format(terminator, block.name))

    def value_of(self, values, value):
        """ Get the run time value of an operand """
        if isinstance(value, ir.Const):
            return value.value
        return values[value]

    def execute(self, values, instruction):
        """ Execute a single instruction, and return its result """
        if isinstance(instruction, ir.Binop):
            a = self.value_of(values, instruction.a)
            b = self.value_of(values, instruction.b)
            return evaluate_binop(
                instruction.operation, instruction.ty, a, b)
        elif isinstance(instruction, ir.Unop):
            a = self.value_of(values, instruction.a)
            return evaluate_unop(instruction.operation, instruction.ty, a)
        elif isinstance(instruction, ir.Cast):
            src = self.value_of(values, instruction.src)
            return self.wrap(src, instruction.ty)
        elif isinstance(instruction, ir.Load):
            address = self.value_of(values, instruction.address)
            fmt = self.load_formats[instruction.ty]
            value, = struct.unpack_from(fmt, self.memory, address)
            return value
        elif isinstance(instruction, ir.Store):
            address = self.value_of(values, instruction.address)
            value = self.value_of(values, instruction.value)
            fmt = self.load_formats[instruction.value.ty]
            struct.pack_into(fmt, self.memory, address, value)
        elif isinstance(instruction, (ir.FunctionCall, ir.ProcedureCall)):
            args = [self.value_of(values, a) for a in instruction.arguments]
            return self.call_subroutine(instruction.callee, args)
        else:
            raise NotImplementedError(str(instruction))

    def call_subroutine(self, callee, args):
        if isinstance(callee, ir.SubRoutine):
            return self.call(callee, *args)
        elif callee.name in self.externals:
            return self.externals[callee.name](*args)
        else:
            raise RuntimeError('Cannot call {}'.format(callee.name))

    @staticmethod
    def wrap(value, ty):
        """ Wrap a python integer into the range of an ir type """
        return correct(value, ty.bits, ty.is_signed)

    @staticmethod
    def compare(cond, a, b):
        comparisons = {
            '==': a == b,
            '!=': a != b,
            '<': a < b,
            '>': a > b,
            '<=': a <= b,
            '>=': a >= b,
        }
        return comparisons[cond]
