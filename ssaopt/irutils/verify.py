""" Consistency checks for ir modules.

The passes rewrite def-use chains in place. Verifying after a pass
catches a broken module where it was broken, not in some later pass.
"""

import logging
from ..graph.domtree import DominatorTree
from ..common import IrFormError
from .. import ir


def verify_module(module):
    """ Raise :class:`IrFormError` when the module is not well formed """
    Verifier().verify(module)


class Verifier:
    """ Checks structure, def-use chains and single assignment form of
    every function in a module.

    Blocks that cannot be reached are allowed. They are checked like any
    other block, except that every definition dominates their uses.
    """
    logger = logging.getLogger('verifier')

    def verify(self, module):
        self.logger.debug('Verifying %s', module)
        for function in module.functions:
            self.verify_function(function)

    def verify_function(self, function):
        if not function.blocks or function.entry is not function.blocks[0]:
            raise IrFormError(
                '{} must start with its entry block'.format(function.name))

        names = set()
        for block in function:
            if block.function is not function:
                raise IrFormError('{} is not part of {}'.format(
                    block.name, function.name))
            self.check_name(names, block)
            self.verify_termination(function, block)
            self.verify_edges(block)

        dominator_tree = DominatorTree(function)
        for block in function:
            self.verify_block(block, names, dominator_tree)

    @staticmethod
    def check_name(names, thing):
        if thing.name in names:
            raise IrFormError('Name {} is defined twice'.format(thing.name))
        names.add(thing.name)

    def verify_termination(self, function, block):
        if block.is_empty or not block.last_instruction.is_terminator:
            raise IrFormError('{} is not terminated'.format(block.name))
        for instruction in block.instructions[:-1]:
            if instruction.is_terminator:
                raise IrFormError('{} in the middle of {}'.format(
                    instruction, block.name))

        last = block.last_instruction
        if isinstance(last, ir.Return):
            if not isinstance(function, ir.Function):
                raise IrFormError(
                    'Procedure {} returns a value'.format(function.name))
            if last.result.ty is not function.return_ty:
                raise IrFormError('{} returns {}, expected {}'.format(
                    block.name, last.result.ty, function.return_ty))
        elif isinstance(last, ir.Exit):
            if not isinstance(function, ir.Procedure):
                raise IrFormError(
                    'Function {} exits without a value'.format(function.name))

    def verify_edges(self, block):
        """ Jumps agree with the predecessor lists, and phis have an input
        for exactly the predecessors of their block """
        for successor in block.successors:
            if block not in successor.predecessors:
                raise IrFormError('{} is missing predecessor {}'.format(
                    successor.name, block.name))
        predecessors = set(block.predecessors)
        for predecessor in predecessors:
            if block not in predecessor.successors:
                raise IrFormError('{} does not jump to {}'.format(
                    predecessor.name, block.name))

        for phi in block.phis:
            for predecessor in predecessors:
                if predecessor not in phi.inputs:
                    raise IrFormError('{} has no value for {}'.format(
                        phi, predecessor.name))
            for incoming in phi.inputs:
                if incoming not in predecessors:
                    raise IrFormError(
                        '{} has a value for {}, which is no predecessor'
                        .format(phi, incoming.name))

    def verify_block(self, block, names, dominator_tree):
        phis_allowed = True
        for instruction in block:
            if instruction.block is not block:
                raise IrFormError('{} is not administered in {}'.format(
                    instruction, block.name))
            if isinstance(instruction, ir.Value):
                self.check_name(names, instruction)

            if isinstance(instruction, ir.Phi):
                if not phis_allowed:
                    raise IrFormError('{} follows other instructions'.format(
                        instruction))
            elif not instruction.is_landing_pad:
                phis_allowed = False
            if instruction.is_landing_pad and \
                    instruction is not block.first_instruction:
                raise IrFormError('{} must be first in {}'.format(
                    instruction, block.name))

            self.verify_types(instruction)
            self.verify_operands(instruction, dominator_tree)
            if isinstance(instruction, ir.Value):
                self.verify_users(instruction)

    def verify_operands(self, instruction, dominator_tree):
        """ Each slot is registered with its value, which must be defined
        before it is used """
        for slot, value in instruction.operands:
            if instruction not in value.used_by:
                raise IrFormError('Use of {} by {} is not administered'.format(
                    value.name, instruction))
            if isinstance(value, ir.Instruction) and value.block is None:
                raise IrFormError('{} uses removed instruction {}'.format(
                    instruction, value.name))
            if not dominator_tree.dominates(value, ir.Use(instruction, slot)):
                raise IrFormError('{} does not dominate {}'.format(
                    value.name, instruction))

    @staticmethod
    def verify_users(value):
        for user in value.used_by:
            if user.block is None:
                raise IrFormError('{} is used by removed instruction {}'.format(
                    value.name, user))
            if all(operand is not value for operand in user.used_values):
                raise IrFormError('{} is registered as user of {}'.format(
                    user, value.name))

    def verify_types(self, instruction):
        if isinstance(instruction, ir.Binop):
            operands = [instruction.a, instruction.b]
        elif isinstance(instruction, ir.Unop):
            operands = [instruction.a]
        elif isinstance(instruction, ir.Phi):
            operands = list(instruction.inputs.values())
        elif isinstance(instruction, ir.CJump):
            operands = []
            if instruction.a.ty is not instruction.b.ty:
                raise IrFormError('Comparing {} with {} in {}'.format(
                    instruction.a.ty, instruction.b.ty, instruction))
        elif isinstance(instruction, (ir.Load, ir.Store)):
            operands = []
            if instruction.address.ty is not ir.ptr:
                raise IrFormError('{} needs a ptr address'.format(
                    instruction))
        elif isinstance(instruction, (ir.FunctionCall, ir.ProcedureCall)):
            operands = []
            self.verify_call(instruction)
        else:
            operands = []

        for operand in operands:
            if operand.ty is not instruction.ty:
                raise IrFormError('Operand {} of {} has type {}'.format(
                    operand.name, instruction, operand.ty))

    def verify_call(self, call):
        """ Calls of known subroutines must match their signature """
        callee = call.callee
        if not isinstance(callee, (ir.SubRoutine, ir.ExternalSubRoutine)):
            return

        if isinstance(call, ir.FunctionCall):
            if not isinstance(callee, (ir.Function, ir.ExternalFunction)):
                raise IrFormError('{} is not a function'.format(callee.name))
            if callee.return_ty is not call.ty:
                raise IrFormError('{} returns {}, expected {}'.format(
                    callee.name, callee.return_ty, call.ty))
        elif not isinstance(callee, (ir.Procedure, ir.ExternalProcedure)):
            raise IrFormError('{} is not a procedure'.format(callee.name))

        if isinstance(callee, ir.SubRoutine):
            expected = [parameter.ty for parameter in callee.arguments]
        else:
            expected = list(callee.argument_types)
        passed = [argument.ty for argument in call.arguments]
        if len(passed) != len(expected) or \
                any(p is not e for p, e in zip(passed, expected)):
            raise IrFormError('{} expects ({}), got ({})'.format(
                callee.name, ', '.join(map(str, expected)),
                ', '.join(map(str, passed))))
