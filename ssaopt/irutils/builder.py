""" Convenience layer for constructing ir code. """

from .. import ir


def binop_emitter(operation):
    def emit(self, a, b, ty, name='tmp'):
        return self.emit_binop(a, operation, b, ty, name=name)
    emit.__doc__ = ' Emit a {} instruction '.format(operation)
    return emit


class Builder:
    """ Appends instructions to a current block.

    Module, function and block are selected explicitly. Integer operands
    are turned into constants of the operation type.
    """

    def __init__(self):
        self.module = None
        self.function = None
        self.block = None
        self.block_number = 0

    def set_module(self, module):
        self.module = module

    def set_function(self, function):
        """ Continue in function, at its entry block """
        self.function = function
        self.block = None if function is None else function.entry
        self.block_number = 0

    def set_block(self, block):
        self.block = block

    def new_function(self, name, return_ty):
        function = ir.Function(name, return_ty)
        self.module.add_function(function)
        return function

    def new_procedure(self, name):
        procedure = ir.Procedure(name)
        self.module.add_function(procedure)
        return procedure

    def new_block(self, name=None):
        """ Add a block to the current function, numbered when unnamed """
        if name is None:
            name = '{}_block{}'.format(self.function.name, self.block_number)
            self.block_number += 1
        return self.function.add_block(ir.Block(name))

    def new_parameter(self, name, ty):
        parameter = ir.Parameter(name, ty)
        self.function.add_parameter(parameter)
        return parameter

    def emit(self, instruction):
        """ Append instruction to the current block and return it """
        assert self.block is not None, 'No block selected'
        self.block.add_instruction(instruction)
        return instruction

    def operand(self, value, ty):
        if isinstance(value, int):
            return ir.Const(value, ty)
        return value

    def emit_binop(self, a, operation, b, ty, name='tmp'):
        """ Emit 'a operation b', a and b may be values or ints """
        return self.emit(ir.Binop(
            self.operand(a, ty), operation, self.operand(b, ty), name, ty))

    emit_add = binop_emitter('add')
    emit_sub = binop_emitter('sub')
    emit_mul = binop_emitter('mul')
    emit_sdiv = binop_emitter('sdiv')

    def emit_cast(self, value, ty):
        return self.emit(ir.Cast(value, 'cast', ty))

    def emit_load(self, address, ty, volatile=False):
        return self.emit(ir.Load(address, 'load', ty, volatile=volatile))

    def emit_store(self, value, address, volatile=False):
        return self.emit(ir.Store(value, address, volatile=volatile))

    def emit_jump(self, block):
        return self.emit(ir.Jump(block))

    def emit_return(self, value):
        return self.emit(ir.Return(value))

    def emit_exit(self):
        return self.emit(ir.Exit())
