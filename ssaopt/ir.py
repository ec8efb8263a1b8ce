""" The SSA intermediate representation the optimization passes work on.

A :class:`Module` holds subroutines, a subroutine holds basic blocks and
a block holds instructions. The last instruction of a block transfers
control elsewhere. Every value is assigned exactly once.

Operands are kept in named slots of the instruction using them. A user
together with one of its slots forms a :class:`Use`. Values remember
the instructions that use them, so all uses of a value can be found and
redirected without scanning the function.
"""

from collections import namedtuple
from .utils.collections import OrderedSet
from .utils.bitfun import correct


class Typ:
    """ A type of the ir """
    def __init__(self, name):
        self.name = name

    def __str__(self):
        return self.name

    def __repr__(self):
        return '<ir type {}>'.format(self.name)

    @property
    def is_integer(self):
        return isinstance(self, IntegerTyp)

    @property
    def is_signed(self):
        """ True for integers which take their top bit as the sign """
        return isinstance(self, SignedIntegerTyp)


class PointerTyp(Typ):
    """ Memory address, an unsigned number of 32 bits """
    bits = 32


class IntegerTyp(Typ):
    """ Integer of a fixed width.

    Each name and width combination is created once, so types compare by
    identity.
    """
    _known = {}

    def __new__(cls, name, bits):
        if (name, bits) not in cls._known:
            cls._known[(name, bits)] = super().__new__(cls)
        return cls._known[(name, bits)]

    def __init__(self, name, bits):
        super().__init__(name)
        self.bits = bits


class SignedIntegerTyp(IntegerTyp):
    pass


class UnsignedIntegerTyp(IntegerTyp):
    pass


i8 = SignedIntegerTyp('i8', 8)
i16 = SignedIntegerTyp('i16', 16)
i32 = SignedIntegerTyp('i32', 32)
i64 = SignedIntegerTyp('i64', 64)
u8 = UnsignedIntegerTyp('u8', 8)
u16 = UnsignedIntegerTyp('u16', 16)
u32 = UnsignedIntegerTyp('u32', 32)
u64 = UnsignedIntegerTyp('u64', 64)
ptr = PointerTyp('ptr')


class Module:
    """ A collection of subroutines and the externals they refer to """
    def __init__(self, name):
        self.name = name
        self.functions = []
        self.externals = []

    def __str__(self):
        return 'module {}'.format(self.name)

    def add_function(self, function):
        assert isinstance(function, SubRoutine)
        function.module = self
        self.functions.append(function)

    def add_external(self, external):
        self.externals.append(external)

    def stats(self):
        """ Size summary of the module, for logging """
        blocks = sum(len(f.blocks) for f in self.functions)
        instructions = sum(f.num_instructions() for f in self.functions)
        return '{} functions, {} blocks, {} instructions'.format(
            len(self.functions), blocks, instructions)


class Use(namedtuple('Use', ['user', 'slot'])):
    """ Operand slot of an instruction. The slots of a phi are its
    incoming blocks. """
    @property
    def value(self):
        return self.user.get_operand(self.slot)

    def set(self, value):
        """ Let this slot refer to another value """
        self.user.set_operand(self.slot, value)


class Value:
    """ Anything that can be an operand """
    def __init__(self, name, ty):
        super().__init__()
        if not isinstance(name, str):
            raise TypeError('Value name {!r} is not a string'.format(name))
        if not isinstance(ty, Typ):
            raise TypeError('{!r} is not an ir type'.format(ty))
        self.name = name
        self.ty = ty
        self.used_by = OrderedSet()

    def add_user(self, user):
        assert isinstance(user, Instruction)
        self.used_by.add(user)

    def del_user(self, user):
        self.used_by.remove(user)

    @property
    def use_count(self):
        """ Number of distinct instructions using this value """
        return len(self.used_by)

    @property
    def is_used(self):
        return self.use_count > 0

    @property
    def uses(self):
        """ Every slot holding this value, grouped by user """
        uses = []
        for user in self.used_by:
            uses.extend(
                Use(user, slot) for slot, operand in user.operands
                if operand is self)
        return uses

    def replace_by(self, value):
        """ Make all uses of this value refer to value instead """
        for use in self.uses:
            use.set(value)


class Const(Value):
    """ Integer constant.

    Constants are operands only, they never live in a block. Two
    constants with equal value and type are interchangeable.
    """
    def __init__(self, value, ty, name=None):
        if not isinstance(value, int):
            raise TypeError('Constant {!r} is not an int'.format(value))
        if ty.is_integer:
            value = correct(value, ty.bits, ty.is_signed)
        super().__init__(str(value) if name is None else name, ty)
        self.value = value

    def __str__(self):
        return '{} {}'.format(self.ty, self.value)

    def __repr__(self):
        return 'Const({}, {})'.format(self.value, self.ty)


class Parameter(Value):
    def __init__(self, name, ty):
        super().__init__(name, ty)
        # Position in the argument list:
        self.num = None

    def __str__(self):
        return 'parameter {} {}'.format(self.ty, self.name)


class External(Value):
    """ Symbol defined outside of the module, used by its address """
    def __init__(self, name):
        super().__init__(name, ptr)


class ExternalSubRoutine(External):
    def __init__(self, name, argument_types):
        super().__init__(name)
        self.argument_types = argument_types

    def signature(self):
        return '{}({})'.format(
            self.name, ', '.join(map(str, self.argument_types)))


class ExternalProcedure(ExternalSubRoutine):
    def __str__(self):
        return 'external procedure {}'.format(self.signature())


class ExternalFunction(ExternalSubRoutine):
    def __init__(self, name, argument_types, return_ty):
        super().__init__(name, argument_types)
        self.return_ty = return_ty

    def __str__(self):
        return 'external function {} {}'.format(
            self.return_ty, self.signature())


class SubRoutine(Value):
    """ Code of a function or procedure, split into basic blocks.

    Names of blocks, parameters and instructions are unique within a
    subroutine. Clashing names receive a numeric suffix.
    """
    def __init__(self, name):
        super().__init__(name, ptr)
        self.module = None
        self.entry = None
        self.blocks = []
        self.arguments = []
        self.defined_names = set()
        self.unique_counter = 0

    def __iter__(self):
        return iter(self.blocks)

    def signature(self):
        return '{}({})'.format(self.name, ', '.join(
            '{} {}'.format(a.ty, a.name) for a in self.arguments))

    def make_unique_name(self, thing):
        base = thing.name
        while thing.name in self.defined_names:
            thing.name = '{}_{}'.format(base, self.unique_counter)
            self.unique_counter += 1
        self.defined_names.add(thing.name)

    def add_block(self, block):
        block.function = self
        self.make_unique_name(block)
        self.blocks.append(block)
        return block

    def add_parameter(self, parameter):
        assert isinstance(parameter, Parameter)
        parameter.num = len(self.arguments)
        self.arguments.append(parameter)
        self.defined_names.add(parameter.name)

    def get_instructions(self):
        for block in self.blocks:
            yield from block

    def get_instructions_of_type(self, typ):
        return (i for i in self.get_instructions() if isinstance(i, typ))

    def num_instructions(self):
        return sum(map(len, self.blocks))

    def calc_reachable_blocks(self):
        """ Collect the blocks control can reach from the entry """
        reachable = set()
        todo = [self.entry]
        while todo:
            block = todo.pop()
            if block not in reachable:
                reachable.add(block)
                todo.extend(block.successors)
        return reachable


class Procedure(SubRoutine):
    """ Subroutine without a result """
    def __str__(self):
        return 'procedure {}'.format(self.signature())


class Function(SubRoutine):
    """ Subroutine returning a value of type return_ty """
    def __init__(self, name, return_ty):
        super().__init__(name)
        if not isinstance(return_ty, Typ):
            raise TypeError('{!r} is not an ir type'.format(return_ty))
        self.return_ty = return_ty

    def __str__(self):
        return 'function {} {}'.format(self.return_ty, self.signature())


class Block:
    """ Straight line code, ended by a single terminator """
    def __init__(self, name):
        self.name = name
        self.function = None
        self.instructions = []
        # Jumps which target this block:
        self.references = OrderedSet()

    def __str__(self):
        return '{}:'.format(self.name)

    def __repr__(self):
        return 'Block({})'.format(self.name)

    def __iter__(self):
        return iter(self.instructions)

    def __len__(self):
        return len(self.instructions)

    def _adopt(self, instruction):
        assert isinstance(instruction, Instruction)
        instruction.block = self
        if isinstance(instruction, Value):
            self.function.make_unique_name(instruction)

    def add_instruction(self, instruction):
        """ Append an instruction to a block that is not terminated yet """
        assert not isinstance(self.last_instruction, FinalInstruction)
        self._adopt(instruction)
        self.instructions.append(instruction)

    def insert_instruction(self, instruction, before_instruction=None):
        """ Insert in front of before_instruction, or at the start """
        index = 0
        if before_instruction is not None:
            assert before_instruction.block is self
            index = before_instruction.position
        self._adopt(instruction)
        self.instructions.insert(index, instruction)

    def remove_instruction(self, instruction):
        """ Take an instruction out of the block. Its operands are kept,
        use :meth:`Instruction.erase` to delete it completely. """
        self.instructions.remove(instruction)
        instruction.block = None
        return instruction

    @property
    def is_empty(self):
        return not self.instructions

    @property
    def first_instruction(self):
        return self.instructions[0]

    @property
    def last_instruction(self):
        """ The terminator of a finished block, None when empty """
        return self.instructions[-1] if self.instructions else None

    @property
    def phis(self):
        return [i for i in self.instructions if isinstance(i, Phi)]

    @property
    def successors(self):
        last = self.last_instruction
        if isinstance(last, FinalInstruction):
            return last.targets
        return []

    @property
    def predecessors(self):
        return [jump.block for jump in self.references]


def value_use(slot):
    """ Property reading and writing the operand in slot """
    return property(
        lambda self: self.get_operand(slot),
        lambda self, value: self.set_operand(slot, value))


class Instruction:
    """ Anything that lives inside a block """

    #: Executing the instruction has an effect besides its result
    has_side_effects = False

    #: The result depends on the contents of memory
    reads_memory = False

    def __init__(self):
        self.block = None
        self._var_map = {}

    @property
    def function(self):
        return self.block.function

    @property
    def operands(self):
        """ The (slot, value) pairs of this instruction """
        return list(self._var_map.items())

    @property
    def used_values(self):
        return OrderedSet(self._var_map.values())

    def get_operand(self, slot):
        return self._var_map[slot]

    def set_operand(self, slot, value):
        """ Store value in slot, keeping the def-use chains up to date """
        if not isinstance(value, Value):
            raise TypeError('{!r} is not an ir value'.format(value))
        previous = self._var_map.get(slot)
        self._var_map[slot] = value
        value.add_user(self)
        if previous is not None and previous is not value:
            self._drop_user(previous)

    def del_operand(self, slot):
        self._drop_user(self._var_map.pop(slot))

    def _drop_user(self, value):
        # A value may sit in several slots of one user:
        if all(operand is not value for operand in self._var_map.values()):
            value.del_user(self)

    def replace_use(self, old, new):
        """ Let every slot holding old refer to new """
        for slot, value in self.operands:
            if value is old:
                self.set_operand(slot, new)

    def erase(self):
        """ Release the operands and take the instruction out of its block.

        Raises ValueError when the result of the instruction is still used.
        """
        if isinstance(self, Value) and self.is_used:
            raise ValueError('{} is still used by {}'.format(
                self, ', '.join(map(str, self.used_by))))
        for slot in list(self._var_map):
            self.del_operand(slot)
        if self.block is not None:
            self.block.remove_instruction(self)

    @property
    def position(self):
        """ Index of the instruction in its block """
        return self.block.instructions.index(self)

    @property
    def is_terminator(self):
        return isinstance(self, FinalInstruction)

    @property
    def is_landing_pad(self):
        return isinstance(self, LandingPad)


class LocalValue(Value, Instruction):
    """ Instruction with a named and typed result """
    pass


class Cast(LocalValue):
    """ Convert a value to another type """
    src = value_use('src')

    def __init__(self, value, name, ty):
        super().__init__(name, ty)
        self.src = value

    def __str__(self):
        return '{} {} = cast {}'.format(self.ty, self.name, self.src.name)


class LandingPad(LocalValue):
    """ Start of an exception handler. It must open its block, and it is
    a control flow target rather than a computation. """
    def __str__(self):
        return '{} {} = landingpad'.format(self.ty, self.name)


class Call:
    """ Callee and argument slots shared by both kinds of call """
    callee = value_use('callee')
    has_side_effects = True
    reads_memory = True

    def set_call_operands(self, callee, arguments):
        if not isinstance(callee, Value) or callee.ty is not ptr:
            raise TypeError('Cannot call {!r}, it is no ptr value'.format(
                callee))
        self.callee = callee
        self.num_arguments = len(arguments)
        for index, argument in enumerate(arguments):
            self.set_operand(index, argument)

    @property
    def arguments(self):
        return [self.get_operand(i) for i in range(self.num_arguments)]

    def call_text(self):
        return 'call {}({})'.format(
            self.callee.name, ', '.join(a.name for a in self.arguments))


class FunctionCall(Call, LocalValue):
    def __init__(self, callee, arguments, name, ty):
        super().__init__(name, ty)
        self.set_call_operands(callee, arguments)

    def __str__(self):
        return '{} {} = {}'.format(self.ty, self.name, self.call_text())


class ProcedureCall(Call, Instruction):
    def __init__(self, callee, arguments):
        super().__init__()
        self.set_call_operands(callee, arguments)

    def __str__(self):
        return self.call_text()


def check_operand_type(operand, ty):
    if operand.ty is not ty:
        raise TypeError('Operand {} has type {}, expected {}'.format(
            operand.name, operand.ty, ty))


class Unop(LocalValue):
    """ Operation on a single operand """
    ops = ['neg', 'not']
    a = value_use('a')

    def __init__(self, operation, a, name, ty):
        super().__init__(name, ty)
        if operation not in self.ops:
            raise TypeError('Unknown unary operation {}'.format(operation))
        check_operand_type(a, ty)
        self.operation = operation
        self.a = a

    def __str__(self):
        return '{} {} = {} {}'.format(
            self.ty, self.name, self.operation, self.a.name)


class Binop(LocalValue):
    """ Operation on two operands of the result type.

    Signedness of division, remainder and right shifts is part of the
    operation, not of the type.
    """
    ops = [
        'add', 'sub', 'mul', 'udiv', 'sdiv', 'urem', 'srem',
        'and', 'or', 'xor', 'shl', 'ashr', 'lshr']
    a = value_use('a')
    b = value_use('b')

    def __init__(self, a, operation, b, name, ty):
        super().__init__(name, ty)
        if operation not in self.ops:
            raise TypeError('Unknown binary operation {}'.format(operation))
        check_operand_type(a, ty)
        check_operand_type(b, ty)
        self.operation = operation
        self.a = a
        self.b = b

    def __str__(self):
        return '{} {} = {} {}, {}'.format(
            self.ty, self.name, self.operation, self.a.name, self.b.name)


def add(a, b, name, ty):
    return Binop(a, 'add', b, name, ty)


def sub(a, b, name, ty):
    return Binop(a, 'sub', b, name, ty)


def mul(a, b, name, ty):
    return Binop(a, 'mul', b, name, ty)


def shl(a, b, name, ty):
    return Binop(a, 'shl', b, name, ty)


class Phi(LocalValue):
    """ Value depending on the block control arrived from.

    The slots of a phi are its incoming blocks.
    """
    @property
    def inputs(self):
        """ Mapping of incoming block to value """
        return dict(self._var_map)

    def set_incoming(self, block, value):
        if value.ty is not self.ty:
            raise ValueError('{} input {} has type {}, expected {}'.format(
                self.name, value.name, value.ty, self.ty))
        self.set_operand(block, value)

    def get_value(self, block):
        return self.get_operand(block)

    def __str__(self):
        return '{} {} = phi {}'.format(self.ty, self.name, ', '.join(
            '{}: {}'.format(b.name, v.name) for b, v in self.operands))


def check_address(address):
    if address.ty is not ptr:
        raise TypeError('Address {} has type {}, expected ptr'.format(
            address.name, address.ty))


class Load(LocalValue):
    address = value_use('address')
    reads_memory = True

    def __init__(self, address, name, ty, volatile=False):
        super().__init__(name, ty)
        check_address(address)
        self.address = address
        self.volatile = volatile

    @property
    def has_side_effects(self):
        # Reading volatile memory is observable:
        return self.volatile

    def __str__(self):
        return '{} {} = {}load {}'.format(
            self.ty, self.name, 'volatile ' if self.volatile else '',
            self.address.name)


class Store(Instruction):
    address = value_use('address')
    value = value_use('value')
    has_side_effects = True

    def __init__(self, value, address, volatile=False):
        super().__init__()
        check_address(address)
        self.value = value
        self.address = address
        self.volatile = volatile

    def __str__(self):
        return '{}store {}, {}'.format(
            'volatile ' if self.volatile else '', self.value.name,
            self.address.name)


class FinalInstruction(Instruction):
    """ Terminator of a block """
    @property
    def targets(self):
        """ Blocks control may continue in """
        return []


class Exit(FinalInstruction):
    """ Leave a procedure """
    def __str__(self):
        return 'exit'


class Return(FinalInstruction):
    """ Leave a function with a result """
    result = value_use('result')

    def __init__(self, result):
        super().__init__()
        self.result = result

    def __str__(self):
        return 'return {}'.format(self.result.name)


class Unreachable(FinalInstruction):
    """ Control never gets here """
    def __str__(self):
        return 'unreachable'


def block_use(name):
    """ Property for a jump target which keeps the references of the
    target blocks in sync """
    def setter(self, block):
        assert isinstance(block, Block)
        self.set_target_block(name, block)
    return property(lambda self: self._block_map[name], setter)


class JumpBase(FinalInstruction):
    def __init__(self):
        super().__init__()
        self._block_map = {}

    @property
    def targets(self):
        """ Distinct targets, in the order they were set """
        return list(OrderedSet(self._block_map.values()))

    def set_target_block(self, name, block):
        previous = self._block_map.get(name)
        self._block_map[name] = block
        block.references.add(self)
        if previous is not None and \
                all(b is not previous for b in self._block_map.values()):
            previous.references.discard(self)

    def erase(self):
        super().erase()
        for block in self._block_map.values():
            block.references.discard(self)
        self._block_map.clear()


class Jump(JumpBase):
    target = block_use('target')

    def __init__(self, target):
        super().__init__()
        self.target = target

    def __str__(self):
        return 'jmp {}'.format(self.target.name)


class CJump(JumpBase):
    """ Jump to lab_yes when 'a cond b' holds, to lab_no otherwise """
    conditions = ['==', '!=', '<', '<=', '>', '>=']
    a = value_use('a')
    b = value_use('b')
    lab_yes = block_use('lab_yes')
    lab_no = block_use('lab_no')

    def __init__(self, a, cond, b, lab_yes, lab_no):
        super().__init__()
        if cond not in self.conditions:
            raise ValueError('Unknown condition {}'.format(cond))
        self.a = a
        self.cond = cond
        self.b = b
        self.lab_yes = lab_yes
        self.lab_no = lab_no

    def __str__(self):
        return 'cjmp {} {} {} ? {} : {}'.format(
            self.a.name, self.cond, self.b.name,
            self.lab_yes.name, self.lab_no.name)
