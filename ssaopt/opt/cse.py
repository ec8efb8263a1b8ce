from .transform import FunctionPass, delete_instructions
from .transform import blocks_in_dominance_order
from ..common import MissingAnalysisError
from ..graph.domtree import DominatorTree
from .. import ir


def operand_key(value):
    """ Constants are compared by value, everything else by identity """
    if isinstance(value, ir.Const):
        return ('const', value.value, value.ty)
    return value


def instruction_key(instruction):
    """ Structural fingerprint of an instruction.

    Two instructions with the same key compute the same value. This is a
    purely syntactic comparison, 'a + b' and 'b + a' differ.
    """
    if isinstance(instruction, (ir.Binop, ir.Unop)):
        operation = instruction.operation
    else:
        operation = None
    operands = tuple(
        (slot, operand_key(value)) for slot, value in instruction.operands)
    if isinstance(instruction, ir.Phi):
        # Incoming blocks are not ordered:
        operands = frozenset(operands)
    return (type(instruction), operation, instruction.ty, operands)


class CommonSubexpressionEliminationPass(FunctionPass):
    """
        Replace common sub expressions (cse) with the previously defined one.

        Within a block the first occurrence of an expression can always
        replace later ones. Across blocks, the first occurrence replaces a
        later one only where it dominates the use. The later instruction is
        deleted when all of its uses could be replaced.

        Blocks are visited in reverse post order, so of two duplicates in
        blocks where one dominates the other, the dominating one is kept.

        Args:
            dominance: factory creating a dominance oracle for a function.
                The oracle must provide a `dominates(definition, use)`
                method. Defaults to :class:`DominatorTree`.
    """
    title = 'Common Subexpression Elimination'

    def __init__(self, dominance=DominatorTree):
        super().__init__()
        self.dominance = dominance

    def on_function(self, function):
        if self.dominance is None:
            raise MissingAnalysisError(
                'No dominance information available for {}'.format(
                    function.name))
        dominator_tree = self.dominance(function)

        global_seen = {}
        redundant_instructions = []
        # A block is visited after all blocks dominating it:
        for block in blocks_in_dominance_order(function):
            local_seen = {}
            for instruction in block:
                if not self.is_candidate(instruction):
                    continue

                key = instruction_key(instruction)
                if key in local_seen:
                    identical = local_seen[key]
                    instruction.replace_by(identical)
                    redundant_instructions.append(instruction)
                    self.record(
                        'eliminate', function,
                        'Found local common subexpression: {}, replaced '
                        'by {}', instruction, identical.name)
                elif key in global_seen:
                    identical = global_seen[key]
                    if self.replace_dominated_uses(
                            function, dominator_tree, instruction, identical):
                        redundant_instructions.append(instruction)
                    else:
                        # Later duplicates in this block can use this one:
                        local_seen[key] = instruction
                else:
                    local_seen[key] = instruction
                    global_seen[key] = instruction

        delete_instructions(redundant_instructions)
        if redundant_instructions:
            self.logger.debug(
                'Removed %i instructions', len(redundant_instructions))

    def replace_dominated_uses(
            self, function, dominator_tree, instruction, identical):
        """ Replace each use of instruction which is dominated by identical.

        Returns True if all uses were replaced.
        """
        uses = instruction.uses
        dominated = [
            use for use in uses if dominator_tree.dominates(identical, use)]
        for use in dominated:
            use.set(identical)

        if len(dominated) == len(uses):
            self.record(
                'eliminate', function,
                'Found global common subexpression: {}, replaced by {}',
                instruction, identical.name)
            return True
        elif dominated:
            self.record(
                'eliminate', function,
                'Found global common subexpression: {}, replaced {} of {} '
                'uses by {}',
                instruction, len(dominated), len(uses), identical.name)
        else:
            self.logger.debug(
                'Keeping %s, %s does not dominate its uses',
                instruction, identical.name)
        return False

    @staticmethod
    def is_candidate(instruction):
        """ Determine whether instruction is a pure computation """
        if instruction.is_terminator or instruction.is_landing_pad:
            return False
        if not isinstance(instruction, ir.Value):
            return False
        if instruction.has_side_effects or instruction.reads_memory:
            return False
        return True
