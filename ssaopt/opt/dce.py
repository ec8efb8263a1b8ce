from .transform import FunctionPass, delete_instructions
from .. import ir


class DeadCodeEliminationPass(FunctionPass):
    """ Remove instructions whose result is never used.

    An instruction is removed when it has no uses, has no side effects and
    is neither a terminator nor a landing pad. Instructions which only
    become dead by this removal are left for a next run of the pass.
    """
    title = 'Dead Code Elimination'

    def on_function(self, function):
        dead_instructions = []
        for block in function:
            for instruction in block:
                if self.is_dead(instruction):
                    dead_instructions.append(instruction)
                    self.record(
                        'eliminate', function,
                        'Deleting instruction: {}', instruction)

        # Delete after the scan, so the scan never sees a changing block:
        delete_instructions(dead_instructions)

    @staticmethod
    def is_dead(instruction):
        """ Test if instruction can be removed without changing the
        program """
        if instruction.is_terminator or instruction.is_landing_pad:
            return False
        if instruction.has_side_effects:
            return False
        return not (isinstance(instruction, ir.Value) and instruction.is_used)
