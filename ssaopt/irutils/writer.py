""" Human readable listing of ir modules. """

from .verify import verify_module
from .. import ir


def print_module(module, file=None, verify=True, show_uses=False):
    """ Print a module as text.

    Args:
        module: the :class:`ir.Module` to print.
        file: file like object to write to, stdout when not given.
        verify: verify the module before printing it.
        show_uses: annotate each value with the slots that use it.
    """
    Writer(file=file, show_uses=show_uses).write(module, verify=verify)


def describe_use(use):
    """ Name a use as 'user.slot' """
    user, slot = use
    if isinstance(user, ir.Value):
        user_name = user.name
    else:
        user_name = type(user).__name__.lower()
    slot_name = slot.name if isinstance(slot, ir.Block) else slot
    return '{}.{}'.format(user_name, slot_name)


class Writer:
    """ Writes the text form of a module, one instruction per line """
    indent = '  '

    def __init__(self, file=None, show_uses=False):
        self.file = file
        self.show_uses = show_uses

    def emit(self, level, text):
        print(self.indent * level + text, file=self.file)

    def write(self, module, verify=True):
        if verify:
            verify_module(module)
        self.emit(0, '{};'.format(module))
        for external in module.externals:
            self.emit(0, '{};'.format(external))
        for function in module.functions:
            self.emit(0, '')
            self.write_function(function)

    def write_function(self, function):
        self.emit(0, '{} {{'.format(function))
        for block in function:
            self.emit(1, str(block))
            for instruction in block:
                self.emit(2, self.instruction_text(instruction))
        self.emit(0, '}')

    def instruction_text(self, instruction):
        text = '{};'.format(instruction)
        if self.show_uses and isinstance(instruction, ir.Value):
            uses = ', '.join(map(describe_use, instruction.uses))
            text += '  # uses: {}'.format(uses or '-')
        return text
