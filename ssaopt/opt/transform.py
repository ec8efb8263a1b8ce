""" Base classes of the optimization passes """

import abc
import logging
from collections import namedtuple
from ..graph.digraph import post_order
from .. import ir


#: Record of a single change made by a pass. The kind is 'fold',
#: 'reduce' or 'eliminate'.
Transformation = namedtuple(
    'Transformation', ['kind', 'function', 'message'])


class ModulePass(metaclass=abc.ABCMeta):
    """ A pass over a complete module.

    Passes log to a logger named after their class. The changes made by
    the latest run are kept in `transformations`.
    """
    def __init__(self):
        self.logger = logging.getLogger(type(self).__name__)
        self.transformations = []

    def __repr__(self):
        return type(self).__name__

    @abc.abstractmethod
    def run(self, ir_module):  # pragma: no cover
        """ Optimize ir_module in place, return True when it changed """
        raise NotImplementedError()

    def record(self, kind, function, fmt, *args):
        """ Log a change and add it to the transformations """
        message = fmt.format(*args)
        self.logger.info('%s', message)
        self.transformations.append(Transformation(kind, function, message))


class FunctionPass(ModulePass):
    """ A pass treating each function of a module on its own """

    #: Name of the pass in log messages
    title = None

    def run(self, ir_module):
        assert isinstance(ir_module, ir.Module)
        self.transformations = []
        changed = False
        for function in ir_module.functions:
            changed = self.run_on_function(function) or changed
        return changed

    def run_on_function(self, function):
        """ Optimize a single function, return True when it changed """
        title = self.title or repr(self)
        self.logger.info(
            "Starting %s pass for function '%s'", title, function.name)
        before = len(self.transformations)
        self.on_function(function)
        self.logger.info(
            "%s pass complete for function '%s'", title, function.name)
        return len(self.transformations) > before

    @abc.abstractmethod
    def on_function(self, function):  # pragma: no cover
        raise NotImplementedError()


def blocks_in_dominance_order(function):
    """ List the blocks of function such that each block comes after the
    blocks dominating it.

    Reachable blocks are listed in reverse post order. Unreachable blocks
    follow in their order in the function.
    """
    blocks = list(post_order(function.entry))
    blocks.reverse()
    reachable = set(blocks)
    blocks.extend(b for b in function if b not in reachable)
    return blocks


def delete_instructions(instructions):
    """ Erase instructions collected during a scan of a function.

    None of them may still be used.
    """
    for instruction in instructions:
        instruction.erase()
