"""
This module contains the entry point for optimizing ir-code.
"""

import logging
from .irutils import verify_module
from .opt import StrengthReductionPass
from .opt import CommonSubexpressionEliminationPass
from .opt import DeadCodeEliminationPass


def default_passes():
    """ The usual pipeline: simplify arithmetic, share common
    subexpressions and finally remove what became dead. """
    return [
        StrengthReductionPass(),
        CommonSubexpressionEliminationPass(),
        DeadCodeEliminationPass(),
    ]


def optimize(ir_module, passes=None, verify=True):
    """ Run a series of passes against the ir-code.

    This is an in-place operation!

    Args:
        ir_module (ssaopt.ir.Module): The ir module to optimize.
        passes: The passes to run, in order. Defaults to strength
            reduction, common subexpression elimination and dead code
            elimination.
        verify: Verify the module before and after optimization.

    Returns:
        True when the module was changed.
    """
    logger = logging.getLogger('optimize')
    if passes is None:
        passes = default_passes()

    logger.info('Optimizing module %s', ir_module.name)
    logger.debug('%s %s', ir_module, ir_module.stats())

    if verify:
        verify_module(ir_module)

    changed = False
    for opt_pass in passes:
        if opt_pass.run(ir_module):
            changed = True

    logger.debug('%s after optimization: %s', ir_module, ir_module.stats())
    if verify:
        verify_module(ir_module)
    return changed
