from .dce import DeadCodeEliminationPass
from .cse import CommonSubexpressionEliminationPass
from .srcf import StrengthReductionPass
from .transform import ModulePass, FunctionPass, Transformation


__all__ = [
    'ModulePass', 'FunctionPass', 'Transformation',
    'CommonSubexpressionEliminationPass',
    'DeadCodeEliminationPass',
    'StrengthReductionPass',
    ]
