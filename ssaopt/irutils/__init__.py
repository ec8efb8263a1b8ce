""" Various utilities to operate on IR-code.
"""

from .verify import verify_module, Verifier
from .writer import Writer, print_module
from .builder import Builder
from .interpreter import Interpreter, evaluate

__all__ = [
    "Builder",
    "evaluate",
    "Interpreter",
    "print_module",
    "Verifier",
    "verify_module",
    "Writer",
]
