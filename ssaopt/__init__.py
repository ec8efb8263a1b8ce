""" Function local optimization passes over an SSA intermediate
representation, implemented in pure Python.

Example usage:

>>> from ssaopt import ir
>>> from ssaopt.opt import DeadCodeEliminationPass
>>> DeadCodeEliminationPass()
DeadCodeEliminationPass

"""

# Define version here. Used in docs, and setup script:
__version_info__ = (0, 1, 0)
__version__ = '.'.join(map(str, __version_info__))
