""" Graph algorithms: directed graphs, dominators and dominance queries.
"""

from .digraph import DiGraph, DiNode
from .domtree import DominatorTree, ir_function_to_graph


__all__ = ('DiGraph', 'DiNode', 'DominatorTree', 'ir_function_to_graph')
