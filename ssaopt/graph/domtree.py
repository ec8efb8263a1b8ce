""" Dominance between the blocks and instructions of a function.

The optimizer asks a single question: is a definition available at a
certain use? :class:`DominatorTree` answers it from the immediate
dominators of the control flow graph.
"""

import logging
from .digraph import DiGraph, DiNode, dfs
from .lt import calculate_idom
from .. import ir


class BlockNode(DiNode):
    """ Control flow graph node standing for a block """
    def __init__(self, graph, block):
        super().__init__(graph)
        self.block = block

    def __repr__(self):
        return 'BlockNode({})'.format(self.block.name)


def ir_function_to_graph(function):
    """ Create the control flow graph of the blocks that can be reached
    from the entry of function.

    Returns the graph and a dictionary mapping blocks to graph nodes.
    """
    graph = DiGraph()
    block_map = {}
    for _, block in dfs(function.entry):
        block_map[block] = BlockNode(graph, block)
    for block, node in block_map.items():
        for successor in block.successors:
            node.add_edge(block_map[successor])
    return graph, block_map


class DominatorTree:
    """ Dominance oracle for a function.

    The tree is computed once, on construction. It never changes the
    function and stays valid as long as the control flow is unchanged.
    """
    logger = logging.getLogger('domtree')

    def __init__(self, function):
        self.function = function
        graph, block_map = ir_function_to_graph(function)
        idom = calculate_idom(graph, block_map[function.entry])
        self._idom = {
            node.block: None if parent is None else parent.block
            for node, parent in idom.items()}
        self._children = {block: [] for block in self._idom}
        for block, parent in self._idom.items():
            if parent is not None:
                self._children[parent].append(block)
        self._number_subtrees(function.entry)
        self.logger.debug(
            'Dominator tree of %s covers %s blocks',
            function.name, len(self._idom))

    def __repr__(self):
        return 'DominatorTree({})'.format(self.function.name)

    def _number_subtrees(self, root):
        # The subtree of a block is numbered within its interval:
        self._enter = {}
        self._leave = {}
        clock = 0
        todo = [(root, False)]
        while todo:
            block, finished = todo.pop()
            clock += 1
            if finished:
                self._leave[block] = clock
            else:
                self._enter[block] = clock
                todo.append((block, True))
                todo.extend((child, False) for child in self._children[block])

    def is_reachable(self, block):
        return block in self._idom

    def immediate_dominator(self, block):
        """ Closest strict dominator of a block, None for the entry """
        return self._idom[block]

    def children(self, block):
        """ Blocks immediately dominated by block """
        return list(self._children[block])

    def block_dominates(self, one, another):
        """ Test if every path from the entry to another passes through
        one. A block dominates itself. """
        return self._enter[one] <= self._enter[another] and \
            self._leave[another] <= self._leave[one]

    def block_strictly_dominates(self, one, another):
        return one is not another and self.block_dominates(one, another)

    def instruction_dominates(self, one, another):
        """ Test if one is executed before another on every path """
        if one.block is another.block:
            return one.position < another.position
        return self.block_strictly_dominates(one.block, another.block)

    def dominates(self, definition, use: ir.Use):
        """ Test if definition is available at the given use.

        Values other than instructions, like parameters and constants,
        dominate every use. A use in unreachable code is dominated by
        anything, a definition in unreachable code dominates no reachable
        use. A phi input is used at the end of its incoming block.
        """
        if not isinstance(definition, ir.Instruction):
            return True
        if definition.block is None:
            raise ValueError('{} is not part of a block'.format(definition))

        if isinstance(use.user, ir.Phi):
            use_block = use.slot
        else:
            use_block = use.user.block
        if not self.is_reachable(use_block):
            return True
        if not self.is_reachable(definition.block):
            return False

        if isinstance(use.user, ir.Phi):
            return self.block_dominates(definition.block, use_block)
        return self.instruction_dominates(definition, use.user)
