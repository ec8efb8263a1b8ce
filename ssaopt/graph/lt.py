""" Immediate dominators by the method of Lengauer and Tarjan.

The formulation is that of algorithms 19.9 and 19.10 in Appel, "Modern
compiler implementation", with path compression but without balancing.
"""

import logging
from collections import defaultdict
from .digraph import dfs


logger = logging.getLogger('lt')


def calculate_idom(graph, entry):
    """ Map each node reachable from entry to its immediate dominator.

    The entry maps to None. Unreachable nodes are left out.
    """
    logger.debug('Calculating dominators of %s nodes', len(graph))
    return LengauerTarjan(entry).idom


class LengauerTarjan:
    def __init__(self, entry):
        # Depth first spanning tree:
        self.order = []
        self.number = {}
        self.parent = {}
        for number, (parent, node) in enumerate(dfs(entry)):
            self.order.append(node)
            self.number[node] = number
            self.parent[node] = parent

        # Forest of already processed nodes:
        self.ancestor = {}
        self.best = {}

        self.semi = {}
        self.idom = {entry: None}
        self.solve()

    def solve(self):
        buckets = defaultdict(list)
        same_dominator = {}
        for node in reversed(self.order[1:]):
            parent = self.parent[node]
            semi = parent
            for predecessor in node.predecessors:
                if predecessor not in self.number:
                    continue
                if self.number[predecessor] <= self.number[node]:
                    candidate = predecessor
                else:
                    candidate = self.semi[
                        self.lowest_semi_ancestor(predecessor)]
                if self.number[candidate] < self.number[semi]:
                    semi = candidate
            self.semi[node] = semi
            buckets[semi].append(node)

            self.ancestor[node] = parent
            self.best[node] = node

            # The path from parent down to node is now in the forest:
            for child in buckets.pop(parent, ()):
                lowest = self.lowest_semi_ancestor(child)
                if self.semi[lowest] is self.semi[child]:
                    self.idom[child] = parent
                else:
                    same_dominator[child] = lowest

        # In preorder, so the dominator of the other node is known:
        for node in self.order[1:]:
            if node in same_dominator:
                self.idom[node] = self.idom[same_dominator[node]]

    def lowest_semi_ancestor(self, start):
        """ Find the node with the lowest numbered semidominator on the
        forest path above start, compressing the path on the way.

        A loop instead of recursion, deep graphs would exceed the
        recursion limit.
        """
        path = []
        node = start
        while self.ancestor[node] in self.ancestor:
            path.append(node)
            node = self.ancestor[node]

        for member in reversed(path):
            up = self.ancestor[member]
            if self.semi_number(self.best[up]) < \
                    self.semi_number(self.best[member]):
                self.best[member] = self.best[up]
            self.ancestor[member] = self.ancestor[up]
        return self.best[start]

    def semi_number(self, node):
        return self.number[self.semi[node]]
