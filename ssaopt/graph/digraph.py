""" Directed graphs and depth first traversals.

The traversals only look at the `successors` of a node, so they work on
ir blocks just as well as on :class:`DiNode` instances.
"""

from collections import defaultdict
from ..utils.collections import OrderedSet


class DiGraph:
    """ Graph whose edges point from one node to another """
    def __init__(self):
        self.nodes = OrderedSet()
        self._successors = defaultdict(OrderedSet)
        self._predecessors = defaultdict(OrderedSet)

    def __len__(self):
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def add_node(self, node):
        self.nodes.add(node)

    def add_edge(self, source, target):
        assert source in self.nodes and target in self.nodes
        self._successors[source].add(target)
        self._predecessors[target].add(source)

    def has_edge(self, source, target):
        return target in self._successors[source]

    def successors(self, node):
        return self._successors[node]

    def predecessors(self, node):
        return self._predecessors[node]


class DiNode:
    """ Node which adds itself to a graph """
    def __init__(self, graph):
        self.graph = graph
        graph.add_node(self)

    def add_edge(self, other):
        self.graph.add_edge(self, other)

    @property
    def successors(self):
        return self.graph.successors(self)

    @property
    def predecessors(self):
        return self.graph.predecessors(self)


def dfs(start_node):
    """ Walk depth first, yielding (parent, node) pairs in preorder.

    The parent of the start node is None.
    """
    seen = set()
    todo = [(None, start_node)]
    while todo:
        parent, node = todo.pop()
        if node in seen:
            continue
        seen.add(node)
        yield parent, node
        successors = list(node.successors)
        todo.extend((node, successor) for successor in reversed(successors))


def post_order(start_node):
    """ Walk depth first, yielding each node once all nodes the walk
    enters from it have been yielded.

    Reversing this order puts every node after its dominators.
    """
    seen = {start_node}
    stack = [(start_node, iter(start_node.successors))]
    while stack:
        node, successors = stack[-1]
        for successor in successors:
            if successor not in seen:
                seen.add(successor)
                stack.append((successor, iter(successor.successors)))
                break
        else:
            stack.pop()
            yield node
