""" Test the graph algorithms and the dominator tree """

import unittest
from ssaopt import ir
from ssaopt import irutils
from ssaopt.graph import DiGraph, DiNode
from ssaopt.graph import DominatorTree, ir_function_to_graph
from ssaopt.graph.digraph import dfs, post_order
from ssaopt.graph.lt import calculate_idom


class DiGraphTestCase(unittest.TestCase):
    def test_edges(self):
        graph = DiGraph()
        n1 = DiNode(graph)
        n2 = DiNode(graph)
        n3 = DiNode(graph)
        n1.add_edge(n2)
        n1.add_edge(n2)
        n2.add_edge(n3)
        self.assertEqual(3, len(graph))
        self.assertTrue(graph.has_edge(n1, n2))
        self.assertFalse(graph.has_edge(n2, n1))
        self.assertEqual([n2], list(n1.successors))
        self.assertEqual([n2], list(n3.predecessors))
        self.assertEqual([n1, n2, n3], list(graph))

    def test_dfs(self):
        graph = DiGraph()
        n1 = DiNode(graph)
        n2 = DiNode(graph)
        n3 = DiNode(graph)
        n4 = DiNode(graph)
        n1.add_edge(n2)
        n1.add_edge(n3)
        n2.add_edge(n3)
        n3.add_edge(n1)
        self.assertEqual(
            [(None, n1), (n1, n2), (n2, n3)], list(dfs(n1)))
        self.assertNotIn(n4, [n for _, n in dfs(n1)])

    def test_post_order(self):
        """ Each node comes after the nodes the walk entered from it """
        graph = DiGraph()
        n1 = DiNode(graph)
        n2 = DiNode(graph)
        n3 = DiNode(graph)
        n4 = DiNode(graph)
        n5 = DiNode(graph)
        n1.add_edge(n2)
        n1.add_edge(n3)
        n2.add_edge(n4)
        n3.add_edge(n4)
        n4.add_edge(n1)
        n5.add_edge(n1)
        self.assertEqual([n4, n2, n3, n1], list(post_order(n1)))
        self.assertEqual([n2, n3, n1, n4], list(post_order(n4)))


class LengauerTarjanTestCase(unittest.TestCase):
    """ Test the Lengauer Tarjan algorithm for computing dominators """
    def test_appel_example_19_4(self):
        """ figure 19.4 """
        graph = DiGraph()
        node_1 = DiNode(graph)
        node_2 = DiNode(graph)
        node_3 = DiNode(graph)
        node_4 = DiNode(graph)
        node_5 = DiNode(graph)
        node_6 = DiNode(graph)
        node_7 = DiNode(graph)
        node_1.add_edge(node_2)
        node_2.add_edge(node_3)
        node_2.add_edge(node_4)
        node_3.add_edge(node_5)
        node_3.add_edge(node_6)
        node_5.add_edge(node_7)
        node_6.add_edge(node_7)
        node_7.add_edge(node_2)
        self.assertEqual(7, len(graph))
        idom = calculate_idom(graph, node_1)
        self.assertEqual(7, len(idom))
        correct_idom = {
            node_1: None,
            node_2: node_1,
            node_3: node_2,
            node_4: node_2,
            node_5: node_3,
            node_6: node_3,
            node_7: node_3,
        }
        self.assertEqual(correct_idom, idom)

    def test_irreducible_loop(self):
        """ Two entries into a loop, both dominated by the start only """
        graph = DiGraph()
        start = DiNode(graph)
        node_a = DiNode(graph)
        node_b = DiNode(graph)
        node_c = DiNode(graph)
        start.add_edge(node_a)
        start.add_edge(node_b)
        node_a.add_edge(node_b)
        node_b.add_edge(node_a)
        node_a.add_edge(node_c)
        idom = calculate_idom(graph, start)
        correct_idom = {
            start: None,
            node_a: start,
            node_b: start,
            node_c: node_a,
        }
        self.assertEqual(correct_idom, idom)

    def test_unreachable_nodes(self):
        """ Nodes which cannot be reached are skipped """
        graph = DiGraph()
        start = DiNode(graph)
        node_a = DiNode(graph)
        node_b = DiNode(graph)
        dead = DiNode(graph)
        start.add_edge(node_a)
        start.add_edge(node_b)
        dead.add_edge(node_b)
        node_b.add_edge(node_a)
        idom = calculate_idom(graph, start)
        correct_idom = {
            start: None,
            node_a: start,
            node_b: start,
        }
        self.assertEqual(correct_idom, idom)

    def test_long_chain(self):
        """ Deep graphs do not hit the recursion limit """
        graph = DiGraph()
        nodes = [DiNode(graph) for _ in range(3000)]
        for n1, n2 in zip(nodes[:-1], nodes[1:]):
            n1.add_edge(n2)
        nodes[-1].add_edge(nodes[1])
        idom = calculate_idom(graph, nodes[0])
        self.assertIs(nodes[-2], idom[nodes[-1]])
        self.assertIs(nodes[0], idom[nodes[1]])


class DominatorTreeTestCase(unittest.TestCase):
    """ Check dominance of instructions in a diamond shaped function:

    entry -> left -> join
    entry -> right -> join
    """
    def setUp(self):
        self.builder = irutils.Builder()
        self.module = ir.Module('test')
        self.builder.set_module(self.module)
        self.function = self.builder.new_function('diamond', ir.i32)
        self.builder.set_function(self.function)
        self.entry = self.builder.new_block()
        self.left = self.builder.new_block()
        self.right = self.builder.new_block()
        self.join = self.builder.new_block()
        self.function.entry = self.entry
        self.a = self.builder.new_parameter('a', ir.i32)
        self.b = self.builder.new_parameter('b', ir.i32)

        self.builder.set_block(self.entry)
        self.x = self.builder.emit_add(self.a, self.b, ir.i32, name='x')
        self.x2 = self.builder.emit_sub(self.x, self.a, ir.i32, name='x2')
        self.builder.emit(
            ir.CJump(self.x2, '<', self.b, self.left, self.right))

        self.builder.set_block(self.left)
        self.y = self.builder.emit_mul(self.x, 2, ir.i32, name='y')
        self.builder.emit_jump(self.join)

        self.builder.set_block(self.right)
        self.builder.emit_jump(self.join)

        self.builder.set_block(self.join)
        self.phi = self.builder.emit(ir.Phi('phi', ir.i32))
        self.phi.set_incoming(self.left, self.y)
        self.phi.set_incoming(self.right, self.x)
        self.z = self.builder.emit_add(self.phi, self.x, ir.i32, name='z')
        self.builder.emit_return(self.z)
        irutils.verify_module(self.module)

    def test_cfg(self):
        graph, block_map = ir_function_to_graph(self.function)
        self.assertEqual(4, len(graph))
        self.assertIs(self.join, block_map[self.join].block)
        self.assertEqual(
            [block_map[self.left], block_map[self.right]],
            list(block_map[self.entry].successors))
        self.assertEqual(
            {block_map[self.left], block_map[self.right]},
            set(block_map[self.join].predecessors))
        self.assertEqual([], list(block_map[self.join].successors))

    def test_cfg_leaves_out_unreachable_blocks(self):
        dead_block = ir.Block('dead')
        self.function.add_block(dead_block)
        self.builder.set_block(dead_block)
        self.builder.emit_jump(self.join)
        graph, block_map = ir_function_to_graph(self.function)
        self.assertEqual(4, len(graph))
        self.assertNotIn(dead_block, block_map)

    def test_children(self):
        tree = DominatorTree(self.function)
        self.assertEqual(
            {self.left, self.right, self.join},
            set(tree.children(self.entry)))
        self.assertEqual([], tree.children(self.join))

    def test_block_dominance(self):
        tree = DominatorTree(self.function)
        self.assertTrue(tree.block_dominates(self.entry, self.join))
        self.assertTrue(tree.block_dominates(self.join, self.join))
        self.assertFalse(tree.block_dominates(self.left, self.join))
        self.assertFalse(tree.block_dominates(self.join, self.entry))
        self.assertFalse(tree.block_strictly_dominates(self.join, self.join))
        self.assertTrue(tree.block_strictly_dominates(self.entry, self.left))

    def test_immediate_dominators(self):
        tree = DominatorTree(self.function)
        self.assertIsNone(tree.immediate_dominator(self.entry))
        self.assertIs(self.entry, tree.immediate_dominator(self.left))
        self.assertIs(self.entry, tree.immediate_dominator(self.right))
        self.assertIs(self.entry, tree.immediate_dominator(self.join))

    def test_arguments_dominate_everything(self):
        tree = DominatorTree(self.function)
        self.assertTrue(tree.dominates(self.a, ir.Use(self.x, 'a')))
        self.assertTrue(tree.dominates(self.a, ir.Use(self.phi, self.left)))
        constant = ir.Const(2, ir.i32)
        self.assertTrue(tree.dominates(constant, ir.Use(self.y, 'b')))

    def test_same_block(self):
        """ Earlier instructions dominate later ones in the same block """
        tree = DominatorTree(self.function)
        self.assertTrue(tree.dominates(self.x, ir.Use(self.x2, 'a')))
        self.assertFalse(tree.dominates(self.x2, ir.Use(self.x, 'a')))
        self.assertFalse(tree.instruction_dominates(self.x, self.x))

    def test_other_block(self):
        tree = DominatorTree(self.function)
        self.assertTrue(tree.dominates(self.x, ir.Use(self.z, 'b')))
        self.assertTrue(tree.dominates(self.x, ir.Use(self.y, 'a')))
        self.assertFalse(tree.dominates(self.y, ir.Use(self.z, 'b')))

    def test_phi_uses(self):
        """ A phi input is used at the end of the incoming block """
        tree = DominatorTree(self.function)
        self.assertTrue(tree.dominates(self.y, ir.Use(self.phi, self.left)))
        self.assertFalse(
            tree.dominates(self.y, ir.Use(self.phi, self.right)))
        self.assertTrue(tree.dominates(self.x, ir.Use(self.phi, self.right)))

    def test_unreachable_code(self):
        """ Uses in unreachable code are dominated by everything, values
        defined there dominate nothing reachable """
        dead_block = ir.Block('dead')
        self.function.add_block(dead_block)
        self.builder.set_block(dead_block)
        dead = self.builder.emit_add(self.y, self.b, ir.i32, name='dead')
        self.builder.emit_return(dead)

        tree = DominatorTree(self.function)
        self.assertFalse(tree.is_reachable(dead_block))
        self.assertTrue(tree.is_reachable(self.join))
        self.assertTrue(tree.dominates(self.y, ir.Use(dead, 'a')))
        self.assertTrue(tree.dominates(self.z, ir.Use(dead, 'a')))
        self.assertFalse(tree.dominates(dead, ir.Use(self.z, 'b')))

    def test_definition_without_block(self):
        tree = DominatorTree(self.function)
        loose = ir.add(self.a, self.b, 'loose', ir.i32)
        with self.assertRaises(ValueError):
            tree.dominates(loose, ir.Use(self.z, 'b'))


if __name__ == '__main__':
    unittest.main()
