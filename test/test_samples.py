""" Optimize complete functions and check that they compute the same
results as before. """

import unittest
from ssaopt import ir
from ssaopt import irutils
from ssaopt.api import optimize, default_passes
from ssaopt.common import IrFormError
from ssaopt.irutils import evaluate
from ssaopt.opt import DeadCodeEliminationPass
from ssaopt.opt import CommonSubexpressionEliminationPass
from ssaopt.opt import StrengthReductionPass


def make_compute(module):
    """ Create the function:

    .. code::

        int compute(int a, int b) {
            int d = a * 8 + b;
            int e = d / 16;
            int c = a + b;
            int f = a + 1;
            e = e * (a + b);
            e = c + e;
            return e;
        }

    """
    builder = irutils.Builder()
    builder.set_module(module)
    function = builder.new_function('compute', ir.i32)
    builder.set_function(function)
    entry = builder.new_block()
    function.entry = entry
    builder.set_block(entry)
    a = builder.new_parameter('a', ir.i32)
    b = builder.new_parameter('b', ir.i32)
    t1 = builder.emit_mul(a, 8, ir.i32, name='t1')
    d = builder.emit_add(t1, b, ir.i32, name='d')
    e = builder.emit_sdiv(d, 16, ir.i32, name='e')
    c = builder.emit_add(a, b, ir.i32, name='c')
    builder.emit_add(a, 1, ir.i32, name='f')
    t2 = builder.emit_add(a, b, ir.i32, name='t2')
    e = builder.emit_mul(e, t2, ir.i32, name='e')
    e = builder.emit_add(c, e, ir.i32, name='e')
    builder.emit_return(e)
    return function


def make_sum(module):
    """ Create a loop summing i * 4 + i * 4 for i below n """
    builder = irutils.Builder()
    builder.set_module(module)
    function = builder.new_function('sum', ir.i32)
    builder.set_function(function)
    entry = builder.new_block()
    loop = builder.new_block()
    body = builder.new_block()
    done = builder.new_block()
    function.entry = entry
    n = builder.new_parameter('n', ir.i32)

    builder.set_block(entry)
    builder.emit_jump(loop)

    builder.set_block(loop)
    i = builder.emit(ir.Phi('i', ir.i32))
    total = builder.emit(ir.Phi('total', ir.i32))
    builder.emit(ir.CJump(i, '<', n, body, done))

    builder.set_block(body)
    x = builder.emit_mul(i, 4, ir.i32, name='x')
    y = builder.emit_mul(i, 4, ir.i32, name='y')
    z = builder.emit_add(x, y, ir.i32, name='z')
    total2 = builder.emit_add(total, z, ir.i32, name='total')
    i2 = builder.emit_add(i, 1, ir.i32, name='i')
    builder.emit_jump(loop)

    i.set_incoming(entry, ir.Const(0, ir.i32))
    i.set_incoming(body, i2)
    total.set_incoming(entry, ir.Const(0, ir.i32))
    total.set_incoming(body, total2)

    builder.set_block(done)
    builder.emit_return(total)
    return function


class ComputeTestCase(unittest.TestCase):
    """ Run the usual pipeline over a small arithmetic function """
    def setUp(self):
        self.reference = make_compute(ir.Module('reference'))
        self.module = ir.Module('test')
        self.function = make_compute(self.module)
        self.passes = [
            StrengthReductionPass(),
            CommonSubexpressionEliminationPass(),
            DeadCodeEliminationPass(),
        ]

    def test_result(self):
        self.assertTrue(optimize(self.module, passes=self.passes))
        self.assertEqual(5202, evaluate(self.function, 100, 2))

    def test_same_results(self):
        optimize(self.module, passes=self.passes)
        for a, b in [(100, 2), (0, 0), (7, 9), (12345, 678), (1, 15)]:
            self.assertEqual(
                evaluate(self.reference, a, b),
                evaluate(self.function, a, b))

    def test_negative_dividend(self):
        """ Division by sixteen became an arithmetic shift, which rounds
        toward minus infinity where the division truncates toward zero """
        optimize(self.module, passes=self.passes)
        self.assertEqual(-1, evaluate(self.reference, -1, 0))
        self.assertEqual(0, evaluate(self.function, -1, 0))

    def test_instructions(self):
        optimize(self.module, passes=self.passes)
        operations = [
            i.operation for i in self.function.get_instructions_of_type(
                ir.Binop)]
        self.assertEqual(
            ['shl', 'add', 'ashr', 'add', 'mul', 'add'], operations)
        self.assertNotIn('f', [i.name for i in self.function.entry])

    def test_transformations(self):
        optimize(self.module, passes=self.passes)
        srcf, cse, dce = self.passes
        self.assertEqual(
            ['reduce', 'reduce'], [t.kind for t in srcf.transformations])
        self.assertEqual(
            ['Strength reduction: i32 t1 = mul a, 8 -> a<<3',
             'Strength reduction: i32 e = sdiv d, 16 -> d>>4'],
            [t.message for t in srcf.transformations])
        self.assertEqual(1, len(cse.transformations))
        self.assertEqual(
            'Found local common subexpression: i32 t2 = add a, b, '
            'replaced by c',
            cse.transformations[0].message)
        self.assertEqual(
            ['Deleting instruction: i32 f = add a, 1'],
            [t.message for t in dce.transformations])

    def test_second_time(self):
        self.assertTrue(optimize(self.module))
        self.assertFalse(optimize(self.module))

    def test_default_passes(self):
        self.assertEqual(
            [StrengthReductionPass, CommonSubexpressionEliminationPass,
             DeadCodeEliminationPass],
            [type(p) for p in default_passes()])

    def test_no_passes(self):
        self.assertFalse(optimize(self.module, passes=[]))
        self.assertEqual(9, self.function.num_instructions())

    def test_logging(self):
        with self.assertLogs('optimize', level='INFO') as cm:
            optimize(self.module)
        self.assertEqual(['INFO:optimize:Optimizing module test'], cm.output)

    def test_invalid_module(self):
        self.function.entry.remove_instruction(
            self.function.entry.last_instruction)
        with self.assertRaises(IrFormError):
            optimize(self.module)


class LoopTestCase(unittest.TestCase):
    def test_sum(self):
        reference = make_sum(ir.Module('reference'))
        module = ir.Module('test')
        function = make_sum(module)
        self.assertTrue(optimize(module))

        body = function.blocks[2]
        self.assertEqual(
            ['shl', 'add', 'add', 'add'],
            [i.operation for i in body.instructions[:-1]])
        for n in [0, 1, 2, 10, 100]:
            self.assertEqual(evaluate(reference, n), evaluate(function, n))
        self.assertEqual(360, evaluate(function, 10))


class InterpreterTestCase(unittest.TestCase):
    def setUp(self):
        self.builder = irutils.Builder()
        self.module = ir.Module('test')
        self.builder.set_module(self.module)
        self.function = self.builder.new_function('f', ir.i32)
        self.builder.set_function(self.function)
        self.entry = self.builder.new_block()
        self.function.entry = self.entry
        self.builder.set_block(self.entry)
        self.a = self.builder.new_parameter('a', ir.i32)

    def test_memory(self):
        address = self.builder.new_parameter('address', ir.ptr)
        self.builder.emit_store(self.a, address)
        value = self.builder.emit_load(address, ir.i32)
        self.builder.emit_return(value)
        self.assertEqual(-5, evaluate(self.function, -5, 8))

    def test_pointer_arithmetic(self):
        base = self.builder.new_parameter('base', ir.ptr)
        address = self.builder.emit_add(base, 4, ir.ptr)
        self.builder.emit_store(self.a, address)
        value = self.builder.emit_load(address, ir.i32)
        self.builder.emit_return(value)
        irutils.verify_module(self.module)
        self.assertEqual(-5, evaluate(self.function, -5, 8))
        self.assertEqual(
            -5, evaluate(self.function, -5, 2 ** 32 - 4, memory_size=8))

    def test_external_call(self):
        external = ir.ExternalFunction('twice', [ir.i32], ir.i32)
        self.module.add_external(external)
        value = self.builder.emit(
            ir.FunctionCall(external, [self.a], 'call', ir.i32))
        self.builder.emit_return(value)
        externals = {'twice': lambda x: 2 * x}
        self.assertEqual(
            14, evaluate(self.function, 7, externals=externals))

    def test_unary(self):
        value = self.builder.emit(ir.Unop('neg', self.a, 'neg', ir.i32))
        self.builder.emit_return(value)
        self.assertEqual(-3, evaluate(self.function, 3))

    def test_procedure(self):
        external = ir.ExternalProcedure('record', [ir.i32])
        self.module.add_external(external)
        self.builder.emit_return(self.a)
        procedure = self.builder.new_procedure('p')
        self.builder.set_function(procedure)
        procedure.entry = self.builder.new_block()
        self.builder.set_block(procedure.entry)
        x = self.builder.new_parameter('x', ir.i32)
        self.builder.emit(ir.ProcedureCall(external, [x]))
        self.builder.emit_add(x, 1, ir.i32)
        self.builder.emit_exit()
        irutils.verify_module(self.module)

        optimize(self.module)
        self.assertEqual(2, len(procedure.entry))
        recorded = []
        externals = {'record': recorded.append}
        self.assertIsNone(evaluate(procedure, 4, externals=externals))
        self.assertEqual([4], recorded)

    def test_unreachable(self):
        self.builder.emit(ir.Unreachable())
        with self.assertRaises(RuntimeError):
            evaluate(self.function, 1)

    def test_wrap_around(self):
        value = self.builder.emit_add(self.a, 1, ir.i32)
        self.builder.emit_return(value)
        self.assertEqual(-2 ** 31, evaluate(self.function, 2 ** 31 - 1))

    def test_wrong_argument_count(self):
        self.builder.emit_return(self.a)
        with self.assertRaises(TypeError):
            evaluate(self.function, 1, 2)

    def test_endless_loop(self):
        self.builder.emit_jump(self.entry)
        with self.assertRaises(RuntimeError):
            evaluate(self.function, 1, max_steps=100)


if __name__ == '__main__':
    unittest.main()
