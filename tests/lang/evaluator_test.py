import asyncio
import unittest

from seqcalc.lang.evaluator import evaluate, evaluate_program, evaluate_statement, to_display_string
from seqcalc.lang.lexical import parse_program, parse_statement
from seqcalc.lang.nodes import Add, ExpressionType, Name, Number, Out, Print, Sequence, SequenceRange, StringNode
from seqcalc.pure.result import Success

PI_PROGRAM = """
    var n = 500
    var sequence = map({0 .. n}, i -> (-1)^i / (2.0 * i + 1))
    var pi = 4 * reduce(sequence, 0, x y -> x + y)
    print "pi is "
    out pi
"""


def expr(text):
    """Normalized expression parsed from text."""
    return parse_statement(f"out {text}").value.expression


def seq(*values):
    return Sequence([Number(value) for value in values])


class EvaluateTestCase(unittest.IsolatedAsyncioTestCase):

    async def assertEvaluates(self, expected, text, environment=None):
        result = await evaluate(expr(text), environment if environment is not None else {})
        self.assertEqual(Success(expected), result, text)

    async def assertFails(self, fragments, text, environment=None):
        result = await evaluate(expr(text), environment if environment is not None else {})
        self.assertFalse(result.is_success(), text)
        for fragment in fragments:
            self.assertIn(fragment, result.reason, text)

    async def test_number(self):
        for value in [0, 10, -5, 0.25, 123456]:
            self.assertEqual(Success(Number(value)), await evaluate(Number(value), {}))

    async def test_name(self):
        await self.assertEvaluates(Number(10), "var", {"var": Number(10)})
        await self.assertFails(["unknown variable", "'nothing'"], "nothing")

    async def test_arithmetic(self):
        cases = {
            "5 + 6 + 7 + 8": 26,
            "5 * 6 * 7": 210,
            "2 ^ 3 ^ 4": 4096,
            "5 - 6 - 7": -8,
            "4 / 8 / 2": 0.25,
            "10 - 1 + 2": 11,
            "(1 + 2) * 3 ^ 2": 27,
        }
        for case, expected in cases.items():
            await self.assertEvaluates(Number(expected), case)

    async def test_arithmetic_with_names(self):
        environment = {"a": Number(5), "b": Number(6), "c": Number(7), "d": Number(8)}
        await self.assertEvaluates(Number(26), "a + b + c + d", environment)

    async def test_divide_by_zero(self):
        await self.assertFails(["divide 1 by zero"], "1 / (2 - 2)")
        await self.assertFails(["divide 3 by zero"], "3 / 2 / 0")
        await self.assertEvaluates(Number(0), "0 / 4")

    async def test_range(self):
        await self.assertEvaluates(seq(0, 1, 2), "{0 .. 2}")
        await self.assertEvaluates(seq(0, 1, 2, 3, 4), "{0 .. 1 + 3}")
        await self.assertEvaluates(seq(3), "{3 .. 3}")
        await self.assertFails(["malformed range", "3", "1"], "{3 .. 1}")
        await self.assertFails(["should be a number", "sequence"], "{{1, 2} .. 3}")

    async def test_sequence(self):
        await self.assertEvaluates(seq(1, 2, 3), "{1, 1 + 1, 3}")
        await self.assertEvaluates(seq(), "{}")
        await self.assertFails(["unknown variable 'x'"], "{1, x, y}")

    async def test_map(self):
        await self.assertEvaluates(seq(2, 3, 4), "map({1, 1 + 1, 3}, value -> value + 1)")
        await self.assertEvaluates(seq(1, 2, 3, 4, 5), "map({0 .. 4}, value -> value + 1)")
        self.assertEqual(
            await evaluate(expr("map({0 .. 4}, v -> v + 1)"), {}),
            await evaluate(expr("map({0, 1, 2, 3, 4}, v -> v + 1)"), {}),
        )
        await self.assertEvaluates(seq(), "map({}, v -> v)")
        await self.assertEvaluates(seq(10, 20), "map({1, 2}, v -> v * k)", {"k": Number(10)})

    async def test_map_scope(self):
        environment = {"v": Number(100)}
        await self.assertEvaluates(seq(1, 2), "map({1, 2}, v -> v)", environment)
        self.assertEqual({"v": Number(100)}, environment)

    async def test_map_failures(self):
        await self.assertFails(["should be a sequence", "number"], "map(10, v -> v)")
        await self.assertFails(["should be a number", "sequence"], "map({1, 2}, v -> {v})")
        await self.assertFails(["divide 1 by zero"], "map({2, 1, 0}, v -> 1 / v)")

    async def test_reduce(self):
        await self.assertEvaluates(Number(5), "reduce({}, 5, x y -> x + y)")
        await self.assertEvaluates(Number(1), "reduce({1}, 0, x y -> x + y)")
        await self.assertEvaluates(Number(6), "reduce({1, 2, 3}, 0, x y -> x + y)")
        await self.assertEvaluates(Number(24), "reduce({1 .. 4}, 1, acc x -> acc * x)")
        await self.assertEvaluates(Number(-6), "reduce({1, 2, 3}, 0, x y -> x - y)")

    async def test_reduce_failures(self):
        await self.assertFails(["unknown variable 'nope'"], "reduce(nope, 0, x y -> x)")
        await self.assertFails(["should be a number"], "reduce({1}, {2}, x y -> x)")
        await self.assertFails(["unknown variable 'z'"], "reduce({1, 2}, 0, x y -> z)")
        await self.assertFails(["unknown variable 'nope'"], "reduce({}, nope, x y -> x)")

    async def test_expected_type(self):
        result = await evaluate(Number(1), {}, ExpressionType.SEQUENCE)
        self.assertFalse(result.is_success())
        self.assertIn("expression 1 should be a sequence, yet it is a number", result.reason)

        await self.assertFails(["expression {1, 2} should be a number, yet it is a sequence"], "{1, 2} + 1")


class DisplayTestCase(unittest.IsolatedAsyncioTestCase):

    async def test_number(self):
        cases = {-5: "-5", 0: "0", 10: "10", 0.5: "0.5"}
        for case, expected in cases.items():
            self.assertEqual(Success(expected), await to_display_string(Number(case), {}))

    async def test_sequence(self):
        self.assertEqual(Success("{}"), await to_display_string(Sequence([]), {}))
        self.assertEqual(Success("{0, 1, 2}"), await to_display_string(seq(0, 1, 2), {}))
        self.assertEqual(Success("{0, 1, 2}"), await to_display_string(SequenceRange(Number(0), Number(2)), {}))

    async def test_name(self):
        self.assertEqual(Success("10"), await to_display_string(Name("foo"), {"foo": Number(10)}))
        environment = {"foo": Add([Number(5), Number(4), Number(1)])}
        self.assertEqual(Success("10"), await to_display_string(Name("foo"), environment))

        result = await to_display_string(Name("foo"), {})
        self.assertFalse(result.is_success())

    async def test_unevaluated(self):
        self.assertEqual(Success("{2, 4}"), await to_display_string(expr("map({1, 2}, v -> v * 2)"), {}))

        result = await to_display_string(expr("1 / 0"), {})
        self.assertIn("by zero", result.reason)


class StatementTestCase(unittest.IsolatedAsyncioTestCase):

    async def test_declaration(self):
        environment = {}
        result = await evaluate_statement(parse_statement("var x = 1 + 2").value, environment)

        self.assertEqual(Success(""), result)
        self.assertEqual({"x": Number(3)}, environment)

    async def test_failed_declaration(self):
        environment = {"x": Number(1)}
        result = await evaluate_statement(parse_statement("var x = y").value, environment)

        self.assertFalse(result.is_success())
        self.assertEqual({"x": Number(1)}, environment)

    async def test_print(self):
        self.assertEqual(Success("hello world"), await evaluate_statement(Print(StringNode("hello world")), {}))

    async def test_out(self):
        self.assertEqual(Success("{1, 4}"), await evaluate_statement(Out(expr("map({1, 2}, v -> v ^ 2)")), {}))


class ProgramTestCase(unittest.IsolatedAsyncioTestCase):

    async def run_program(self, text, environment=None):
        return await evaluate_program(parse_program(text).value, environment if environment is not None else {})

    async def test_whole_program(self):
        self.assertEqual(Success("pi is 3.143589"), await self.run_program(PI_PROGRAM))

    async def test_output_is_concatenated(self):
        program = 'var xs = {1 .. 3}\nprint "xs is "\nout xs\nprint " and its sum is "\nout reduce(xs, 0, a b -> a + b)'
        self.assertEqual(Success("xs is {1, 2, 3} and its sum is 6"), await self.run_program(program))

    async def test_environment_is_threaded(self):
        environment = {}
        await self.run_program("var a = 2\nvar b = a * 3", environment)
        self.assertEqual({"a": Number(2), "b": Number(6)}, environment)

    async def test_failure_discards_output(self):
        environment = {}
        result = await self.run_program('print "before"\nout 1\nvar x = 1 / 0\nout 2', environment)

        self.assertFalse(result.is_success())
        self.assertIn("by zero", result.reason)
        self.assertNotIn("x", environment)

    async def test_cancellation(self):
        environment = {}
        statements = parse_program("var a = 1\nvar xs = map({0 .. 100000}, v -> v * 2)").value
        task = asyncio.ensure_future(evaluate_program(statements, environment))

        for __ in range(50):
            await asyncio.sleep(0)
        self.assertFalse(task.done())

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual({"a": Number(1)}, environment)

    async def test_cancellation_during_reduce(self):
        environment = {}
        statements = parse_program("var total = reduce({0 .. 100000}, 0, x y -> x + y)").value
        task = asyncio.ensure_future(evaluate_program(statements, environment))

        for __ in range(50):
            await asyncio.sleep(0)
        self.assertFalse(task.done())

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual({}, environment)


if __name__ == '__main__':
    unittest.main()
