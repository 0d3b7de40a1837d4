"""Tree-walking evaluator for seqcalc. Reduces expressions to normal form (a Number, or a Sequence of Numbers) against an
environment, a dict of name -> normal form.

Every function here is a coroutine. `checkpoint` is awaited before each expression node, before each map element and
before each reduce step, so a caller running the evaluation as an asyncio Task can interleave other work or cancel it
between those points. A cancelled evaluation just never resumes: declarations commit their binding only after the
whole expression succeeded, so the caller's environment is never left half-updated.

User errors (unknown variables, type mismatches, malformed ranges, division by zero) are returned as Failure values.
Only an unknown node type, which the grammar cannot produce, raises.
"""

import asyncio
import logging

from seqcalc.lang.nodes import (Add, Div, ExpressionType, Map, Mul, Name, Number, Out, Pow, Print, Reduce, Sequence,
                                SequenceRange, Sub, VarDeclaration)
from seqcalc.lang.numerical import divide, fold_product, fold_sum, integer_range, number_text, power, subtract
from seqcalc.pure.result import Failure, Success, traverse

logger = logging.getLogger("seqcalc.evaluator")


async def checkpoint():
    """Suspension point: hands control back to the event loop once."""
    await asyncio.sleep(0)


def check_type(expression, expected):
    return expected is ExpressionType.ANY or expression.type is expected


def _lookup(name, environment):
    if name.value not in environment:
        return Failure(f"unknown variable '{name.value}'")
    return Success(environment[name.value])


async def evaluate(expression, environment, expected=ExpressionType.ANY):
    """Evaluates expression to normal form. If expected is not ANY, a normal form of another type is a Failure naming
    the rendered expression and both types.
    """
    await checkpoint()
    result = await _evaluate(expression, environment)
    if not result.is_success() or check_type(result.value, expected):
        return result

    rendered = await to_display_string(result.value, environment)
    if not rendered.is_success():
        return rendered
    return Failure(f"expression {rendered.value} should be a {expected}, yet it is a {result.value.type}")


async def _numbers(operands, environment):
    """float32 values of operands, each evaluated expecting a number."""
    result = await traverse(operands, lambda operand: evaluate(operand, environment, ExpressionType.NUMBER))
    return result.map(lambda numbers: [number.value for number in numbers])


async def _base_and_rest(operation, environment):
    """Splits an operation into its evaluated first operand and the evaluated others."""
    base = await evaluate(operation.operands[0], environment, ExpressionType.NUMBER)
    if not base.is_success():
        return base
    rest = await _numbers(operation.operands[1:], environment)
    return rest.map(lambda values: (base.value.value, values))


async def _evaluate(expression, environment):
    if isinstance(expression, Number):
        return Success(expression)

    elif isinstance(expression, Name):
        bound = _lookup(expression, environment)
        if not bound.is_success() or isinstance(bound.value, Number):
            return bound
        return await evaluate(bound.value, environment)

    elif isinstance(expression, Add):
        return (await _numbers(expression.operands, environment)).map(lambda values: Number(fold_sum(values)))

    elif isinstance(expression, Mul):
        return (await _numbers(expression.operands, environment)).map(lambda values: Number(fold_product(values)))

    elif isinstance(expression, Sub):
        split = await _base_and_rest(expression, environment)
        return split.map(lambda pair: Number(subtract(*pair)))

    elif isinstance(expression, Div):
        split = await _base_and_rest(expression, environment)
        if not split.is_success():
            return split

        dividend, divisors = split.value
        divisor = fold_product(divisors)
        if divisor == 0:
            return Failure(f"trying to divide {number_text(dividend)} by zero")
        return Success(Number(divide(dividend, divisor)))

    elif isinstance(expression, Pow):
        split = await _base_and_rest(expression, environment)
        return split.map(lambda pair: Number(power(*pair)))

    elif isinstance(expression, SequenceRange):
        return await _evaluate_range(expression, environment)

    elif isinstance(expression, Sequence):
        result = await traverse(expression.operands,
                                lambda operand: evaluate(operand, environment, ExpressionType.NUMBER))
        return result.map(Sequence)

    elif isinstance(expression, Map):
        return await _evaluate_map(expression, environment)

    elif isinstance(expression, Reduce):
        return await _evaluate_reduce(expression, environment)

    raise TypeError(f"cannot evaluate {expression!r}")


async def _evaluate_range(expression, environment):
    start = await evaluate(expression.start, environment, ExpressionType.NUMBER)
    if not start.is_success():
        return start
    end = await evaluate(expression.end, environment, ExpressionType.NUMBER)
    if not end.is_success():
        return end

    start, end = start.value.value, end.value.value
    if start > end:
        return Failure(f"malformed range: {number_text(start)} is greater than {number_text(end)}")
    return Success(Sequence(Number(value) for value in integer_range(start, end)))


async def _evaluate_map(expression, environment):
    source = await evaluate(expression.sequence, environment, ExpressionType.SEQUENCE)
    if not source.is_success():
        return source

    mapper = expression.mapper
    scope = dict(environment)  # one copy for the whole map; the parameter is rebound for every element

    async def apply(element):
        await checkpoint()
        scope[mapper.arg.value] = element
        return await evaluate(mapper.body, scope, ExpressionType.NUMBER)

    result = await traverse(source.value.operands, apply)
    return result.map(Sequence)


async def _evaluate_reduce(expression, environment):
    source = await evaluate(expression.sequence, environment, ExpressionType.SEQUENCE)
    if not source.is_success():
        return source
    primer = await evaluate(expression.primer, environment, ExpressionType.NUMBER)
    if not primer.is_success():
        return primer

    reducer = expression.reducer
    scope = dict(environment)
    accumulator = primer.value

    for element in source.value.operands:
        await checkpoint()
        scope[reducer.first.value] = accumulator
        scope[reducer.second.value] = element

        step = await evaluate(reducer.body, scope, ExpressionType.NUMBER)
        if not step.is_success():
            return step
        accumulator = step.value

    return Success(accumulator)


async def to_display_string(expression, environment):
    """Renders expression. Anything that is not already a normal form is evaluated first, so rendering can fail."""
    if isinstance(expression, Number):
        return Success(number_text(expression.value))

    elif isinstance(expression, Name):
        bound = _lookup(expression, environment)
        if not bound.is_success():
            return bound
        return await to_display_string(bound.value, environment)

    elif isinstance(expression, Sequence):
        parts = await traverse(expression.operands, lambda operand: to_display_string(operand, environment))
        return parts.map(lambda texts: "{" + ", ".join(texts) + "}")

    result = await evaluate(expression, environment)
    if not result.is_success():
        return result
    return await to_display_string(result.value, environment)


async def evaluate_statement(statement, environment):
    """Runs statement, returning its output. Declarations write to environment (only once their expression succeeded)
    and output nothing.
    """
    if isinstance(statement, VarDeclaration):
        result = await evaluate(statement.expression, environment)
        if not result.is_success():
            return result
        environment[statement.name.value] = result.value
        return Success("")

    elif isinstance(statement, Print):
        return Success(statement.string.value)

    elif isinstance(statement, Out):
        return await to_display_string(statement.expression, environment)

    raise TypeError(f"cannot evaluate statement {statement!r}")


async def evaluate_program(statements, environment):
    """Runs statements in order against one environment and concatenates their output. The first failing statement
    fails the whole program: no output at all is returned, not even that of statements before it.
    """
    logger.debug("evaluating %d statement(s)", len(statements))
    result = await traverse(statements, lambda statement: evaluate_statement(statement, environment))
    if not result.is_success():
        logger.debug("evaluation failed: %s", result.reason)
    return result.map("".join)
