"""Abstract syntax tree for the seqcalc language, plus the normalization pass run on every parsed statement.

Node kinds form a closed set. Adding an operator means one new node class here and one new case in `normalize`,
`evaluate` and `to_display_string` (see seqcalc/lang/evaluator.py).

```
<expression> ::= Number | Name
               | Add | Sub | Mul | Div | Pow        ; n-ary, one or more operands
               | SequenceRange | Sequence
               | Map | Reduce
<statement>  ::= VarDeclaration | Print | Out
```

Nodes are frozen: evaluation builds new nodes instead of rewriting old ones.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Tuple

import numpy as np


class ExpressionType(Enum):
    """Kind of an expression. NUMBER and SEQUENCE are the only normal forms."""
    ANY = "anything"
    NUMBER = "number"
    SEQUENCE = "sequence"
    RANGE = "sequence range"
    UNEVALUATED = "unevaluated expression"

    def __str__(self):
        return self.value


class Node:
    """Superclass for every node produced by the grammar."""


class Expression(Node):
    """Superclass for nodes that evaluate to a value."""
    type = ExpressionType.UNEVALUATED


def _freeze(node, attr):
    """Stores node.attr as a tuple so list arguments still give hashable, immutable nodes."""
    object.__setattr__(node, attr, tuple(getattr(node, attr)))


@dataclass(frozen=True)
class Number(Expression):
    """Single-precision numeric literal."""
    value: np.float32
    type = ExpressionType.NUMBER

    def __post_init__(self):
        object.__setattr__(self, "value", np.float32(self.value))


@dataclass(frozen=True)
class Name(Expression):
    """Reference to a variable or lambda parameter."""
    value: str


@dataclass(frozen=True)
class Operation(Expression):
    """n-ary arithmetic node. The grammar produces one for every precedence level, even with a single operand."""
    operands: Tuple[Expression, ...]

    def __post_init__(self):
        _freeze(self, "operands")


class Add(Operation):
    symbol = "+"


class Sub(Operation):
    symbol = "-"


class Mul(Operation):
    symbol = "*"


class Div(Operation):
    symbol = "/"


class Pow(Operation):
    symbol = "^"


@dataclass(frozen=True)
class SequenceRange(Expression):
    """{start .. end}, both bounds inclusive."""
    start: Expression
    end: Expression
    type = ExpressionType.RANGE


@dataclass(frozen=True)
class Sequence(Expression):
    """{e0, e1, ...}. In normal form every operand is a Number."""
    operands: Tuple[Expression, ...]
    type = ExpressionType.SEQUENCE

    def __post_init__(self):
        _freeze(self, "operands")


@dataclass(frozen=True)
class Lambda1(Node):
    """arg -> body, only ever used as a map argument."""
    arg: Name
    body: Expression


@dataclass(frozen=True)
class Lambda2(Node):
    """first second -> body, only ever used as a reduce argument."""
    first: Name
    second: Name
    body: Expression


@dataclass(frozen=True)
class Map(Expression):
    sequence: Expression
    mapper: Lambda1


@dataclass(frozen=True)
class Reduce(Expression):
    sequence: Expression
    primer: Expression
    reducer: Lambda2


@dataclass(frozen=True)
class StringNode(Node):
    value: str


class Statement(Node):
    """Superclass for top-level program statements."""


@dataclass(frozen=True)
class VarDeclaration(Statement):
    """var name = expression"""
    name: Name
    expression: Expression


@dataclass(frozen=True)
class Print(Statement):
    """print "string" """
    string: StringNode


@dataclass(frozen=True)
class Out(Statement):
    """out expression"""
    expression: Expression


def normalize(node):
    """Unwraps every single-operand arithmetic node into its operand, recursing into all children. Idempotent."""
    if isinstance(node, Operation):
        if len(node.operands) == 1:
            return normalize(node.operands[0])
        return type(node)(tuple(normalize(operand) for operand in node.operands))

    elif isinstance(node, Sequence):
        return Sequence(tuple(normalize(operand) for operand in node.operands))

    elif isinstance(node, (Number, Name, StringNode)):
        return node

    elif isinstance(node, Node):
        # remaining kinds hold a fixed set of child nodes (and plain names)
        return type(node)(*(normalize(getattr(node, field.name)) for field in fields(node)))

    raise TypeError(f"cannot normalize {node!r}")
