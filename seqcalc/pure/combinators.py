"""Parser combinators over an immutable cursor into source text.

The `pure` directory contains the language-independent building blocks- not sufficient for the seqcalc language on its
own (see seqcalc/lang/lexical.py for the grammar).

A parser is any callable taking a Cursor and returning a pair

```
(cursor, value)   ; value is None if and only if the parser failed
```

Parsers never raise. On failure the returned cursor is either the cursor the parser was given or one advanced as far as
the chain got before failing, which is what a caller reports as the unparsed remainder. Alternation always restarts the
second branch from the cursor the first branch was given, so every `or_` is a full backtracking point: there is no cut
and no memoization, and grammars must be ordered accordingly.

Source: https://www.cs.nott.ac.uk/~pszgmh/pearl.pdf (Hutton & Meijer, "Monadic Parser Combinators")
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Cursor:
    """Position in source. Advancing shares source instead of slicing it."""
    source: str
    offset: int = 0

    def advance(self, steps):
        return Cursor(self.source, self.offset + steps)

    def remaining(self):
        return len(self.source) - self.offset

    def is_empty(self):
        return self.remaining() <= 0

    def head(self):
        return self.source[self.offset]

    def unparsed(self):
        return self.source[self.offset:]


class Parser:
    """Callable wrapper around a cursor -> (cursor, value) function, so rules can be chained with methods."""

    def __init__(self, fn, name=None):
        self.fn = fn
        self.name = name

    def __call__(self, cursor):
        return self.fn(cursor)

    def parse(self, text):
        """Runs this parser from the start of text."""
        return self(Cursor(text))

    def map(self, mapper):
        """Transforms a successful value; failures pass through untouched."""

        def _map(cursor):
            rest, value = self(cursor)
            if value is None:
                return rest, None
            return rest, mapper(value)

        return Parser(_map)

    def map_to(self, value):
        return self.map(lambda __: value)

    def bind(self, fn):
        """Sequencing: fn receives the value and returns the parser to run on the remaining input."""

        def _bind(cursor):
            rest, value = self(cursor)
            if value is None:
                return rest, None
            return fn(value)(rest)

        return Parser(_bind)

    def or_(self, alternative):
        """Tries alternative from the original cursor if self fails, however far self got."""

        def _or(cursor):
            rest, value = self(cursor)
            if value is None:
                return alternative(cursor)
            return rest, value

        return Parser(_or)

    __or__ = or_

    def many(self):
        """Zero or more repetitions, greedy. Stops at the cursor preceding the first failed attempt."""

        def _many(cursor):
            values = []
            while True:
                rest, value = self(cursor)
                if value is None:
                    return cursor, values
                values.append(value)
                if rest.offset == cursor.offset:
                    return rest, values  # self succeeds without consuming: repeating it would never end
                cursor = rest

        return Parser(_many)

    def at_least_one(self):
        return self.bind(lambda first: self.many().map(lambda others: [first] + others))

    def delimited_by(self, delimiter):
        """One or more occurrences separated by delimiter, e.g. `1,2,3`."""
        return self.bind(lambda first: delimiter.skip_left(self).many().map(lambda others: [first] + others))

    def between(self, left, right=None):
        """self surrounded by left and right (right defaults to left). Only self's value is kept."""
        if right is None:
            right = left
        return left.skip_left(self.skip_right(right))

    def skip_left(self, next_parser):
        """Runs self then next_parser, keeping next_parser's value."""
        return self.bind(lambda __: next_parser)

    def skip_right(self, next_parser):
        """Runs self then next_parser, keeping self's value."""
        return self.bind(lambda value: next_parser.map_to(value))

    def text(self):
        """Joins a parsed list of characters into a string."""
        return self.map("".join)

    def token(self):
        """Consumes the whitespace around self."""
        return self.between(whitespace.many())

    def __repr__(self):
        return f"Parser({self.name or self.fn.__name__})"


def pure(value):
    """Always succeeds with value, consuming nothing."""
    return Parser(lambda cursor: (cursor, value), "pure")


def fail():
    """Always fails, consuming nothing."""
    return Parser(lambda cursor: (cursor, None), "fail")


def satisfy(predicate, name=None):
    """Consumes one character if predicate holds for it."""

    def _satisfy(cursor):
        if cursor.is_empty() or not predicate(cursor.head()):
            return cursor, None
        return cursor.advance(1), cursor.head()

    return Parser(_satisfy, name)


def char(c):
    return satisfy(lambda head: head == c, repr(c))


def first_of(*parsers):
    """First successful parser, tried in order from the same cursor."""
    result = fail()
    for parser in parsers:
        result = result.or_(parser)
    return result


def symbol(literal):
    """Matches literal character by character. Rolls back to the original cursor on a mismatch."""
    if not literal:
        return pure("")

    head, tail = literal[0], literal[1:]
    matched = char(head).bind(lambda c: symbol(tail).map(lambda rest: c + rest))

    def _symbol(cursor):
        rest, value = matched(cursor)
        if value is None:
            return cursor, None
        return rest, value

    return Parser(_symbol, repr(literal))


def defer(thunk):
    """Builds the parser from thunk on every call, so rules can refer to rules that are not constructed yet."""
    return Parser(lambda cursor: thunk()(cursor), "defer")


def _eof(cursor):
    if cursor.is_empty():
        return cursor, ""
    return cursor, None


eof = Parser(_eof, "eof")

any_char = satisfy(lambda __: True, "any_char")
digit = satisfy(str.isdigit, "digit")
alpha = satisfy(str.isalpha, "alpha")
whitespace = satisfy(str.isspace, "whitespace")

digits = digit.at_least_one().text()
sign = char("-") | pure("")

# whole numbers: 42, -7
integer = sign.bind(lambda s: digits.map(lambda whole: int(s + whole)))

# decimals: 2, -2.78, 0.5 (the fractional part is optional)
decimal = sign.bind(
    lambda s: digits.bind(
        lambda whole: char(".").skip_left(digits).map(lambda frac: float(f"{s}{whole}.{frac}")) | pure(float(s + whole))
    )
)
