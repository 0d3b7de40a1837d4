"""Grammar for the seqcalc language, built from the combinators in seqcalc/pure/combinators.py.

```
<program>    ::= <statement> ("\\n"* <statement>)* <eof>
<statement>  ::= "var" <name> "=" <expr>          ; binds the normal form of <expr> to <name>
               | "print" <string>                 ; outputs <string> as is
               | "out" <expr>                     ; outputs the rendered normal form of <expr>

<expr>       ::= <sub_chain> ("+" <sub_chain>)*   ; loosest
<sub_chain>  ::= <mul_chain> ("-" <mul_chain>)*
<mul_chain>  ::= <div_chain> ("*" <div_chain>)*
<div_chain>  ::= <pow_chain> ("/" <pow_chain>)*
<pow_chain>  ::= <atom> ("^" <atom>)*             ; tightest, left associative: 2^3^4 = (2^3)^4
<atom>       ::= "(" <expr> ")" | <range> | <sequence> | <number> | <reduce> | <map> | <name>

<range>      ::= "{" <expr> ".." <expr> "}"
<sequence>   ::= "{" <expr> ("," <expr>)* "}" | "{" "}"
<map>        ::= "map" "(" <expr> "," <name> "->" <expr> ")"
<reduce>     ::= "reduce" "(" <expr> "," <expr> "," <name> <name> "->" <expr> ")"

<name>       ::= <letter>+
<number>     ::= "-"? <digit>+ ("." <digit>+)?
<string>     ::= '"' (<letter> | <digit> | <whitespace>)* '"'
```

Note that the precedence levels are not the conventional ones: "/" binds tighter than "*", which binds tighter than
"-", which binds tighter than "+". Programs written for this language rely on that ordering.

Every binary level is "one or more tighter items delimited by the operator", so the raw tree wraps even a lone number in
five single-operand nodes. `statement` runs `normalize` to strip them.
"""

from dataclasses import dataclass

from seqcalc.lang.nodes import (Add, Div, Lambda1, Lambda2, Map, Mul, Name, Number, Out, Pow, Print, Reduce, Sequence,
                                SequenceRange, StringNode, Sub, VarDeclaration, normalize)
from seqcalc.pure.combinators import Cursor, alpha, char, decimal, defer, digit, eof, pure, symbol, whitespace
from seqcalc.pure.result import Failure, Success


@dataclass(frozen=True)
class SyntaxErrorInfo:
    """Unparsed remainder of a failed parse, and where it starts in the source."""
    fragment: str
    offset: int


def keyword(literal):
    return symbol(literal).token()


class LangParser:
    """Rules of the seqcalc grammar. Each attribute is a Parser; `expression` and `whole_program` are the usual entry
    points.
    """

    def __init__(self):
        expression = defer(lambda: self.expression)

        self.number = decimal.map(Number).token()
        self.name = alpha.at_least_one().token().text().map(Name)
        self.string = (alpha | digit | whitespace).many().between(char('"')).text().token().map(StringNode)

        # {start .. end}
        self.sequence_range = expression.skip_right(keyword("..")).bind(
            lambda start: expression.bind(lambda end: pure(SequenceRange(start, end)))
        ).between(char("{").token(), char("}").token())

        # {e0, e1, ..., en} or {}
        self.sequence = expression.delimited_by(keyword(",")).map(Sequence).between(
            char("{").token(), char("}").token()
        ) | char("{").token().skip_left(char("}").token()).map_to(Sequence(()))

        # arg -> body
        self.lambda1 = self.name.skip_right(keyword("->")).bind(
            lambda arg: expression.map(lambda body: Lambda1(arg, body))
        ).token()

        # first second -> body
        self.lambda2 = self.name.bind(
            lambda first: self.name.skip_right(keyword("->")).bind(
                lambda second: expression.map(lambda body: Lambda2(first, second, body))
            )
        ).token()

        # map(sequence, arg -> body)
        self.map = keyword("map").skip_left(
            expression.skip_right(keyword(",")).bind(
                lambda sequence: self.lambda1.map(lambda mapper: Map(sequence, mapper))
            ).between(char("(").token(), char(")").token())
        )

        # reduce(sequence, primer, first second -> body)
        self.reduce = keyword("reduce").skip_left(
            expression.skip_right(keyword(",")).bind(
                lambda sequence: expression.skip_right(keyword(",")).bind(
                    lambda primer: self.lambda2.map(lambda reducer: Reduce(sequence, primer, reducer))
                )
            ).between(char("(").token(), char(")").token())
        )

        self.atom = (
            expression.between(char("(").token(), char(")").token())
            | self.sequence_range
            | self.sequence
            | self.number
            | self.reduce
            | self.map
            | self.name
        ).token()

        # tightest to loosest
        self.pow_chain = self.atom.delimited_by(keyword("^")).map(Pow)
        self.div_chain = self.pow_chain.delimited_by(keyword("/")).map(Div)
        self.mul_chain = self.div_chain.delimited_by(keyword("*")).map(Mul)
        self.sub_chain = self.mul_chain.delimited_by(keyword("-")).map(Sub)
        self.expression = self.sub_chain.delimited_by(keyword("+")).map(Add)

        # var name = expression
        self.assign_statement = keyword("var").skip_left(
            self.name.skip_right(keyword("=")).bind(
                lambda name: self.expression.map(lambda value: VarDeclaration(name, value))
            )
        )

        # out expression
        self.out_statement = keyword("out").skip_left(self.expression.map(Out))

        # print "string"
        self.print_statement = keyword("print").skip_left(self.string.map(Print))

        self.statement = (self.assign_statement | self.out_statement | self.print_statement).map(normalize)

        self.whole_program = self.statement.delimited_by(char("\n").many()).skip_right(eof)
        self.single_statement = self.statement.skip_right(eof)


_parser = LangParser()


def _run(parser, text):
    rest, value = parser(Cursor(text))
    if value is None:
        return Failure(SyntaxErrorInfo(rest.unparsed(), rest.offset))
    return Success(value)


def parse_program(text):
    """Parses a whole program into a list of normalized statements. Fails with the unparsed remainder unless all of
    text is consumed.
    """
    return _run(_parser.whole_program, text)


def parse_statement(text):
    """Parses exactly one statement (one line of interactive input)."""
    return _run(_parser.single_statement, text)
