from __future__ import annotations
from typing import Any

from collections.abc import Iterable
import operator

from backparse import *

# characters

whitespace: Parser = default_junk
"""Zero or more whitespace characters."""

def char(value: str) -> Parser:
    """A single specific character."""
    return item().equals(value).named(f"char({value!r})")

def one_of(values: Iterable[Any]) -> Parser:
    """A single item that's one of `values`."""
    members = frozenset(values)
    return item().satisfy(lambda c: c in members)

def none_of(values: Iterable[Any]) -> Parser:
    """A single item that's not one of `values`."""
    members = frozenset(values)
    return item().satisfy(lambda c: c not in members)

def literal(text: str) -> Parser:
    """The exact string `text`."""
    return item().starts_with(text).named(f"literal({text!r})")

def token(parser: Parser) -> Parser:
    """`parser`, followed by optional whitespace that's skipped."""
    return parser.then(lambda value: whitespace.then(lambda _: value))

letter: Parser = one_of(const.ALPHABETIC).named("letter")

digit: Parser = one_of(const.DECIMAL).map(int).named("digit")
"""A single decimal digit, as an `int`."""

# words and numbers

identifier: Parser = letter.or_(char("_")).then(lambda head:
    one_of(const.ALNUM | {"_"}).many_or_none().then(lambda tail:
        head + tail)).named("identifier")

def _to_integer(sign: str, digits: str) -> int:
    return -int(digits) if sign == "-" else int(digits)

integer: Parser = one_of(const.SIGNS).or_none().then(lambda sign:
    one_of(const.DECIMAL).many().then(lambda digits:
        _to_integer(sign, digits))).named("integer")
"""
An optionally signed decimal integer, as an `int`.

A sign without digits fails.
"""

# arithmetic

add_op: Parser = operations(
    (token(char("+")), operator.add),
    (token(char("-")), operator.sub),
)
mul_op: Parser = operations(
    (token(char("*")), operator.mul),
    (token(char("/")), operator.truediv),
)
pow_op: Parser = operations(
    (token(char("^")), operator.pow),
)

def _arithmetic(expr: Parser) -> Parser:
    factor = token(integer).or_(expr.between(token(char("(")), token(char(")"))))
    power = factor.chain_right(pow_op)
    term = power.chain(mul_op)
    return term.chain(add_op)

expression: Lazy = lazy(_arithmetic)
"""
Evaluates `+ - * / ^` over integers with the usual precedence and parentheses.

`^` is right associative, the others are left associative. Leading whitespace isn't skipped, use `expression.trim()` for that.

```
expression.parse("2 * (3 + 4)")     # Result([(14, '')])
```
"""
