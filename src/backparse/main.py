"""
The implementations of the parsing units.
"""

from __future__ import annotations
from typing import Any, Self, Final, NamedTuple, Callable, SupportsIndex, overload

from abc import ABC, abstractmethod
from collections.abc import Iterator, Iterable, Sequence
import inspect
import logging

import backparse.const as const
from backparse.const import Accumulate


log = logging.getLogger("backparse")


class _Missing:
    """Marks an argument that wasn't supplied, so that `None`, `0` and `""` stay usable as values."""
    def __repr__(self) -> str:
        return "<missing>"

MISSING: Final = _Missing()


class GrammarError(Exception):
    """
    Raised when a grammar is assembled incorrectly.

    Parse failures are never exceptions, they're empty `Result`s.
    """



def as_strategy(kind: Any) -> Accumulate:
    """
    Converts an accumulation hint into an `Accumulate` member.

    Accepts an `Accumulate` member, the `str`/`list`/`tuple` types, or a sample value.
    """
    if isinstance(kind, Accumulate):
        return kind
    if kind is str or isinstance(kind, str):
        return Accumulate.TEXT
    return Accumulate.SEQUENCE

def accumulator(kind: Any, type_hint: Any = None) -> str | list:
    """
    Returns an empty accumulator used to seed repetition combinators.

    `kind`: The kind of the matched values. (See `as_strategy()`)
    `type_hint`: Overrides `kind` if supplied.
    """
    strategy = as_strategy(kind if type_hint is None else type_hint)
    return "" if strategy is Accumulate.TEXT else []

def to_list(value: Any) -> list:
    """Normalizes a value into a new list. Lists and tuples are copied, anything else is wrapped."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]

def adapt_callback(callback: Callable[..., Any], max_args: int) -> Callable[..., Any]:
    """
    Wraps a callback so that it only receives as many of the leading arguments as it requires.

    Lets grammar authors write `lambda value: ...` as well as `lambda value, remainder: ...`.
    Positional parameters with defaults are never filled in, so `lambda _, fn=fn: fn` keeps its `fn`.
    Callables taking `*args` receive every argument.
    Callables without an inspectable signature (some builtins) receive a single argument.
    """
    try:
        parameters = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        count = min(1, max_args)
    else:
        if any(p.kind is p.VAR_POSITIONAL for p in parameters):
            count = max_args
        else:
            required = sum(
                1 for p in parameters
                if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
            )
            count = min(required, max_args)
    return lambda *args: callback(*args[:count])


class Derivation(NamedTuple):
    """One successful way of consuming an input."""
    value: Any
    """The semantic value of the match."""
    remainder: Sequence
    """The unconsumed suffix of the input."""


class Result:
    """
    The ordered derivations produced by evaluating a parser on an input.

    An empty result means the parser failed.

    ```
    r = parser.parse("1+2")
    if r:
        for value, remainder in r:
            ...
    else:
        ... # failed
    ```
    """
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, derivations: Iterable[tuple[Any, Sequence]] = ()) -> None:
        self.derivations: list[Derivation] = [Derivation(*d) for d in derivations]

    def push(self, value: Any, remainder: Sequence) -> Self:
        """Appends a derivation. Returns the result itself."""
        self.derivations.append(Derivation(value, remainder))
        return self

    def extend(self, other: Result) -> Self:
        """Appends all the derivations of another result, in order. Returns the result itself."""
        self.derivations.extend(other.derivations)
        return self

    def concat(self, other: Result) -> Result:
        """Returns a new result with the derivations of both results, in order. Neither operand is modified."""
        return Result(self.derivations + other.derivations)

    def __add__(self, other: Result) -> Result:
        return self.concat(other)

    def map_values(self, mapping: Callable[[Any], Any]) -> Result:
        """Returns a new result where every value is replaced by `mapping(value)`. Remainders are kept as-is."""
        return Result(Derivation(mapping(value), remainder) for value, remainder in self.derivations)

    @property
    def values(self) -> list[Any]:
        return [d.value for d in self.derivations]

    @property
    def remainders(self) -> list[Sequence]:
        return [d.remainder for d in self.derivations]

    def first(self) -> Derivation | None:
        """The highest priority derivation, or `None` if the parser failed."""
        return self.derivations[0] if self.derivations else None

    def complete(self) -> Result:
        """Only the derivations that consumed the whole input."""
        return Result(d for d in self.derivations if len(d.remainder) == 0)

    def __iter__(self) -> Iterator[Derivation]:
        return iter(self.derivations)

    def __len__(self) -> int:
        return len(self.derivations)

    def __bool__(self) -> bool:
        return bool(self.derivations)

    @overload
    def __getitem__(self, key: SupportsIndex) -> Derivation: ...
    @overload
    def __getitem__(self, key: slice) -> list[Derivation]: ...

    def __getitem__(self, key: SupportsIndex | slice) -> Derivation | list[Derivation]:
        return self.derivations[key]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Result):
            return self.derivations == other.derivations
        if isinstance(other, (list, tuple)):
            return self.derivations == [tuple(d) for d in other]
        return NotImplemented

    def __repr__(self) -> str:
        return "Result(" + repr([tuple(d) for d in self.derivations]) + ")"



class Parser(ABC):
    """
    A composable grammar fragment.

    Every variant implements `process()`. Parsers hold no evaluation state:
    each `process()` call builds its own `Result`, so the same parser can be
    shared by any number of grammars, branches and recursive references.

    Building:
    ```
    digit = item().satisfy(str.isdigit).map(int)
    number = digit.many(Accumulate.SEQUENCE)
    ```

    Using:
    ```
    r = number.parse("123abc")  # Result([([1, 2, 3], 'abc')])
    ```
    """

    def __init__(self) -> None:
        self.mapping: Callable[[Any], Any] | None = None
        """Applied to every value at the end of `parse()`."""
        self.name: str | None = None
        """Shown in `repr()` and in debug logs."""

    @abstractmethod
    def process(self, input: Sequence) -> Result:
        """Evaluates the parser on the input. Returns every derivation in priority order."""

    def parse(self, input: Sequence) -> Result:
        """
        Evaluates the parser on the input, then applies the registered mapping (see `map()`) to every value.

        The remainders aren't affected by the mapping.
        """
        debug = log.isEnabledFor(logging.DEBUG)
        if debug:
            log.debug("trying %r on %.40r", self, input)
        result = self.process(input)
        if self.mapping is not None:
            result = result.map_values(self.mapping)
        if debug:
            log.debug("%r produced %d derivation(s)", self, len(result))
        return result

    # configuration

    def copy(self) -> Parser:
        """
        Returns an independent parser with the same definition.

        Sub-parsers are copied as well. `Lazy` copies share their definition cell.
        """
        new = self._fresh()
        new.mapping = self.mapping
        new.name = self.name
        return new

    def _fresh(self) -> Parser:
        """Creates a new instance of the same variant. Variants with configuration override this."""
        return type(self)()

    def map(self, mapping: Callable[[Any], Any]) -> Parser:
        """
        Returns a copy of this parser that transforms its values with `mapping`.

        If this parser already has a mapping, the new one is applied after it.
        """
        new = self.copy()
        if self.mapping is None:
            new.mapping = mapping
        else:
            previous = self.mapping
            new.mapping = lambda value: mapping(previous(value))
        return new

    def named(self, name: str) -> Parser:
        """Returns a copy of this parser that's shown as `name` in `repr()` and in debug logs."""
        new = self.copy()
        new.name = name
        return new

    def __repr__(self) -> str:
        if self.name is not None:
            return self.name
        return self._describe()

    def _describe(self) -> str:
        return f"{type(self).__name__}()"

    # combinators

    def then(self, next: Parser | Callable[..., Any] | Any = None, always_check_second: bool = False) -> Parser:
        """
        Sequencing. (Monadic bind)

        `next` is either a parser, or a callback taking `(value)` or `(value, remainder)` and returning a parser or a plain value.
        Plain values are treated as `result(value)`.

        For every derivation of this parser, the continuation is evaluated on the remainder. The results are concatenated in order.

        `always_check_second`: If this parser fails, evaluate the continuation anyway, with an empty value and the unconsumed input.
        """
        if next is None:
            raise ValueError("A continuation is required.")
        return Bind(self, next, always_check_second)

    def or_(self, *alternatives: Parser | Any) -> Parser:
        """
        Ordered choice.

        Tries this parser, then each alternative in order. Returns the result of the first one that succeeds, without trying the rest.
        Non-parser alternatives are treated as `result(value)`.
        """
        return Choice(self, *alternatives)

    def or_none(self, empty: Any = "") -> Parser:
        """This parser, or succeed with `empty` without consuming anything."""
        return self.or_(empty)

    def not_(self) -> Parser:
        """
        Negative lookahead.

        Succeeds without consuming anything if this parser fails. The value is the input itself.
        """
        return Negation(self)

    def satisfy(self, condition: Callable[[Any], Any]) -> Parser:
        """Succeeds with the same value if `condition(value)` is truthy, fails otherwise."""
        return self.then(lambda value: value if condition(value) else zero())

    def filter(self, condition: Callable[[Any], Any]) -> Parser:
        """Same as `satisfy()`."""
        return self.satisfy(condition)

    def equals(self, value: Any) -> Parser:
        """Succeeds if the parsed value equals `value`."""
        return self.satisfy(lambda parsed: parsed == value)

    def many(self, accumulate: Accumulate | type = Accumulate.TEXT) -> Parser:
        """
        One or more repetitions.

        `accumulate`: `Accumulate.TEXT` concatenates the values, `Accumulate.SEQUENCE` collects them into a list.
        `str` and `list` are accepted as shorthands.

        `Accumulate.TEXT` only works with string values. Use `Accumulate.SEQUENCE` for anything else (`digit.many(list)`),
        otherwise parsing raises `ValueError`.

        Every derivation of this parser is followed, so the result holds one derivation per way of repeating,
        in the order they were reached. A path stops at the first repetition that fails.
        """
        return Many(self, as_strategy(accumulate))

    def many_or_none(self, empty: Any = MISSING, accumulate: Accumulate | type = Accumulate.TEXT) -> Parser:
        """
        Zero or more repetitions.

        `empty`: The value when nothing matched. Defaults to the empty value of the accumulation strategy. (`""` or `[]`)
        """
        strategy = as_strategy(accumulate)
        return self.many(strategy).or_(accumulator(strategy) if empty is MISSING else empty)

    def starts_with(self, value: Sequence, partial: bool = False) -> Parser:
        """
        Matches the items of `value` one by one, in order.

        The value is `value` itself, or a list of the matched items if `value` isn't a string.

        `partial`: Succeed with the matched prefix, even if it's shorter than `value`. At least the first item must match.
        """
        if len(value) <= 0:
            raise ValueError("At least one item required.")
        return self._starts_with(value, partial)

    def _starts_with(self, value: Sequence, partial: bool) -> Parser:
        if len(value) <= 0:
            return zero()
        text = isinstance(value, str)

        def join(head: Any, tail: Any) -> Any:
            if text:
                return head + tail
            return [head] + list(tail)

        def finish(matched: Any) -> Any:
            if partial:
                return matched
            if text and matched == value:
                return value
            if not text and matched == list(value):
                return matched
            return zero()

        return self.equals(value[0]).then(lambda head:
            self._starts_with(value[1:], partial).then(lambda tail:
                finish(join(head, tail)), True))

    def sep_by(self, separator: Parser, empty: Any = "") -> Parser:
        """
        One or more occurrences of this parser separated by `separator`, or `empty` if there are none.

        The value is a list. The separators' values are discarded.
        """
        following = separator.then(self)
        return self.then(lambda head:
            following.many_or_none(accumulate=Accumulate.SEQUENCE).then(lambda tail:
                to_list(head) + tail)).or_(empty)

    def between(self, left: Parser, right: Parser | None = None) -> Parser:
        """
        Matches `left`, this parser and `right`, in sequence. The value is this parser's value.

        `right` defaults to `left`.
        """
        if right is None:
            right = left
        return left.then(lambda _:
            self.then(lambda value:
                right.then(lambda _: value)))

    def chain(self, operation: Parser, default: Any = MISSING) -> Parser:
        """
        Left associative operator chain.

        `operation` must produce a binary function. `1 + 2 + 3` is folded as `f(f(1, 2), 3)`.

        `default`: The value if not even a single operand matches. If not supplied, the parser fails instead.
        """
        def fold(x: Any, steps: list[tuple[Callable[[Any, Any], Any], Any]]) -> Any:
            for f, y in steps:
                x = f(x, y)
            return x

        parser = self.then(lambda x:
            self._operands(operation).then(lambda steps:
                fold(x, steps)))
        if default is not MISSING:
            return parser.or_(default)
        return parser

    def chain_right(self, operation: Parser, default: Any = MISSING) -> Parser:
        """
        Right associative operator chain.

        `operation` must produce a binary function. `2 ^ 3 ^ 2` is folded as `f(2, f(3, 2))`.

        `default`: The value if not even a single operand matches. If not supplied, the parser fails instead.
        """
        def fold(x: Any, steps: list[tuple[Callable[[Any, Any], Any], Any]]) -> Any:
            if not steps:
                return x
            acc = steps[-1][1]
            for i in range(len(steps) - 1, 0, -1):
                acc = steps[i][0](steps[i - 1][1], acc)
            return steps[0][0](x, acc)

        parser = self.then(lambda x:
            self._operands(operation).then(lambda steps:
                fold(x, steps)))
        if default is not MISSING:
            return parser.or_(default)
        return parser

    def _operands(self, operation: Parser) -> Parser:
        """Zero or more `(function, operand)` pairs, as a list."""
        step = operation.then(lambda f:
            self.then(lambda y: result((f, y))))
        return step.many_or_none(accumulate=Accumulate.SEQUENCE)

    def trim(self, junk: Parser | None = None) -> Parser:
        """
        Same as `between(junk)`.

        `junk` defaults to zero or more whitespace characters.
        """
        return self.between(default_junk if junk is None else junk)



def as_parser(value: Parser | Any) -> Parser:
    """Parsers are returned as-is, anything else becomes `result(value)`."""
    if isinstance(value, Parser):
        return value
    return Unit(value)


class Unit(Parser):
    """Always succeeds without consuming. The value is the configured value, or the input itself if there's none."""
    def __init__(self, value: Any = MISSING) -> None:
        super().__init__()
        self.value: Final[Any] = value

    def process(self, input: Sequence) -> Result:
        return Result().push(input if self.value is MISSING else self.value, input)

    def _fresh(self) -> Parser:
        return Unit(self.value)

    def _describe(self) -> str:
        return "result()" if self.value is MISSING else f"result({self.value!r})"

class Zero(Parser):
    """Always fails."""
    def process(self, input: Sequence) -> Result:
        return Result()

    def _describe(self) -> str:
        return "zero()"

class Item(Parser):
    """Consumes a single item. Fails on an empty input."""
    def process(self, input: Sequence) -> Result:
        if len(input) > 0:
            return Result().push(input[0], input[1:])
        return Result()

    def _describe(self) -> str:
        return "item()"

class Negation(Parser):
    """Succeeds without consuming if the wrapped parser fails. The value is the input itself."""
    def __init__(self, parser: Parser) -> None:
        super().__init__()
        self.parser: Final[Parser] = parser

    def process(self, input: Sequence) -> Result:
        if self.parser.parse(input):
            return Result()
        return Result().push(input, input)

    def _fresh(self) -> Parser:
        return Negation(self.parser.copy())

    def _describe(self) -> str:
        return f"{self.parser!r}.not_()"


class Bind(Parser):
    """The parser created by `Parser.then()`."""
    def __init__(self, parser: Parser, next: Parser | Callable[..., Any] | Any, always_check_second: bool = False) -> None:
        super().__init__()
        self.parser: Final[Parser] = parser
        self.next: Final[Parser | Callable[..., Any] | Any] = next
        self.always_check_second: Final[bool] = always_check_second
        if isinstance(next, Parser) or not callable(next):
            self._continuation: Callable[..., Any] = lambda value, remainder: next
        else:
            self._continuation = adapt_callback(next, 2)

    def continuation(self, value: Any, remainder: Sequence) -> Parser:
        """The parser to evaluate on `remainder` after this parser produced `value`."""
        return as_parser(self._continuation(value, remainder))

    def process(self, input: Sequence) -> Result:
        first = self.parser.parse(input)
        if not first and self.always_check_second:
            return self.continuation("", input).parse(input)
        result = Result()
        for value, remainder in first:
            result.extend(self.continuation(value, remainder).parse(remainder))
        return result

    def _fresh(self) -> Parser:
        return Bind(self.parser.copy(), self.next, self.always_check_second)

    def _describe(self) -> str:
        return f"{self.parser!r}.then(...)"

class Choice(Parser):
    """The parser created by `Parser.or_()`."""
    def __init__(self, *alternatives: Parser | Any) -> None:
        super().__init__()
        self.alternatives: Final[tuple[Parser, ...]] = tuple(as_parser(a) for a in alternatives)

    def process(self, input: Sequence) -> Result:
        for parser in self.alternatives:
            result = parser.parse(input)
            if result:
                return result
        return Result()

    def _fresh(self) -> Parser:
        return Choice(*(parser.copy() for parser in self.alternatives))

    def _describe(self) -> str:
        return "(" + " | ".join(repr(parser) for parser in self.alternatives) + ")"


class Many(Parser):
    """
    The parser created by `Parser.many()`.

    Repeats the wrapped parser with an explicit worklist instead of nested binds, so long inputs don't exhaust the stack.
    Paths are explored depth first, following the wrapped parser's derivations in order. A path ends when the
    wrapped parser fails on its remainder, or when it succeeds without consuming anything.
    """
    def __init__(self, parser: Parser, accumulate: Accumulate = Accumulate.TEXT) -> None:
        super().__init__()
        self.parser: Final[Parser] = parser
        self.accumulate: Final[Accumulate] = accumulate

    def process(self, input: Sequence) -> Result:
        out = Result()
        # (values, remainder, finished), values being a (value, previous) chain
        stack: list[tuple[tuple[Any, Any] | None, Sequence, bool]] = [(None, input, False)]
        while stack:
            values, remainder, finished = stack.pop()
            if finished:
                out.push(self.collect(values), remainder)
                continue
            step = self.parser.parse(remainder)
            if not step:
                if values is not None:
                    out.push(self.collect(values), remainder)
                continue
            for value, rest in reversed(step.derivations):
                # a repetition that consumed nothing can't make progress
                stack.append(((value, values), rest, len(rest) >= len(remainder)))
        return out

    def collect(self, values: tuple[Any, Any]) -> Any:
        """Turns a value chain into the accumulated value."""
        ordered: list[Any] = []
        link: tuple[Any, Any] | None = values
        while link is not None:
            ordered.append(link[0])
            link = link[1]
        ordered.reverse()
        if self.accumulate is Accumulate.SEQUENCE:
            return ordered
        for value in ordered:
            if not isinstance(value, str):
                raise ValueError(
                    f"Accumulate.TEXT needs string values, got {type(value).__name__}. Use Accumulate.SEQUENCE instead."
                )
        return "".join(ordered)

    def _fresh(self) -> Parser:
        return Many(self.parser.copy(), self.accumulate)

    def _describe(self) -> str:
        return f"{self.parser!r}.many()"


class LazyCell:
    """
    The late-bound definition shared by a `Lazy` parser and its copies.

    Resolved at most once. Either from the factory on first use, or from `define()`.
    """
    def __init__(self, factory: Callable[..., Any] | None = None) -> None:
        self.factory: Callable[..., Any] | None = None if factory is None else adapt_callback(factory, 1)
        self.parser: Parser | None = None

    def define(self, parser: Parser | Any) -> None:
        if self.parser is not None or self.factory is not None:
            raise GrammarError("Lazy parser is already defined.")
        self.parser = as_parser(parser)

    def resolve(self, owner: Lazy) -> Parser:
        if self.parser is None:
            if self.factory is None:
                raise GrammarError("Lazy parser used before being defined.")
            self.parser = as_parser(self.factory(owner))
            log.debug("resolved %r", owner)
        return self.parser

class Lazy(Parser):
    """
    A parser whose definition is supplied later. Used for recursive grammars.

    ```
    parens = lazy(lambda self: self.between(char("("), char(")")).or_none())
    ```
    or
    ```
    expr = Lazy()
    ...
    expr.define(term.chain(add_op))
    ```
    """
    def __init__(self, factory: Callable[..., Any] | None = None, *, cell: LazyCell | None = None) -> None:
        super().__init__()
        self.cell: Final[LazyCell] = LazyCell(factory) if cell is None else cell

    def define(self, parser: Parser | Any) -> Self:
        """Supplies the definition. Can only be done once, and not at all if a factory was given."""
        self.cell.define(parser)
        return self

    def resolve(self) -> Parser:
        """Returns the definition, calling the factory on the first use."""
        return self.cell.resolve(self)

    def process(self, input: Sequence) -> Result:
        return self.resolve().parse(input)

    def _fresh(self) -> Parser:
        return Lazy(cell=self.cell)

    def _describe(self) -> str:
        return "lazy(...)"



def result(value: Any = MISSING) -> Parser:
    """
    Always succeeds with `value` without consuming anything.

    If `value` isn't supplied, the value is the input itself.
    """
    return Unit(value)

def zero() -> Parser:
    """Always fails."""
    return Zero()

def item() -> Parser:
    """Consumes and returns a single item of the input."""
    return Item()

def lazy(factory: Callable[..., Any] | None = None) -> Lazy:
    """
    A parser defined on first use.

    `factory` receives the lazy parser itself (if it takes an argument), so it can refer to itself.
    If `factory` is omitted, use `Lazy.define()` before parsing.
    """
    return Lazy(factory)

def _constant(value: Any) -> Callable[[Any], Any]:
    return lambda _: value

def operations(*pairs: tuple[Parser, Any]) -> Parser:
    """
    An operator table.

    Each pair is `(matcher, value)`. The matchers are tried in order, and the value of the first one that matches is produced instead of the matched token.

    ```
    add_op = operations((char("+"), operator.add), (char("-"), operator.sub))
    ```
    """
    parser = zero()
    for matcher, value in pairs:
        parser = parser.or_(matcher.then(_constant(value)))
    return parser


default_junk: Final[Parser] = item().satisfy(lambda c: c in const.WHITESPACES).many_or_none().named("junk")
"""Zero or more whitespace characters. The default for `Parser.trim()`."""
