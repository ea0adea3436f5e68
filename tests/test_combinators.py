"""Tests for the derived combinators."""

from __future__ import annotations

import operator

import pytest

from backparse import Accumulate, Parser, Result, item, operations, result, zero
from backparse.general import char, digit, one_of, whitespace


class TestThen:
    def test_sequences_on_remainder(self) -> None:
        p = item().then(lambda a: item().then(lambda b: a + b))
        assert p.parse("abc") == [("ab", "c")]

    def test_continuation_receives_remainder(self) -> None:
        p = item().then(lambda value, remainder: result((value, remainder)))
        assert p.parse("abc") == [(("a", "bc"), "bc")]

    def test_defaulted_parameters_are_not_filled(self) -> None:
        p = item().then(lambda value, remainder=None: result((value, remainder)))
        assert p.parse("abc") == [(("a", None), "bc")]

    def test_fixed_parser_continuation(self) -> None:
        assert char("a").then(item()).parse("abc") == [("b", "c")]

    def test_plain_value_continuation(self) -> None:
        assert char("a").then(7).parse("abc") == [(7, "bc")]

    def test_fails_when_first_fails(self) -> None:
        assert not char("x").then(item()).parse("abc")

    def test_concatenates_every_derivation_in_order(self) -> None:
        p = Prefixes().then(lambda v: item().then(lambda w: v + w))
        assert p.parse("abc") == [("a", "bc"), ("ab", "c")]

    def test_always_check_second(self) -> None:
        p = char("x").then(lambda value, remainder: result((value, remainder)), True)
        assert p.parse("abc") == [(("", "abc"), "abc")]
        assert not char("x").then(lambda v: result(v)).parse("abc")


class Prefixes(Parser):
    """Produces the empty prefix and the one-item prefix of its input."""
    def process(self, input: str) -> Result:
        return Result().push(input[:0], input).push(input[:1], input[1:])


class Chunks(Parser):
    """Produces the one-item and the two-item prefix of its input, where they exist."""
    def process(self, input: str) -> Result:
        out = Result()
        for size in (1, 2):
            if len(input) >= size:
                out.push(input[:size], input[size:])
        return out


class TestOr:
    def test_first_success_wins(self) -> None:
        assert char("a").or_(item()).parse("abc") == [("a", "bc")]

    def test_falls_through_to_later_alternatives(self) -> None:
        p = char("x").or_(char("y"), char("a"))
        assert p.parse("abc") == [("a", "bc")]

    def test_all_fail(self) -> None:
        assert not char("x").or_(char("y")).parse("abc")

    def test_plain_values_become_results(self) -> None:
        assert char("x").or_(None).parse("abc") == [(None, "abc")]

    def test_or_none(self) -> None:
        assert char("x").or_none().parse("abc") == [("", "abc")]
        assert char("x").or_none(0).parse("abc") == [(0, "abc")]
        assert char("a").or_none().parse("abc") == [("a", "bc")]


class TestSatisfy:
    def test_condition(self) -> None:
        vowel = item().satisfy(lambda c: c in "aeiou")
        assert vowel.parse("abc") == [("a", "bc")]
        assert not vowel.parse("bca")

    def test_filter_is_alias(self) -> None:
        assert item().filter(str.isdigit).parse("1a") == [("1", "a")]

    def test_equals(self) -> None:
        assert item().equals(3).parse([3, 4]) == [(3, [4])]
        assert not item().equals(3).parse([4, 3])


class TestMany:
    def test_consumes_everything(self) -> None:
        assert item().many().parse("abc") == [("abc", "")]

    def test_fails_on_empty(self) -> None:
        assert item().many().parse("") == Result()

    def test_stops_at_first_mismatch(self) -> None:
        assert char("a").many().parse("aab") == [("aa", "b")]

    def test_sequence_accumulation(self) -> None:
        assert digit.many(Accumulate.SEQUENCE).parse("123x") == [([1, 2, 3], "x")]
        assert digit.many(list).parse("4") == [([4], "")]

    def test_sequence_lists_are_independent(self) -> None:
        p = digit.many(Accumulate.SEQUENCE)
        first = p.parse("12").first().value
        first.append(99)
        assert p.parse("12") == [([1, 2], "")]

    def test_many_or_none(self) -> None:
        assert item().many_or_none().parse("") == [("", "")]
        assert char("a").many_or_none().parse("bc") == [("", "bc")]
        assert digit.many_or_none(accumulate=Accumulate.SEQUENCE).parse("x") == [([], "x")]
        assert digit.many_or_none(None, Accumulate.SEQUENCE).parse("x") == [(None, "x")]

    def test_token_sequences(self) -> None:
        number = item().satisfy(lambda t: isinstance(t, int))
        assert number.many(list).parse([1, 2, "+", 3]) == [([1, 2], ["+", 3])]

    def test_follows_every_derivation_in_order(self) -> None:
        assert Chunks().many(list).parse("abc") == [
            (["a", "b", "c"], ""),
            (["a", "bc"], ""),
            (["ab", "c"], ""),
        ]

    def test_stops_when_nothing_is_consumed(self) -> None:
        assert result("x").many().parse("ab") == [("x", "ab")]

    def test_text_needs_strings(self) -> None:
        with pytest.raises(ValueError, match="Accumulate.SEQUENCE"):
            digit.many().parse("12")


class TestStartsWith:
    def test_exact_match(self) -> None:
        assert item().starts_with("ab").parse("abc") == [("ab", "c")]

    def test_mismatch_fails(self) -> None:
        assert not item().starts_with("ab").parse("ac")
        assert not item().starts_with("abc").parse("ab")

    def test_single_item(self) -> None:
        assert item().starts_with("a").parse("ab") == [("a", "b")]

    def test_partial(self) -> None:
        assert item().starts_with("abc", partial=True).parse("abx") == [("ab", "x")]
        assert item().starts_with("abc", partial=True).parse("abcd") == [("abc", "d")]
        assert not item().starts_with("abc", partial=True).parse("xbc")

    def test_token_sequence(self) -> None:
        assert item().starts_with([1, 2]).parse([1, 2, 3]) == [([1, 2], [3])]
        assert not item().starts_with([1, 2]).parse([1, 3])

    def test_tuple_target_gives_list(self) -> None:
        assert item().starts_with((1, 2)).parse([1, 2, 3]) == [([1, 2], [3])]
        assert item().starts_with((1, 2, 3), partial=True).parse([1, 2, 4]) == [([1, 2], [4])]


class TestSepBy:
    def test_list(self) -> None:
        assert digit.sep_by(char(",")).parse("1,2,3") == [([1, 2, 3], "")]

    def test_single(self) -> None:
        assert digit.sep_by(char(",")).parse("7;") == [([7], ";")]

    def test_trailing_separator_is_left(self) -> None:
        assert digit.sep_by(char(",")).parse("1,2,") == [([1, 2], ",")]

    def test_empty(self) -> None:
        assert digit.sep_by(char(",")).parse("x") == [("", "x")]
        assert digit.sep_by(char(","), []).parse("x") == [([], "x")]

    def test_words(self, letters) -> None:
        assert letters.sep_by(char(" ")).parse("ab cd") == [(["ab", "cd"], "")]


class TestBetween:
    def test_brackets(self, letters, parens) -> None:
        left, right = parens
        assert letters.between(left, right).parse("(abc)") == [("abc", "")]

    def test_right_defaults_to_left(self, letters) -> None:
        assert letters.between(char("|")).parse("|ab|c") == [("ab", "c")]

    def test_missing_right_fails(self, letters, parens) -> None:
        left, right = parens
        assert not letters.between(left, right).parse("(abc")

    def test_trim(self, letters) -> None:
        assert letters.trim().parse("  ab \n") == [("ab", "")]
        assert letters.trim(char("_")).parse("_ab_") == [("ab", "")]


class TestChain:
    def test_left_fold(self) -> None:
        add = operations((char("+"), operator.add))
        assert digit.chain(add).parse("1+2+3") == [(6, "")]

    def test_left_associativity(self) -> None:
        sub = operations((char("-"), operator.sub))
        assert digit.chain(sub).parse("9-3-2") == [(4, "")]

    def test_dangling_operator_is_left(self) -> None:
        add = operations((char("+"), operator.add))
        assert digit.chain(add).parse("1+") == [(1, "+")]

    def test_default(self) -> None:
        add = operations((char("+"), operator.add))
        assert not digit.chain(add).parse("x")
        assert digit.chain(add, 0).parse("x") == [(0, "x")]
        assert digit.chain(add, None).parse("x") == [(None, "x")]

    def test_right_associativity(self) -> None:
        sub = operations((char("-"), operator.sub))
        assert digit.chain_right(sub).parse("9-3-2") == [(8, "")]

    def test_right_default_accepts_falsy(self) -> None:
        pow_ = operations((char("^"), operator.pow))
        assert digit.chain_right(pow_, 0).parse("x") == [(0, "x")]
        assert digit.chain_right(pow_, "").parse("x") == [("", "x")]
        assert not digit.chain_right(pow_).parse("x")
        assert digit.chain_right(pow_).parse("2^3^2") == [(512, "")]


class TestOperations:
    def test_first_matching_pair_wins(self) -> None:
        table = operations((char("+"), "plus"), (char("-"), "minus"), (item(), "other"))
        assert table.parse("-1") == [("minus", "1")]
        assert table.parse("*1") == [("other", "1")]

    def test_empty_table_fails(self) -> None:
        assert not operations().parse("+")

    def test_callables_are_values(self) -> None:
        table = operations((char("+"), operator.add))
        assert table.parse("+") == [(operator.add, "")]

    def test_loop_built_table(self) -> None:
        matchers = [char(symbol).then(lambda _, fn=fn: fn) for symbol, fn in (("+", operator.add), ("-", operator.sub))]
        table = zero().or_(*matchers)
        assert table.parse("+1") == [(operator.add, "1")]
        assert table.parse("-1") == [(operator.sub, "1")]


class TestMap:
    def test_applies_after_parse(self) -> None:
        assert digit.map(lambda d: d * 10).parse("3x") == [(30, "x")]

    def test_does_not_modify_original(self) -> None:
        p = item()
        p.map(str.upper)
        assert p.parse("a") == [("a", "")]

    def test_composes(self) -> None:
        p = item().map(str.upper).map(lambda c: c * 2)
        assert p.parse("a") == [("AA", "")]

    def test_applies_inside_larger_grammars(self) -> None:
        upper = one_of("ab").map(str.upper)
        assert upper.many().parse("abc") == [("AB", "c")]


class TestCopy:
    def test_copy_keeps_definition(self) -> None:
        p = digit.sep_by(char(",")).named("digits")
        c = p.copy()
        assert c is not p
        assert repr(c) == "digits"
        assert c.parse("1,2") == p.parse("1,2")

    def test_copy_keeps_mapping(self) -> None:
        p = item().map(str.upper)
        assert p.copy().parse("a") == [("A", "")]

    @pytest.mark.parametrize("text", ["", " ", "\t\n"])
    def test_whitespace_junk(self, text: str) -> None:
        assert whitespace.parse(text + "x") == [(text, "x")]


class TestLongInputs:
    def test_many(self) -> None:
        text = "a" * 10_000
        assert item().many().parse(text) == [(text, "")]

    def test_many_or_none(self) -> None:
        text = " " * 10_000
        assert whitespace.parse(text + "x") == [(text, "x")]

    def test_sep_by(self) -> None:
        assert digit.sep_by(char(",")).parse(",".join("1" * 5_000)) == [([1] * 5_000, "")]

    def test_chain(self) -> None:
        add = operations((char("+"), operator.add))
        assert digit.chain(add).parse("+".join("1" * 5_000)) == [(5_000, "")]

    def test_chain_right(self) -> None:
        sub = operations((char("-"), operator.sub))
        assert digit.chain_right(sub).parse("-".join("1" * 5_001)) == [(1, "")]
