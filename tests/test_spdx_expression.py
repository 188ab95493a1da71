#
# Copyright (c) nexB Inc. and others. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
# See http://www.apache.org/licenses/LICENSE-2.0 for the license text.
# See https://github.com/aboutcode-org/license-expression for support or download.
# See https://aboutcode.org for more information about nexB OSS projects.
#
import itertools
from unittest import TestCase

from boolean.boolean import PARSE_ERRORS

from spdx_expression import PARSE_DEPRECATED_LICENSE_ID
from spdx_expression import PARSE_EMPTY
from spdx_expression import PARSE_GNU_NO_PLUS
from spdx_expression import PARSE_INVALID_CHARACTERS
from spdx_expression import PARSE_SEPARATED_PLUS
from spdx_expression import PARSE_UNCLOSED_PARENS
from spdx_expression import PARSE_UNEXPECTED
from spdx_expression import PARSE_UNKNOWN_EXCEPTION
from spdx_expression import PARSE_UNKNOWN_LICENSE
from spdx_expression import PARSE_UNKNOWN_TERM
from spdx_expression import PARSE_UNOPENED_PARENS

from spdx_expression import AdditionRef
from spdx_expression import EvaluationError
from spdx_expression import Expression
from spdx_expression import ExpressionError
from spdx_expression import ExpressionReq
from spdx_expression import LicenseRef
from spdx_expression import LicenseReq
from spdx_expression import Lexer
from spdx_expression import OP_AND
from spdx_expression import OP_OR
from spdx_expression import ParseError
from spdx_expression import ParseMode
from spdx_expression import RequirementAlgebra
from spdx_expression import SpdxException
from spdx_expression import SpdxLicense
from spdx_expression import exception_id
from spdx_expression import license_id

from spdx_expression import TOKEN_ADDITION_REF
from spdx_expression import TOKEN_AND
from spdx_expression import TOKEN_EXCEPTION
from spdx_expression import TOKEN_LICENSE_REF
from spdx_expression import TOKEN_LPAR
from spdx_expression import TOKEN_OR
from spdx_expression import TOKEN_PLUS
from spdx_expression import TOKEN_RPAR
from spdx_expression import TOKEN_SYMBOL
from spdx_expression import TOKEN_UNKNOWN
from spdx_expression import TOKEN_WITH


def _parse_error_as_dict(pe):
    """
    Return a dict for a ParseError.
    """
    return dict(
        error_code=pe.error_code,
        span=pe.span,
        expected=pe.expected,
    )


def lexed(text, mode=ParseMode.STRICT):
    return [(t.type, str(t.value), t.start, t.end) for t in Lexer(text, mode)]


UNKNOWN_MODE = ParseMode.STRICT._replace(allow_unknown=True)


class LexerTest(TestCase):
    def test_lex_licenses_operators_and_exceptions(self):
        expected = [
            (TOKEN_SYMBOL, "MIT", 0, 3),
            (TOKEN_OR, "OR", 4, 6),
            (TOKEN_SYMBOL, "Apache-2.0", 7, 17),
            (TOKEN_WITH, "WITH", 18, 22),
            (TOKEN_EXCEPTION, "LLVM-exception", 23, 37),
        ]
        assert expected == lexed("MIT OR Apache-2.0 WITH LLVM-exception")

    def test_lex_parens_and_license_refs(self):
        expected = [
            (TOKEN_LPAR, "(", 0, 1),
            (TOKEN_SYMBOL, "BSD-3-Clause", 1, 13),
            (TOKEN_AND, "AND", 14, 17),
            (TOKEN_LICENSE_REF, "LicenseRef-Foo", 18, 32),
            (TOKEN_RPAR, ")", 32, 33),
        ]
        assert expected == lexed("(BSD-3-Clause AND LicenseRef-Foo)")

    def test_lex_document_refs(self):
        tokens = list(Lexer("DocumentRef-spdx-tool-1.2:LicenseRef-MIT-Style-2"))
        assert 1 == len(tokens)
        assert TOKEN_LICENSE_REF == tokens[0].type
        assert LicenseRef("MIT-Style-2", doc_ref="spdx-tool-1.2") == tokens[0].value

        tokens = list(Lexer("MIT WITH DocumentRef-doc:AdditionRef-Custom"))
        assert TOKEN_ADDITION_REF == tokens[2].type
        assert AdditionRef("Custom", doc_ref="doc") == tokens[2].value

    def test_lex_plus(self):
        expected = [
            (TOKEN_SYMBOL, "LAL-1.2", 0, 7),
            (TOKEN_PLUS, "+", 7, 8),
        ]
        assert expected == lexed("LAL-1.2+")

    def test_lex_skips_whitespace(self):
        assert [(TOKEN_SYMBOL, "MIT", 2, 5)] == lexed("  MIT \t\n")
        assert [] == lexed("   ")

    def test_lex_is_a_single_pass(self):
        lexer = Lexer("MIT OR Apache-2.0")
        assert 3 == len(list(lexer))
        assert [] == list(lexer)

    def test_lex_slash_as_or_in_lax_mode(self):
        expected = [
            (TOKEN_SYMBOL, "MIT", 0, 3),
            (TOKEN_OR, "/", 3, 4),
            (TOKEN_SYMBOL, "Apache-2.0", 4, 14),
        ]
        assert expected == lexed("mit/Apache-2.0", ParseMode.LAX)

    def test_lex_imprecise_names_consume_only_the_matched_text(self):
        expected = [
            (TOKEN_SYMBOL, "GPL-2.0", 0, 6),
            (TOKEN_OR, "/", 7, 8),
            (TOKEN_SYMBOL, "BSD-2-Clause", 9, 21),
        ]
        assert expected == lexed("gpl v2 / bsd 2-clause", ParseMode.LAX)

    def test_lex_lower_case_operators_in_lax_mode(self):
        expected = [
            (TOKEN_SYMBOL, "MIT", 0, 3),
            (TOKEN_AND, "and", 4, 7),
            (TOKEN_SYMBOL, "Apache-2.0", 8, 18),
            (TOKEN_WITH, "with", 19, 23),
            (TOKEN_EXCEPTION, "LLVM-exception", 24, 38),
        ]
        assert expected == lexed("MIT and Apache-2.0 with LLVM-exception", ParseMode.LAX)

    def test_lex_mixed_case_operators_are_not_operators_in_lax_mode(self):
        with self.assertRaises(ParseError) as ctx:
            list(Lexer("MIT And Apache-2.0", ParseMode.LAX))
        assert PARSE_UNKNOWN_TERM == ctx.exception.error_code
        assert (4, 7) == ctx.exception.span

    def test_lex_lower_case_operators_fail_in_strict_mode(self):
        with self.assertRaises(ParseError) as ctx:
            list(Lexer("MIT and Apache-2.0"))
        expected = dict(error_code=PARSE_UNKNOWN_TERM, span=(4, 7), expected=())
        assert expected == _parse_error_as_dict(ctx.exception)

    def test_lex_deprecated_ids_fail_in_strict_mode(self):
        with self.assertRaises(ParseError) as ctx:
            list(Lexer("MIT OR GPL-2.0"))
        expected = dict(error_code=PARSE_DEPRECATED_LICENSE_ID, span=(7, 14), expected=())
        assert expected == _parse_error_as_dict(ctx.exception)

        assert [(TOKEN_SYMBOL, "GPL-2.0", 0, 7)] == lexed("GPL-2.0", ParseMode.LAX)

    def test_lex_deprecated_imprecise_names_fail_without_allow_deprecated(self):
        mode = ParseMode.LAX._replace(allow_deprecated=False)
        with self.assertRaises(ParseError) as ctx:
            list(Lexer("gplv3", mode))
        expected = dict(error_code=PARSE_DEPRECATED_LICENSE_ID, span=(0, 5), expected=())
        assert expected == _parse_error_as_dict(ctx.exception)

    def test_lex_unknown_terms_when_allowed(self):
        expected = [
            (TOKEN_SYMBOL, "MIT", 0, 3),
            (TOKEN_OR, "OR", 4, 6),
            (TOKEN_UNKNOWN, "Foo", 7, 10),
        ]
        assert expected == lexed("MIT OR Foo", UNKNOWN_MODE)

    def test_lex_invalid_characters_span_to_the_end(self):
        with self.assertRaises(ParseError) as ctx:
            list(Lexer("MIT & Apache-2.0"))
        expected = dict(error_code=PARSE_INVALID_CHARACTERS, span=(4, 16), expected=())
        assert expected == _parse_error_as_dict(ctx.exception)

    def test_lex_non_ascii_whitespace_is_invalid(self):
        for mode in (ParseMode.STRICT, ParseMode.LAX):
            with self.assertRaises(ParseError) as ctx:
                list(Lexer("MIT\u00a0OR ISC", mode))
            # the span end is a byte offset: the no-break space is two bytes
            expected = dict(error_code=PARSE_INVALID_CHARACTERS, span=(3, 11), expected=())
            assert expected == _parse_error_as_dict(ctx.exception)

    def test_lex_separated_plus(self):
        with self.assertRaises(ParseError) as ctx:
            list(Lexer("LAL-1.2 +"))
        expected = dict(error_code=PARSE_SEPARATED_PLUS, span=(7, 8), expected=())
        assert expected == _parse_error_as_dict(ctx.exception)


class ParseErrorTest(TestCase):
    def check_error(self, text, error_code, span, expected=(), mode=ParseMode.STRICT):
        with self.assertRaises(ParseError) as ctx:
            Expression.parse_mode(text, mode)
        result = _parse_error_as_dict(ctx.exception)
        assert dict(error_code=error_code, span=span, expected=expected) == result

    def test_parse_empty(self):
        self.check_error("", PARSE_EMPTY, (0, 0))
        self.check_error(" ", PARSE_EMPTY, (0, 1))

    def test_parse_empty_parens(self):
        self.check_error("()", PARSE_UNEXPECTED, (1, 2), ("<license>", "("))

    def test_parse_bare_operator(self):
        self.check_error("AND", PARSE_UNEXPECTED, (0, 3), ("<license>", "("))
        self.check_error("WITH MIT", PARSE_UNEXPECTED, (0, 4), ("<license>", "("))

    def test_parse_unclosed_parens(self):
        self.check_error("(Apache-2.0", PARSE_UNCLOSED_PARENS, (0, 1))
        self.check_error("((MIT)", PARSE_UNCLOSED_PARENS, (0, 1))

    def test_parse_unopened_parens(self):
        self.check_error("BSD-3-Clause-No-Nuclear-License)", PARSE_UNOPENED_PARENS, (31, 32))
        self.check_error("(MIT))", PARSE_UNOPENED_PARENS, (5, 6))

    def test_parse_license_after_with(self):
        self.check_error("Apache-2.0 WITH MIT", PARSE_UNEXPECTED, (16, 19), ("<addition>",))

    def test_parse_with_at_the_end(self):
        self.check_error("Apache-2.0 WITH", PARSE_UNEXPECTED, (15, 15), ("<addition>",))

    def test_parse_operator_at_the_end(self):
        self.check_error("MIT-advertising AND", PARSE_UNEXPECTED, (19, 19), ("<license>", "("))
        self.check_error("MIT AND (Apache-2.0 OR", PARSE_UNEXPECTED, (22, 22), ("<license>", "("))

    def test_parse_plus_errors(self):
        self.check_error("LAL-1.2 +", PARSE_SEPARATED_PLUS, (7, 8))
        self.check_error("LAL+-1.2", PARSE_UNKNOWN_TERM, (0, 3))
        self.check_error("LAL-1.2++", PARSE_UNEXPECTED, (8, 9), ("AND", "OR", "WITH", ")"))
        self.check_error("LicenseRef-Nope+", PARSE_UNEXPECTED, (15, 16), ("AND", "OR", "WITH", ")"))
        self.check_error("LAL-1.2 WITH LLVM-exception+", PARSE_UNEXPECTED, (27, 28), ("AND", "OR", ")"))

    def test_parse_gnu_plus_fails_unless_allowed(self):
        self.check_error("GPL-2.0-only+", PARSE_GNU_NO_PLUS, (12, 13))
        expression = Expression.parse_mode("GPL-2.0-only+", ParseMode.LAX)
        assert "GPL-2.0-only+" == str(next(expression.requirements()))

    def test_parse_slash_fails_in_strict_mode(self):
        self.check_error("MIT/Apache-2.0", PARSE_INVALID_CHARACTERS, (3, 14))

    def test_parse_consecutive_operators(self):
        self.check_error("MIT OR OR Apache-2.0", PARSE_UNEXPECTED, (7, 9), ("<license>", "("))

    def test_parse_consecutive_licenses(self):
        self.check_error(
            "MIT Apache-2.0", PARSE_UNEXPECTED, (4, 14), ("AND", "OR", "WITH", ")", "+"))
        self.check_error("(MIT) Apache-2.0", PARSE_UNEXPECTED, (6, 16), ("AND", "OR"))

    def test_parse_consecutive_exceptions(self):
        self.check_error(
            "MIT WITH LLVM-exception WITH LLVM-exception",
            PARSE_UNEXPECTED, (24, 28), ("AND", "OR", ")"))

    def test_parse_exception_without_license(self):
        self.check_error("LLVM-exception", PARSE_UNEXPECTED, (0, 14), ("<license>", "("))

    def test_parse_deprecated_license(self):
        self.check_error("GPL-2.0", PARSE_DEPRECATED_LICENSE_ID, (0, 7))

    def test_parse_unknown_terms_when_allowed(self):
        self.check_error("MIT OR Foo", PARSE_UNKNOWN_LICENSE, (7, 10), mode=UNKNOWN_MODE)
        self.check_error("MIT WITH Foo", PARSE_UNKNOWN_EXCEPTION, (9, 12), mode=UNKNOWN_MODE)
        self.check_error(
            "MIT Foo", PARSE_UNEXPECTED, (4, 7), ("AND", "OR", "WITH", ")", "+"),
            mode=UNKNOWN_MODE)

    def test_parse_error_carries_boolean_attributes(self):
        with self.assertRaises(ParseError) as ctx:
            Expression.parse("Apache-2.0 WITH MIT")
        error = ctx.exception
        assert "MIT" == error.token_string
        assert 16 == error.position
        assert TOKEN_SYMBOL == error.token_type
        assert "Apache-2.0 WITH MIT" == error.original

    def test_parse_error_codes_are_registered_with_boolean(self):
        assert "unknown term" == PARSE_ERRORS[PARSE_UNKNOWN_TERM]
        assert "empty expression" == PARSE_ERRORS[PARSE_EMPTY]

    def test_parse_raise_ExpressionError_for_non_string(self):
        with self.assertRaises(ExpressionError):
            Expression.parse(b"MIT")
        with self.assertRaises(ExpressionError):
            Expression.parse(None)


class ParseErrorRenderingTest(TestCase):
    def get_error(self, text):
        with self.assertRaises(ParseError) as ctx:
            Expression.parse(text)
        return ctx.exception

    def test_render_single_expected(self):
        error = self.get_error("Apache-2.0 WITH MIT")
        expected = (
            "Apache-2.0 WITH MIT\n"
            "                ^^^ expected a `<addition>` here"
        )
        assert expected == str(error)
        assert "expected a `<addition>` here" == error.reason

    def test_render_multiple_expected(self):
        error = self.get_error("MIT Apache-2.0")
        expected = (
            "MIT Apache-2.0\n"
            "    ^^^^^^^^^^ expected one of `AND`, `OR`, `WITH`, `)`, `+` here"
        )
        assert expected == str(error)

    def test_render_unclosed_parens(self):
        error = self.get_error("(Apache-2.0")
        assert "(Apache-2.0\n- unclosed parens" == str(error)

    def test_render_unopened_parens(self):
        error = self.get_error("MIT)")
        assert "MIT)\n   ^ unopened parens" == str(error)

    def test_render_other_reasons(self):
        error = self.get_error("LAL-1.2 +")
        assert "LAL-1.2 +\n       ^ `+` must not follow whitespace" == str(error)

        error = self.get_error("MIT & BSD")
        assert "MIT & BSD\n    ^^^^^ invalid character(s)" == str(error)

    def test_render_non_ascii_invalid_characters(self):
        error = self.get_error("MIT\u00a0OR ISC")
        assert "MIT\u00a0OR ISC\n   ^^^^^^^ invalid character(s)" == str(error)

    def test_render_empty_end_of_input_span(self):
        error = self.get_error("MIT AND")
        expected = (
            "MIT AND\n"
            "        expected one of `<license>`, `(` here"
        )
        assert expected == str(error)


VALID_EXPRESSIONS = [
    "MIT",
    "MIT OR Apache-2.0",
    "(MIT OR Apache-2.0) AND BSD-3-Clause",
    "Apache-2.0 WITH LLVM-exception",
    "LAL-1.2+",
    "(GPL-2.0-only OR GPL-3.0-or-later) AND MIT",
    "LicenseRef-Foo AND DocumentRef-doc:LicenseRef-Bar",
    "MIT WITH AdditionRef-Extra OR ISC",
    "((MIT AND (Zlib)) OR (Apache-2.0 AND BSD-2-Clause+))",
    "  MIT  OR  ISC  ",
]


class ExpressionParseTest(TestCase):
    def test_parse_keeps_original_text(self):
        for text in VALID_EXPRESSIONS:
            expression = Expression.parse(text)
            assert text == str(expression)
            assert text == expression.original

    def test_parse_builds_well_formed_postfix_nodes(self):
        for text in VALID_EXPRESSIONS:
            depth = 0
            nodes = list(Expression.parse(text))
            for i, node in enumerate(nodes):
                if isinstance(node, ExpressionReq):
                    depth += 1
                else:
                    assert node in (OP_AND, OP_OR)
                    depth -= 1
                if i < len(nodes) - 1:
                    assert depth >= 1, text
            assert 1 == depth, text

    def test_parse_and_binds_tighter_than_or(self):
        expression = Expression.parse("MIT OR Apache-2.0 AND BSD-3-Clause")
        assert "MIT Apache-2.0 BSD-3-Clause AND OR" == expression.render_postfix()

        expression = Expression.parse("MIT AND Apache-2.0 OR BSD-3-Clause")
        assert "MIT Apache-2.0 AND BSD-3-Clause OR" == expression.render_postfix()

    def test_parse_operators_are_left_associative(self):
        expression = Expression.parse("MIT OR Apache-2.0 OR BSD-3-Clause")
        assert "MIT Apache-2.0 OR BSD-3-Clause OR" == expression.render_postfix()

    def test_parse_parens_group(self):
        expression = Expression.parse("(MIT OR Apache-2.0) AND BSD-3-Clause")
        assert "MIT Apache-2.0 OR BSD-3-Clause AND" == expression.render_postfix()

    def test_parse_redundant_parens_give_equal_expressions(self):
        assert Expression.parse("(MIT OR Apache-2.0)") == Expression.parse("MIT OR Apache-2.0")
        assert Expression.parse("((MIT))") == Expression.parse("MIT")
        assert Expression.parse("MIT AND ISC") != Expression.parse("MIT OR ISC")

    def test_parse_equal_expressions_hash_the_same(self):
        assert hash(Expression.parse("(MIT)")) == hash(Expression.parse("MIT"))

    def test_requirements_with_spans(self):
        expression = Expression.parse("MIT OR Apache-2.0 WITH LLVM-exception")
        requirements = list(expression.requirements())
        assert ["MIT", "Apache-2.0 WITH LLVM-exception"] == [str(r) for r in requirements]
        assert [(0, 3), (7, 37)] == [r.span for r in requirements]

    def test_requirements_can_be_iterated_many_times(self):
        expression = Expression.parse("MIT OR ISC")
        assert list(expression.requirements()) == list(expression.requirements())
        assert 3 == len(list(expression.iter()))

    def test_requirement_values(self):
        expression = Expression.parse("Apache-2.0 WITH LLVM-exception")
        req = next(expression.requirements()).req
        expected = LicenseReq(
            SpdxLicense(license_id("Apache-2.0")),
            SpdxException(exception_id("LLVM-exception")))
        assert expected == req

        req = next(Expression.parse("LicenseRef-Foo WITH AdditionRef-Bar").requirements()).req
        assert LicenseReq(LicenseRef("Foo"), AdditionRef("Bar")) == req

    def test_plus_sets_or_later_and_extends_span(self):
        ereq = next(Expression.parse("LAL-1.2+").requirements())
        assert ereq.req.license.or_later
        assert (0, 8) == ereq.span
        assert "LAL-1.2+" == str(ereq)

    def test_gnu_or_later_ids_are_or_later(self):
        ereq = next(Expression.parse("GPL-2.0-or-later").requirements())
        assert ereq.req.license.or_later
        assert "GPL-2.0-or-later" == str(ereq)

        ereq = next(Expression.parse("GPL-2.0-only").requirements())
        assert not ereq.req.license.or_later

    def test_parse_lax_expressions(self):
        expression = Expression.parse_mode("mit/apache2 and GPL-2.0+", ParseMode.LAX)
        requirements = [str(r) for r in expression.requirements()]
        assert ["MIT", "Apache-2.0", "GPL-2.0+"] == requirements
        assert "MIT Apache-2.0 GPL-2.0+ AND OR" == expression.render_postfix()

    def test_expression_repr(self):
        assert "Expression('MIT OR ISC')" == repr(Expression.parse("MIT OR ISC"))


class CanonicalizeTest(TestCase):
    def test_canonicalize_slash_and_lower_case_operators(self):
        assert "Apache-2.0 OR MIT" == Expression.canonicalize("Apache-2.0/MIT")
        assert "MIT AND ISC" == Expression.canonicalize("MIT and ISC")

    def test_canonicalize_gnu_plus(self):
        assert "MIT AND GPL-3.0-or-later" == Expression.canonicalize("MIT and GPL-3.0+")
        assert "LGPL-2.1-or-later" == Expression.canonicalize("LGPL-2.1-only+")

    def test_canonicalize_imprecise_names(self):
        result = Expression.canonicalize("simplified bsd license or gpl-2.0+")
        assert "BSD-2-Clause OR GPL-2.0-or-later" == result

        result = Expression.canonicalize("apache with LLVM-exception/mpl")
        assert "Apache-2.0 WITH LLVM-exception OR MPL-2.0" == result

        result = Expression.canonicalize("apache with LLVM-exception / gpl-3.0 or mit")
        assert "Apache-2.0 WITH LLVM-exception OR GPL-3.0-only OR MIT" == result

    def test_canonicalize_bare_gnu_ids(self):
        assert "GPL-2.0-only AND MIT" == Expression.canonicalize("GPL-2.0 and mit")

    def test_canonicalize_keeps_non_gnu_plus(self):
        assert Expression.canonicalize("Apache-2.0+") is None
        assert "Apache-2.0+ OR MIT" == Expression.canonicalize("Apache-2.0+ or MIT")

    def test_canonicalize_returns_none_when_unchanged(self):
        assert Expression.canonicalize("Apache-2.0 OR MIT") is None
        assert Expression.canonicalize("(MIT OR Apache-2.0) AND BSD-3-Clause") is None

    def test_canonicalize_is_idempotent_and_strict(self):
        for text in ("Apache-2.0/MIT", "MIT and GPL-3.0+", "apache with LLVM-exception/mpl"):
            canonical = Expression.canonicalize(text)
            assert Expression.canonicalize(canonical) is None
            Expression.parse(canonical)

    def test_canonicalize_propagates_lexer_errors(self):
        with self.assertRaises(ParseError) as ctx:
            Expression.canonicalize("MIT & Apache")
        assert PARSE_INVALID_CHARACTERS == ctx.exception.error_code


def accept(*names):
    """
    Return a predicate accepting requirements whose text is one of `names`.
    """
    return lambda req: str(req) in names


class EvaluateTest(TestCase):
    def test_evaluate_or(self):
        expression = Expression.parse("MIT OR Apache-2.0")
        assert expression.evaluate(accept("Apache-2.0"))
        assert expression.evaluate(accept("MIT"))
        assert not expression.evaluate(accept())

    def test_evaluate_and(self):
        expression = Expression.parse("MIT AND Apache-2.0")
        assert not expression.evaluate(accept("MIT"))
        assert expression.evaluate(accept("MIT", "Apache-2.0"))

    def test_evaluate_follows_operator_precedence(self):
        expression = Expression.parse("MIT OR Apache-2.0 AND BSD-3-Clause")
        names = ["MIT", "Apache-2.0", "BSD-3-Clause"]
        for size in range(len(names) + 1):
            for accepted in itertools.combinations(names, size):
                a, b, c = (name in accepted for name in names)
                assert (a or (b and c)) == expression.evaluate(accept(*accepted))

    def test_evaluate_with_license_flags(self):
        expression = Expression.parse("Borceux OR MIT AND BitTorrent-1.1")

        def osi_or_fsf(req):
            lic = req.license.id
            return lic.is_osi_approved or lic.is_fsf_free_libre

        def osi_and_fsf(req):
            lic = req.license.id
            return lic.is_osi_approved and lic.is_fsf_free_libre

        assert expression.evaluate(osi_or_fsf)
        assert not expression.evaluate(osi_and_fsf)

    def test_evaluate_with_failures_raises_on_failure(self):
        expression = Expression.parse("MIT AND Apache-2.0")
        with self.assertRaises(EvaluationError) as ctx:
            expression.evaluate_with_failures(accept("MIT"))
        failures = ctx.exception.failures
        assert ["Apache-2.0"] == [str(f) for f in failures]
        assert [(8, 18)] == [f.span for f in failures]

    def test_evaluate_with_failures_lists_all_failed_terms(self):
        expression = Expression.parse("MIT OR Apache-2.0")
        with self.assertRaises(EvaluationError) as ctx:
            expression.evaluate_with_failures(accept())
        assert ["MIT", "Apache-2.0"] == [str(f) for f in ctx.exception.failures]

    def test_evaluate_with_failures_succeeds_despite_failed_terms(self):
        expression = Expression.parse("MIT OR Apache-2.0")
        assert expression.evaluate_with_failures(accept("MIT")) is None


class BooleanAlgebraTest(TestCase):
    def test_as_boolean_renders_with_parens(self):
        expression = Expression.parse("MIT OR Apache-2.0 AND BSD-3-Clause")
        rendered = expression.as_boolean().render()
        assert "MIT OR (Apache-2.0 AND BSD-3-Clause)" == rendered

    def test_as_boolean_symbols_wrap_requirements(self):
        expression = Expression.parse("MIT OR Apache-2.0 WITH LLVM-exception")
        symbols = expression.as_boolean().get_symbols()
        reqs = [ereq.req for ereq in expression.requirements()]
        assert reqs == [symbol.req for symbol in symbols]

    def test_simplified(self):
        expression = Expression.parse("MIT OR (MIT AND Apache-2.0)")
        assert "MIT" == expression.simplified().render()

    def test_is_equivalent(self):
        expression = Expression.parse("(MIT AND Apache-2.0) OR BSD-3-Clause")
        assert expression.is_equivalent("BSD-3-Clause OR (Apache-2.0 AND MIT)")
        assert expression.is_equivalent(Expression.parse("BSD-3-Clause OR Apache-2.0 AND MIT"))
        assert not expression.is_equivalent("(MIT OR Apache-2.0) AND BSD-3-Clause")
        assert Expression.parse("MIT OR MIT").is_equivalent("MIT")

    def test_evaluate_agrees_with_boolean_substitution(self):
        expression = Expression.parse("(MIT OR ISC) AND (Apache-2.0 OR BSD-3-Clause) OR Zlib")
        algebra = RequirementAlgebra()
        boolean_expression = expression.as_boolean(algebra)
        symbols = boolean_expression.get_symbols()
        names = [str(symbol.req) for symbol in symbols]

        for size in range(len(names) + 1):
            for accepted in itertools.combinations(names, size):
                substitutions = {
                    symbol: algebra.TRUE if str(symbol.req) in accepted else algebra.FALSE
                    for symbol in symbols
                }
                result = boolean_expression.subs(substitutions, simplify=True)
                assert (result == algebra.TRUE) == expression.evaluate(accept(*accepted))
