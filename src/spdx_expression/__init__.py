#
# Copyright (c) nexB Inc. and others. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
# See http://www.apache.org/licenses/LICENSE-2.0 for the license text.
# See https://github.com/aboutcode-org/license-expression for support or download.
# See https://aboutcode.org for more information about nexB OSS projects.
#
"""
This module parses, validates and evaluates SPDX license expressions such as
"MIT OR Apache-2.0 WITH LLVM-exception".

Expressions are checked against the SPDX license and exception lists and are
stored in postfix order. An Expression can be evaluated against a predicate,
checked against a list of accepted licenses (Licensee objects) and reduced to
the smallest set of accepted licenses that satisfies it.

An Expression can also be viewed as a boolean.py expression to simplify it or
to test two expressions for equivalence.

The main entry points are Expression.parse() and Licensee.parse().
"""

import bisect
from collections import namedtuple
from functools import total_ordering
import logging
import re

import boolean

# note these may not all be used here but are imported here to avoid leaking
# boolean.py constants to callers
from boolean.boolean import PARSE_ERRORS
from boolean.boolean import ParseError as BooleanParseError
from boolean.boolean import TOKEN_AND
from boolean.boolean import TOKEN_LPAR
from boolean.boolean import TOKEN_OR
from boolean.boolean import TOKEN_RPAR
from boolean.boolean import TOKEN_SYMBOL

from spdx_expression._spdx_list import EXCEPTIONS
from spdx_expression._spdx_list import IMPRECISE_NAMES
from spdx_expression._spdx_list import IS_COPYLEFT
from spdx_expression._spdx_list import IS_DEPRECATED
from spdx_expression._spdx_list import IS_FSF_LIBRE
from spdx_expression._spdx_list import IS_GNU
from spdx_expression._spdx_list import IS_OSI_APPROVED
from spdx_expression._spdx_list import LICENSES
from spdx_expression._spdx_list import VERSION
from spdx_expression._trie import Trie

TRACE = False

logger = logging.getLogger(__name__)


def logger_debug(*args):
    pass


if TRACE:

    def logger_debug(*args):
        return logger.debug(' '.join(isinstance(a, str) and a or repr(a) for a in args))

    import sys
    logging.basicConfig(stream=sys.stdout)
    logger.setLevel(logging.DEBUG)

# append new error codes to PARSE_ERRORS by monkey patching
PARSE_UNKNOWN_LICENSE = 110
if PARSE_UNKNOWN_LICENSE not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_UNKNOWN_LICENSE] = 'unknown license id'

PARSE_UNKNOWN_EXCEPTION = 111
if PARSE_UNKNOWN_EXCEPTION not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_UNKNOWN_EXCEPTION] = 'unknown exception id'

PARSE_INVALID_CHARACTERS = 112
if PARSE_INVALID_CHARACTERS not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_INVALID_CHARACTERS] = 'invalid character(s)'

PARSE_UNCLOSED_PARENS = 113
if PARSE_UNCLOSED_PARENS not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_UNCLOSED_PARENS] = 'unclosed parens'

PARSE_UNOPENED_PARENS = 114
if PARSE_UNOPENED_PARENS not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_UNOPENED_PARENS] = 'unopened parens'

PARSE_EMPTY = 115
if PARSE_EMPTY not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_EMPTY] = 'empty expression'

PARSE_UNEXPECTED = 116
if PARSE_UNEXPECTED not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_UNEXPECTED] = 'the term was not expected here'

PARSE_SEPARATED_PLUS = 117
if PARSE_SEPARATED_PLUS not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_SEPARATED_PLUS] = '`+` must not follow whitespace'

PARSE_UNKNOWN_TERM = 118
if PARSE_UNKNOWN_TERM not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_UNKNOWN_TERM] = 'unknown term'

PARSE_GNU_NO_PLUS = 119
if PARSE_GNU_NO_PLUS not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_GNU_NO_PLUS] = 'a GNU license was followed by a `+`'

PARSE_GNU_PLUS_WITH_SUFFIX = 120
if PARSE_GNU_PLUS_WITH_SUFFIX not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_GNU_PLUS_WITH_SUFFIX] = (
        'a GNU license was followed by a `+`: use the `-only` or '
        '`-or-later` suffixed license id instead')

PARSE_DEPRECATED_LICENSE_ID = 121
if PARSE_DEPRECATED_LICENSE_ID not in PARSE_ERRORS:
    PARSE_ERRORS[PARSE_DEPRECATED_LICENSE_ID] = 'a deprecated license id was used'


class ExpressionError(Exception):
    pass


class ParseError(BooleanParseError):
    """
    Raised when a license expression or licensee string cannot be parsed.

    Besides the boolean.py ParseError attributes, this carries the `original`
    string, the `span` (start, end) tuple of the offending text in this string
    and the sequence of `expected` terms for PARSE_UNEXPECTED errors.

    Its string form shows the original string with a caret line pointing at the
    offending text, followed by the `reason`.
    """

    def __init__(self, original, span, error_code, expected=(), token_type=None):
        start, end = span
        super(ParseError, self).__init__(
            token_type=token_type,
            token_string=original[start:end],
            position=start,
            error_code=error_code,
        )
        self.original = original
        self.span = span
        self.expected = tuple(expected)

    @property
    def reason(self):
        if self.error_code == PARSE_UNEXPECTED:
            expected = self.expected
            if len(expected) > 1:
                return 'expected one of %s here' % ', '.join('`%s`' % e for e in expected)
            if expected:
                return 'expected a `%s` here' % expected[0]
        return PARSE_ERRORS.get(self.error_code, 'Unknown parsing error')

    def __str__(self):
        start, end = self.span
        if self.error_code == PARSE_UNCLOSED_PARENS:
            marker = '-'
        elif self.error_code == PARSE_UNOPENED_PARENS:
            marker = '^'
        else:
            marker = '^' * (min(end, len(self.original)) - start)
        return '%s\n%s%s %s' % (self.original, ' ' * start, marker, self.reason)


class EvaluationError(ExpressionError):
    """
    Raised when an expression is not satisfied. `failures` is the list of
    ExpressionReq that were not satisfied, in postfix order.
    """

    def __init__(self, failures):
        self.failures = failures
        super(EvaluationError, self).__init__(
            'the expression was not satisfied: failed requirements: %s'
            % ', '.join(str(f) for f in failures))


class MinimizeError(ExpressionError):
    pass


# Maximum number of licensees that can be minimized: every subset is tried
MAX_MINIMIZE_LICENSEES = 64


class TooManyRequirements(MinimizeError):

    def __init__(self, count):
        self.count = count
        super(TooManyRequirements, self).__init__(
            'the license expression required %d licensees which exceeds '
            'the limit of %d' % (count, MAX_MINIMIZE_LICENSEES))


class RequirementsUnmet(MinimizeError):

    def __init__(self):
        super(RequirementsUnmet, self).__init__(
            'the expression was not satisfied by the provided list of licensees')


################################################################################
# SPDX license and exception identifiers
################################################################################

@total_ordering
class LicenseId(object):
    """
    A license identifier from the SPDX license list. LicenseId objects are
    unique: use license_id() to get one.
    """
    __slots__ = 'name', 'full_name', 'index', 'flags'

    def __init__(self, name, full_name, index, flags):
        self.name = name
        self.full_name = full_name
        # position of this id in the sorted license list
        self.index = index
        self.flags = flags

    @property
    def is_fsf_free_libre(self):
        return bool(self.flags & IS_FSF_LIBRE)

    @property
    def is_osi_approved(self):
        return bool(self.flags & IS_OSI_APPROVED)

    @property
    def is_deprecated(self):
        return bool(self.flags & IS_DEPRECATED)

    @property
    def is_copyleft(self):
        return bool(self.flags & IS_COPYLEFT)

    @property
    def is_gnu(self):
        """
        Return True for a GNU license (AGPL, GFDL, GPL and LGPL). These use the
        "-only" and "-or-later" suffixes rather than a "+".
        """
        return bool(self.flags & IS_GNU)

    def __eq__(self, other):
        if not isinstance(other, LicenseId):
            return NotImplemented
        return self.index == other.index

    def __lt__(self, other):
        if not isinstance(other, LicenseId):
            return NotImplemented
        return self.index < other.index

    def __hash__(self):
        return hash(self.index)

    def __str__(self):
        return self.name

    def __repr__(self):
        return 'LicenseId(%r)' % self.name


@total_ordering
class ExceptionId(object):
    """
    A license exception identifier from the SPDX exception list. ExceptionId
    objects are unique: use exception_id() to get one.
    """
    __slots__ = 'name', 'index', 'flags'

    def __init__(self, name, index, flags):
        self.name = name
        self.index = index
        self.flags = flags

    @property
    def is_deprecated(self):
        return bool(self.flags & IS_DEPRECATED)

    def __eq__(self, other):
        if not isinstance(other, ExceptionId):
            return NotImplemented
        return self.index == other.index

    def __lt__(self, other):
        if not isinstance(other, ExceptionId):
            return NotImplemented
        return self.index < other.index

    def __hash__(self):
        return hash(self.index)

    def __str__(self):
        return self.name

    def __repr__(self):
        return 'ExceptionId(%r)' % self.name


LICENSE_IDS = tuple(
    LicenseId(name, full_name, index, flags)
    for index, (name, full_name, flags) in enumerate(LICENSES))

EXCEPTION_IDS = tuple(
    ExceptionId(name, index, flags)
    for index, (name, flags) in enumerate(EXCEPTIONS))

_license_names = [lic.name for lic in LICENSE_IDS]
_exception_names = [exc.name for exc in EXCEPTION_IDS]


def _lookup(names, ids, name):
    index = bisect.bisect_left(names, name)
    if index < len(names) and names[index] == name:
        return ids[index]


def license_id(name):
    """
    Return the LicenseId for a license `name` or None. The lookup is case
    sensitive. A single trailing "+" is ignored.

    For example:
    >>> license_id('MIT').full_name
    'MIT License'
    >>> license_id('LGPL-2.1+').name
    'LGPL-2.1'
    >>> license_id('mit') is None
    True
    """
    if name.endswith('+'):
        name = name[:-1]
    return _lookup(_license_names, LICENSE_IDS, name)


def exception_id(name):
    """
    Return the ExceptionId for an exception `name` or None. The lookup is case
    sensitive.
    """
    return _lookup(_exception_names, EXCEPTION_IDS, name)


def license_version():
    """
    Return the version of the SPDX license list this library uses.
    """
    return VERSION


def build_imprecise_names_index(imprecise_names=IMPRECISE_NAMES):
    """
    Return a case-insensitive Trie mapping the names of an `imprecise_names`
    sequence of (name, license id) and every lowercased license id to a
    LicenseId. Raise an ExpressionError for an imprecise name mapped to an
    unknown license id or to another license than the license id it spells.
    """
    index = Trie(ignore_case=True)
    for lic in LICENSE_IDS:
        index.add(lic.name, lic)
    for name, canonical in imprecise_names:
        lic = license_id(canonical)
        if not lic:
            raise ExpressionError(
                'Invalid imprecise license name mapping: %(name)r to unknown '
                'license id: %(canonical)r' % locals())
        existing = index.get(name, None)
        if existing and existing.value != lic:
            other = existing.key
            raise ExpressionError(
                'Invalid imprecise license name mapping: %(name)r to '
                '%(canonical)r conflicts with license id: %(other)r' % locals())
        index.add(name, lic)
    return index


_imprecise_names_index = build_imprecise_names_index()


def imprecise_license_id(text):
    """
    Return a (LicenseId, matched length) tuple for the longest known imprecise
    license name that starts `text`, ignoring case. Return None if there is no
    match. Only the first "matched length" characters of `text` are consumed.

    For example:
    >>> lic, length = imprecise_license_id('simplified bsd license or MIT')
    >>> lic.name, length
    ('BSD-2-Clause', 22)
    """
    match = _imprecise_names_index.longest_prefix(text)
    if match:
        length, output = match
        return output.value, length


################################################################################
# Licenses, exceptions and license requirements
################################################################################

GNU_SUFFIXES = ('-or-later', '-only')

# "-no-invariants" must be tested first as it ends with "-invariants"
GFDL_MODIFIERS = ('-no-invariants', '-invariants')


def has_gnu_suffix(name):
    return name.endswith(GNU_SUFFIXES)


def strip_gnu_suffix(name):
    """
    Return a GNU license `name` without any "-only" or "-or-later" suffix.
    """
    for suffix in GNU_SUFFIXES:
        if name.endswith(suffix):
            return name[:-len(suffix)]
    return name


def split_gfdl_modifier(name):
    """
    Return a (name, modifier) tuple splitting any GFDL invariants modifier
    from the end of a suffix-less license `name`. Modifier is empty if absent.
    """
    for modifier in GFDL_MODIFIERS:
        if name.endswith(modifier):
            return name[:-len(modifier)], modifier
    return name, ''


def version_base(name):
    """
    Return the part of a license `name` before its last dash, e.g. the name
    without its version.
    """
    head, dash, _ = name.rpartition('-')
    return head if dash else name


def or_later_satisfies(licensee_name, req_name):
    """
    Return True if a `licensee_name` license name is an acceptable later
    version of a `req_name` license name: both share the same version base and
    the licensee version sorts after or equal to the required one.
    """
    return (version_base(licensee_name) == version_base(req_name)
        and licensee_name >= req_name)


def gnu_or_later_satisfies(licensee_name, req_name):
    """
    Return True if a `licensee_name` GNU license name is an acceptable later
    version of a `req_name` GNU license name, ignoring the "-only" and
    "-or-later" suffixes. GFDL invariants modifiers must be the same.
    """
    licensee_name, licensee_modifier = split_gfdl_modifier(strip_gnu_suffix(licensee_name))
    req_name, req_modifier = split_gfdl_modifier(strip_gnu_suffix(req_name))
    if licensee_modifier != req_modifier:
        return False
    return or_later_satisfies(licensee_name, req_name)


def resolve_gnu_id(lic):
    """
    Return the "-only" LicenseId of a bare GNU LicenseId `lic` such as
    "GPL-2.0" or `lic` itself if it is not a bare GNU id.

    For example:
    >>> resolve_gnu_id(license_id('GPL-2.0')).name
    'GPL-2.0-only'
    >>> resolve_gnu_id(license_id('MIT')).name
    'MIT'
    """
    if lic.is_gnu and not has_gnu_suffix(lic.name):
        return license_id(lic.name + '-only') or lic
    return lic


@total_ordering
class LicenseItem(object):
    """
    Base class for the license part of a requirement: either an SpdxLicense or
    a LicenseRef. SPDX licenses sort before license references.
    """

    def sort_key(self):
        raise NotImplementedError

    def __eq__(self, other):
        if not isinstance(other, LicenseItem):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other):
        if not isinstance(other, LicenseItem):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self):
        return hash(self.sort_key())


class SpdxLicense(LicenseItem):
    """
    A license from the SPDX license list. `or_later` is True when any later
    version of this license is also acceptable.
    """

    def __init__(self, id, or_later=False):
        self.id = id
        self.or_later = or_later

    def sort_key(self):
        return 0, self.id.index, self.or_later

    def __str__(self):
        name = self.id.name
        if self.or_later and not (self.id.is_gnu and name.endswith('-or-later')):
            return name + '+'
        return name

    def __repr__(self):
        return 'SpdxLicense(%r, or_later=%r)' % (self.id.name, self.or_later)


class LicenseRef(LicenseItem):
    """
    A "[DocumentRef-<doc_ref>:]LicenseRef-<lic_ref>" reference to a license that
    is not on the SPDX license list.
    """

    def __init__(self, lic_ref, doc_ref=None):
        self.lic_ref = lic_ref
        self.doc_ref = doc_ref

    def sort_key(self):
        return 1, self.doc_ref is not None, self.doc_ref or '', self.lic_ref

    def __str__(self):
        if self.doc_ref is not None:
            return 'DocumentRef-%s:LicenseRef-%s' % (self.doc_ref, self.lic_ref)
        return 'LicenseRef-%s' % self.lic_ref

    def __repr__(self):
        return 'LicenseRef(%r, doc_ref=%r)' % (self.lic_ref, self.doc_ref)


@total_ordering
class AdditionItem(object):
    """
    Base class for the addition of a requirement introduced with WITH: either
    an SpdxException or an AdditionRef.
    """

    def sort_key(self):
        raise NotImplementedError

    def __eq__(self, other):
        if not isinstance(other, AdditionItem):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other):
        if not isinstance(other, AdditionItem):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self):
        return hash(self.sort_key())


class SpdxException(AdditionItem):

    def __init__(self, id):
        self.id = id

    def sort_key(self):
        return 0, self.id.index

    def __str__(self):
        return self.id.name

    def __repr__(self):
        return 'SpdxException(%r)' % self.id.name


class AdditionRef(AdditionItem):
    """
    A "[DocumentRef-<doc_ref>:]AdditionRef-<add_ref>" reference to a license
    addition that is not on the SPDX exception list.
    """

    def __init__(self, add_ref, doc_ref=None):
        self.add_ref = add_ref
        self.doc_ref = doc_ref

    def sort_key(self):
        return 1, self.doc_ref is not None, self.doc_ref or '', self.add_ref

    def __str__(self):
        if self.doc_ref is not None:
            return 'DocumentRef-%s:AdditionRef-%s' % (self.doc_ref, self.add_ref)
        return 'AdditionRef-%s' % self.add_ref

    def __repr__(self):
        return 'AdditionRef(%r, doc_ref=%r)' % (self.add_ref, self.doc_ref)


@total_ordering
class LicenseReq(object):
    """
    A single license requirement: a license with an optional addition such
    as an exception.
    """

    def __init__(self, license, addition=None):
        self.license = license
        self.addition = addition

    @classmethod
    def from_license_id(cls, license_id):
        """
        Return a new LicenseReq for a LicenseId. A GNU "-or-later" license id
        is "or later" by definition.
        """
        or_later = license_id.is_gnu and license_id.name.endswith('-or-later')
        return cls(SpdxLicense(license_id, or_later=or_later))

    def sort_key(self):
        addition = self.addition
        return (
            self.license.sort_key(),
            addition is not None,
            addition.sort_key() if addition is not None else (),
        )

    def __eq__(self, other):
        if not isinstance(other, LicenseReq):
            return NotImplemented
        return self.license == other.license and self.addition == other.addition

    def __lt__(self, other):
        if not isinstance(other, LicenseReq):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self):
        return hash((self.license, self.addition))

    def __str__(self):
        if self.addition is not None:
            return '%s WITH %s' % (self.license, self.addition)
        return str(self.license)

    def __repr__(self):
        return 'LicenseReq(%r, addition=%r)' % (self.license, self.addition)


class ExpressionReq(object):
    """
    A LicenseReq in an Expression with the (start, end) `span` of its text in
    the original expression string. The span is ignored in comparisons.
    """
    __slots__ = 'req', 'span'

    def __init__(self, req, span):
        self.req = req
        self.span = span

    def __eq__(self, other):
        if not isinstance(other, ExpressionReq):
            return NotImplemented
        return self.req == other.req

    def __hash__(self):
        return hash(self.req)

    def __str__(self):
        return str(self.req)

    def __repr__(self):
        return 'ExpressionReq(%r, span=%r)' % (self.req, self.span)


class Operator(namedtuple('Operator', 'value rank')):
    """
    An AND or OR operator node of an Expression. An operator with a lower
    rank binds tighter.
    """
    __slots__ = ()

    def __str__(self):
        return self.value


OP_AND = Operator('AND', 0)
OP_OR = Operator('OR', 1)


################################################################################
# Tokenizing
################################################################################

class ParseMode(namedtuple('ParseMode', [
    'allow_slash_as_or_operator',
    'allow_imprecise_license_names',
    'allow_postfix_plus_on_gpl',
    'allow_deprecated',
    'allow_unknown',
    'allow_lower_case_operators',
])):
    """
    Flags for the non-SPDX syntax accepted when parsing:

    - allow_slash_as_or_operator: "/" is an OR operator.
    - allow_imprecise_license_names: common non-SPDX license names such as
      "apache2" are recognized as their SPDX license.
    - allow_postfix_plus_on_gpl: a "+" can follow a GNU license.
    - allow_deprecated: deprecated license ids are accepted.
    - allow_unknown: unknown terms are returned as TOKEN_UNKNOWN tokens (that
      the expression and licensee parsers still reject).
    - allow_lower_case_operators: "and", "or" and "with" are operators.

    Use ParseMode.STRICT, ParseMode.LAX or a variant built with _replace().
    """
    __slots__ = ()


ParseMode.STRICT = ParseMode(
    allow_slash_as_or_operator=False,
    allow_imprecise_license_names=False,
    allow_postfix_plus_on_gpl=False,
    allow_deprecated=False,
    allow_unknown=False,
    allow_lower_case_operators=False,
)

ParseMode.LAX = ParseMode(
    allow_slash_as_or_operator=True,
    allow_imprecise_license_names=True,
    allow_postfix_plus_on_gpl=True,
    allow_deprecated=True,
    allow_unknown=False,
    allow_lower_case_operators=True,
)

# ids for tokens that are not boolean.py tokens
TOKEN_WITH = 10
TOKEN_PLUS = 11
TOKEN_EXCEPTION = 12
TOKEN_LICENSE_REF = 13
TOKEN_ADDITION_REF = 14
TOKEN_UNKNOWN = 15

# Used for tokenizing
Keyword = namedtuple('Keyword', 'value type')

KW_AND = Keyword('AND', TOKEN_AND)
KW_OR = Keyword('OR', TOKEN_OR)
KW_WITH = Keyword('WITH', TOKEN_WITH)

# mapping of uppercase operator strings to an operator keyword
OPERATORS = {'AND': KW_AND, 'OR': KW_OR, 'WITH': KW_WITH}

PUNCTUATIONS = {'(': TOKEN_LPAR, ')': TOKEN_RPAR, '+': TOKEN_PLUS}

# only ASCII whitespace separates tokens: any non-ASCII character is invalid
# so a token span is also a UTF-8 byte offset span
WHITESPACE = frozenset(' \t\n\r\f\v')


class Token(namedtuple('Token', 'type value start end')):
    """
    A token of an expression string with its `type` (a TOKEN_* constant), its
    `value` and the `start` and `end` index of its text in the string.

    The value is a LicenseId for TOKEN_SYMBOL, an ExceptionId for
    TOKEN_EXCEPTION, a LicenseRef or AdditionRef for the reference tokens and
    the matched text otherwise.
    """
    __slots__ = ()

    @property
    def span(self):
        return self.start, self.end


# a run of characters that can be part of an identifier
get_word = re.compile(r'[-a-zA-Z0-9.:]+').match

match_license_ref = re.compile(
    r'(?:DocumentRef-([-a-zA-Z0-9.]+):)?LicenseRef-([-a-zA-Z0-9.]+)').fullmatch

match_addition_ref = re.compile(
    r'(?:DocumentRef-([-a-zA-Z0-9.]+):)?AdditionRef-([-a-zA-Z0-9.]+)').fullmatch


class Lexer(object):
    """
    An iterator of the Token of an expression string `text` lexed using the
    ParseMode `mode`, STRICT by default. Raise a ParseError on invalid text.
    This is a single forward pass that cannot be restarted.

    For example:
    >>> [t.value.name for t in Lexer('MIT OR Apache-2.0') if t.type == TOKEN_SYMBOL]
    ['MIT', 'Apache-2.0']
    """

    def __init__(self, text, mode=None):
        self.text = text
        self.mode = ParseMode.STRICT if mode is None else mode
        self.offset = 0

    def __iter__(self):
        return self

    def __next__(self):
        text = self.text
        length = len(text)
        start = self.offset
        pos = start
        while pos < length and text[pos] in WHITESPACE:
            pos += 1
        self.offset = pos

        if pos == length:
            raise StopIteration

        char = text[pos]
        punctuation = PUNCTUATIONS.get(char)
        if punctuation:
            if punctuation == TOKEN_PLUS and pos != start:
                raise ParseError(
                    text, (start, pos), PARSE_SEPARATED_PLUS, token_type=TOKEN_PLUS)
            return self._emit(punctuation, char, pos, pos + 1)

        if char == '/' and self.mode.allow_slash_as_or_operator:
            return self._emit(TOKEN_OR, char, pos, pos + 1)

        word = get_word(text, pos)
        if not word:
            # the rest of the input, with its end as a byte offset
            end = pos + len(text[pos:].encode('utf-8'))
            raise ParseError(text, (pos, end), PARSE_INVALID_CHARACTERS)
        return self._classify(word.group(), pos)

    def _emit(self, token_type, value, start, end):
        self.offset = end
        token = Token(token_type, value, start, end)
        if TRACE:
            logger_debug('Lexer: token:', token)
        return token

    def _check_deprecated(self, lic, start, end):
        if lic.is_deprecated and not self.mode.allow_deprecated:
            raise ParseError(
                self.text, (start, end), PARSE_DEPRECATED_LICENSE_ID,
                token_type=TOKEN_SYMBOL)

    def _classify(self, word, start):
        """
        Return a Token for a `word` found at `start`.
        """
        mode = self.mode
        end = start + len(word)

        keyword = OPERATORS.get(word)
        if not keyword and mode.allow_lower_case_operators and word.islower():
            keyword = OPERATORS.get(word.upper())
        if keyword:
            return self._emit(keyword.type, word, start, end)

        lic = license_id(word)
        if lic:
            self._check_deprecated(lic, start, end)
            return self._emit(TOKEN_SYMBOL, lic, start, end)

        exc = exception_id(word)
        if exc:
            return self._emit(TOKEN_EXCEPTION, exc, start, end)

        ref = match_license_ref(word)
        if ref:
            doc_ref, lic_ref = ref.groups()
            return self._emit(TOKEN_LICENSE_REF, LicenseRef(lic_ref, doc_ref), start, end)

        ref = match_addition_ref(word)
        if ref:
            doc_ref, add_ref = ref.groups()
            return self._emit(TOKEN_ADDITION_REF, AdditionRef(add_ref, doc_ref), start, end)

        if mode.allow_imprecise_license_names:
            # an imprecise name can contain spaces: match on the remaining text
            imprecise = imprecise_license_id(self.text[start:])
            if imprecise:
                lic, length = imprecise
                self._check_deprecated(lic, start, start + length)
                return self._emit(TOKEN_SYMBOL, lic, start, start + length)

        if mode.allow_unknown:
            return self._emit(TOKEN_UNKNOWN, word, start, end)

        raise ParseError(self.text, (start, end), PARSE_UNKNOWN_TERM)


################################################################################
# Parsing
################################################################################

# token types that can precede a license or an open parens. None is the start.
LICENSE_PRECEDING = (None, TOKEN_AND, TOKEN_OR, TOKEN_LPAR)

# token types that can precede an operator or a close parens and that can end
# an expression
OPERAND_ENDING = (
    TOKEN_SYMBOL,
    TOKEN_LICENSE_REF,
    TOKEN_EXCEPTION,
    TOKEN_ADDITION_REF,
    TOKEN_PLUS,
    TOKEN_RPAR,
)

# token types that can precede a WITH
WITH_PRECEDING = (TOKEN_SYMBOL, TOKEN_LICENSE_REF, TOKEN_PLUS)

# mapping of a token type to the token types that can precede it
PRECEDING = {
    TOKEN_SYMBOL: LICENSE_PRECEDING,
    TOKEN_LICENSE_REF: LICENSE_PRECEDING,
    TOKEN_LPAR: LICENSE_PRECEDING,
    TOKEN_AND: OPERAND_ENDING,
    TOKEN_OR: OPERAND_ENDING,
    TOKEN_RPAR: OPERAND_ENDING,
    TOKEN_PLUS: (TOKEN_SYMBOL,),
    TOKEN_WITH: WITH_PRECEDING,
    TOKEN_EXCEPTION: (TOKEN_WITH,),
    TOKEN_ADDITION_REF: (TOKEN_WITH,),
}

# mapping of a token type to the terms expected after it, used in errors
EXPECTED_AFTER = {
    None: ('<license>', '('),
    TOKEN_AND: ('<license>', '('),
    TOKEN_OR: ('<license>', '('),
    TOKEN_LPAR: ('<license>', '('),
    TOKEN_RPAR: ('AND', 'OR'),
    TOKEN_EXCEPTION: ('AND', 'OR', ')'),
    TOKEN_ADDITION_REF: ('AND', 'OR', ')'),
    TOKEN_SYMBOL: ('AND', 'OR', 'WITH', ')', '+'),
    TOKEN_LICENSE_REF: ('AND', 'OR', 'WITH', ')'),
    TOKEN_PLUS: ('AND', 'OR', 'WITH', ')'),
    TOKEN_WITH: ('<addition>',),
}


class Expression(object):
    """
    A valid SPDX license expression, stored as the `original` string and a
    tuple of postfix `nodes`: ExpressionReq and Operator objects.

    For example:
    >>> expression = Expression.parse('MIT OR Apache-2.0 AND BSD-3-Clause')
    >>> expression.render_postfix()
    'MIT Apache-2.0 BSD-3-Clause AND OR'
    >>> expression.evaluate(lambda req: str(req) == 'MIT')
    True
    """

    def __init__(self, original, nodes):
        self.original = original
        self.nodes = tuple(nodes)

    @classmethod
    def parse(cls, original):
        """
        Return a new Expression parsed from an `original` string in strict
        mode. Raise a ParseError on errors.
        """
        return cls.parse_mode(original, ParseMode.STRICT)

    @classmethod
    def parse_mode(cls, original, mode):
        """
        Return a new Expression parsed from an `original` string using the
        ParseMode `mode`. Raise a ParseError on errors.
        """
        if not isinstance(original, str):
            ext = type(original)
            raise ExpressionError('expression must be a string and not: %(ext)r' % locals())

        def unexpected(previous_type, span, token_type=None):
            return ParseError(
                original, span, PARSE_UNEXPECTED,
                expected=EXPECTED_AFTER[previous_type],
                token_type=token_type,
            )

        # the postfix output queue
        nodes = []
        # stack of Operator and open parens tokens
        operators = []
        previous_type = None

        for token in Lexer(original, mode):
            token_type = token.type
            if TRACE:
                logger_debug('parse: token:', token, 'previous type:', previous_type)

            if token_type == TOKEN_UNKNOWN:
                if previous_type == TOKEN_WITH:
                    raise ParseError(
                        original, token.span, PARSE_UNKNOWN_EXCEPTION, token_type=token_type)
                if previous_type in LICENSE_PRECEDING:
                    raise ParseError(
                        original, token.span, PARSE_UNKNOWN_LICENSE, token_type=token_type)
                raise unexpected(previous_type, token.span, token_type)

            if previous_type not in PRECEDING[token_type]:
                raise unexpected(previous_type, token.span, token_type)

            if token_type == TOKEN_SYMBOL:
                nodes.append(ExpressionReq(LicenseReq.from_license_id(token.value), token.span))

            elif token_type == TOKEN_LICENSE_REF:
                nodes.append(ExpressionReq(LicenseReq(token.value), token.span))

            elif token_type == TOKEN_PLUS:
                last = nodes[-1]
                lic = last.req.license
                if lic.id.is_gnu and not mode.allow_postfix_plus_on_gpl:
                    raise ParseError(
                        original, token.span, PARSE_GNU_NO_PLUS, token_type=token_type)
                req = LicenseReq(SpdxLicense(lic.id, or_later=True), last.req.addition)
                nodes[-1] = ExpressionReq(req, (last.span[0], token.end))

            elif token_type in (TOKEN_EXCEPTION, TOKEN_ADDITION_REF):
                last = nodes[-1]
                if token_type == TOKEN_EXCEPTION:
                    addition = SpdxException(token.value)
                else:
                    addition = token.value
                req = LicenseReq(last.req.license, addition)
                nodes[-1] = ExpressionReq(req, (last.span[0], token.end))

            elif token_type in (TOKEN_AND, TOKEN_OR):
                new_op = OP_AND if token_type == TOKEN_AND else OP_OR
                while operators and isinstance(operators[-1], Operator):
                    if operators[-1].rank > new_op.rank:
                        break
                    nodes.append(operators.pop())
                operators.append(new_op)

            elif token_type == TOKEN_LPAR:
                operators.append(token)

            elif token_type == TOKEN_RPAR:
                while operators and isinstance(operators[-1], Operator):
                    nodes.append(operators.pop())
                if not operators:
                    raise ParseError(
                        original, token.span, PARSE_UNOPENED_PARENS, token_type=token_type)
                # discard the matching open parens
                operators.pop()

            previous_type = token_type

        if previous_type is None:
            raise ParseError(original, (0, len(original)), PARSE_EMPTY)

        if previous_type not in OPERAND_ENDING:
            end = len(original)
            raise unexpected(previous_type, (end, end))

        while operators:
            top = operators.pop()
            if not isinstance(top, Operator):
                raise ParseError(
                    original, top.span, PARSE_UNCLOSED_PARENS, token_type=TOKEN_LPAR)
            nodes.append(top)

        if TRACE:
            logger_debug('parse: nodes:', nodes)

        return cls(original, nodes)

    @classmethod
    def canonicalize(cls, original):
        """
        Return a canonical version of an `original` expression string that
        can be parsed in strict mode or None if `original` is already
        canonical. Raise a ParseError if the text cannot be lexed in lax mode.

        The rewrites are:
        - "/" and lowercase operators become uppercase operators with single
          spaces around them.
        - imprecise license names become their SPDX license id.
        - a "+" following a GNU license becomes the "-or-later" license id.
        - a deprecated GNU license id without suffix becomes the "-only" id.

        Parsing the result can still fail, e.g. on unbalanced parens.

        For example:
        >>> Expression.canonicalize('apache with LLVM-exception/mpl')
        'Apache-2.0 WITH LLVM-exception OR MPL-2.0'
        >>> Expression.canonicalize('MIT') is None
        True
        """
        parts = []
        # (index in parts, LicenseId) of a GNU license when it is the last token
        last_gnu = None

        for token in Lexer(original, ParseMode.LAX):
            token_type = token.type
            gnu = None

            if token_type == TOKEN_SYMBOL:
                lic = token.value
                name = lic.name
                if lic.is_gnu:
                    gnu = len(parts), lic
                    name = resolve_gnu_id(lic).name
                parts.append(name)

            elif token_type == TOKEN_PLUS:
                or_later = None
                if last_gnu:
                    index, lic = last_gnu
                    or_later = license_id(strip_gnu_suffix(lic.name) + '-or-later')
                if or_later:
                    parts[index] = or_later.name
                else:
                    parts.append('+')

            elif token_type == TOKEN_AND:
                parts.append(' AND ')
            elif token_type == TOKEN_OR:
                parts.append(' OR ')
            elif token_type == TOKEN_WITH:
                parts.append(' WITH ')
            elif token_type == TOKEN_LPAR:
                parts.append('(')
            elif token_type == TOKEN_RPAR:
                parts.append(')')
            else:
                parts.append(str(token.value))

            last_gnu = gnu

        canonical = ''.join(parts)
        if canonical != original:
            return canonical

    def __iter__(self):
        """
        Return an iterator over all the nodes of this expression in postfix
        order.
        """
        return iter(self.nodes)

    def iter(self):
        return iter(self)

    def requirements(self):
        """
        Yield the ExpressionReq of this expression in postfix order.
        """
        for node in self.nodes:
            if isinstance(node, ExpressionReq):
                yield node

    def _evaluate(self, predicate, failures=None):
        results = []
        for node in self.nodes:
            if isinstance(node, ExpressionReq):
                satisfied = bool(predicate(node.req))
                if not satisfied and failures is not None:
                    failures.append(node)
                results.append(satisfied)
            else:
                right = results.pop()
                left = results.pop()
                if node == OP_AND:
                    results.append(left and right)
                else:
                    results.append(left or right)
        return results.pop()

    def evaluate(self, predicate):
        """
        Return True if this expression is satisfied given a `predicate`
        callable that accepts a LicenseReq and returns True if this license
        requirement is satisfied.
        """
        return self._evaluate(predicate)

    def evaluate_with_failures(self, predicate):
        """
        Evaluate this expression like evaluate() and raise an EvaluationError
        listing every ExpressionReq that did not satisfy the `predicate` if
        the expression is not satisfied.
        """
        failures = []
        if not self._evaluate(predicate, failures):
            raise EvaluationError(failures)

    def minimized_requirements(self, accepted):
        """
        Return a list of the LicenseReq of the fewest licensees from an
        `accepted` sequence of Licensee that satisfy this expression. The
        `accepted` order is a priority: the earliest licensees are preferred.

        Raise a TooManyRequirements error if more than MAX_MINIMIZE_LICENSEES
        licensees apply to this expression or a RequirementsUnmet error if the
        `accepted` licensees do not satisfy this expression.
        """
        requirements = [ereq.req for ereq in self.requirements()]
        found = ordered_unique([
            licensee for licensee in accepted
            if any(licensee.satisfies(req) for req in requirements)])

        if TRACE:
            logger_debug('minimized_requirements: found:', found)

        if len(found) > MAX_MINIMIZE_LICENSEES:
            raise TooManyRequirements(len(found))

        if not self.evaluate(satisfied_by(found)):
            raise RequirementsUnmet()

        # Try every subset of found licensees in the order of its bitmask:
        # lower masks use the earliest licensees first.
        for mask in range(1, (1 << len(found)) + 1):
            selected = [
                licensee for bit, licensee in enumerate(found)
                if mask & (1 << bit)]
            if self.evaluate(satisfied_by(selected)):
                if TRACE:
                    logger_debug('minimized_requirements: selected:', selected)
                return [licensee.req for licensee in selected]

        return [licensee.req for licensee in found]

    def as_boolean(self, algebra=None):
        """
        Return a boolean.py expression for this expression built with a
        RequirementAlgebra `algebra` where each LicenseReq is a
        RequirementSymbol.
        """
        algebra = algebra or RequirementAlgebra()
        stack = []
        for node in self.nodes:
            if isinstance(node, ExpressionReq):
                stack.append(algebra.Symbol(node.req))
            else:
                right = stack.pop()
                left = stack.pop()
                if node == OP_AND:
                    stack.append(algebra.AND(left, right))
                else:
                    stack.append(algebra.OR(left, right))
        return stack.pop()

    def simplified(self, algebra=None):
        """
        Return a simplified boolean.py expression for this expression.

        For example:
        >>> expression = Expression.parse('MIT OR (MIT AND Apache-2.0)')
        >>> expression.simplified().render()
        'MIT'
        """
        return self.as_boolean(algebra).simplify()

    def is_equivalent(self, other):
        """
        Return True if this expression and an `other` Expression or
        expression string are logically equivalent.
        """
        if isinstance(other, str):
            other = Expression.parse(other)
        algebra = RequirementAlgebra()
        return self.simplified(algebra) == other.simplified(algebra)

    def render_postfix(self):
        return ' '.join(str(node) for node in self.nodes)

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self.nodes == other.nodes

    def __hash__(self):
        return hash(self.nodes)

    def __str__(self):
        return self.original

    def __repr__(self):
        return 'Expression(%r)' % self.original


def satisfied_by(licensees):
    """
    Return a predicate for Expression.evaluate() that is True for a
    LicenseReq satisfied by any of the `licensees`.
    """

    def predicate(req):
        return any(licensee.satisfies(req) for licensee in licensees)

    return predicate


def ordered_unique(seq):
    """
    Return unique items in a sequence seq preserving the original order.
    """
    if not seq:
        return []
    uniques = []
    for item in seq:
        if item in uniques:
            continue
        uniques.append(item)
    return uniques


################################################################################
# Licensees
################################################################################

@total_ordering
class Licensee(object):
    """
    A license that is accepted, possibly with an addition. Unlike a
    LicenseReq a Licensee is never "or later": it is one exact license.

    For example:
    >>> licensee = Licensee.parse('GPL-3.0-only')
    >>> licensee.satisfies(Expression.parse('GPL-2.0-or-later').nodes[0].req)
    True
    """

    def __init__(self, license, addition=None):
        if isinstance(license, SpdxLicense) and license.or_later:
            raise ExpressionError(
                'A licensee cannot be "or later": %(license)s' % locals())
        self.req = LicenseReq(license, addition)

    @classmethod
    def parse(cls, original):
        """
        Return a new Licensee parsed from an `original` string such as
        "MIT" or "Apache-2.0 WITH LLVM-exception" in strict mode. Raise a
        ParseError on errors.
        """
        return cls.parse_mode(original, ParseMode.STRICT)

    @classmethod
    def parse_mode(cls, original, mode):
        """
        Return a new Licensee parsed from an `original` string using the
        ParseMode `mode`. Raise a ParseError on errors.

        A bare GNU license id such as "GPL-2.0" is the "-only" license. A "+"
        cannot follow a GNU license and a GFDL "-no-invariants" license
        cannot be a licensee.
        """
        if not isinstance(original, str):
            ext = type(original)
            raise ExpressionError('licensee must be a string and not: %(ext)r' % locals())

        end = len(original)
        lexer = Lexer(original, mode)

        token = next(lexer, None)
        if token is None:
            raise ParseError(original, (0, end), PARSE_EMPTY)

        if token.type == TOKEN_SYMBOL:
            lic = token.value
            if lic.is_gnu:
                if split_gfdl_modifier(strip_gnu_suffix(lic.name))[1] == '-no-invariants':
                    raise ParseError(
                        original, token.span, PARSE_UNEXPECTED,
                        expected=('<license>',), token_type=token.type)
                lic = resolve_gnu_id(lic)
            license = SpdxLicense(lic)
        elif token.type == TOKEN_LICENSE_REF:
            license = token.value
        elif token.type == TOKEN_UNKNOWN:
            raise ParseError(
                original, token.span, PARSE_UNKNOWN_LICENSE, token_type=token.type)
        else:
            raise ParseError(
                original, token.span, PARSE_UNEXPECTED,
                expected=('<license>',), token_type=token.type)

        token = next(lexer, None)
        if token is None:
            return cls(license)

        if token.type == TOKEN_PLUS and isinstance(license, SpdxLicense) and license.id.is_gnu:
            raise ParseError(
                original, token.span, PARSE_GNU_PLUS_WITH_SUFFIX, token_type=token.type)

        if token.type != TOKEN_WITH:
            raise ParseError(
                original, token.span, PARSE_UNEXPECTED,
                expected=('WITH',), token_type=token.type)

        with_token = token
        token = next(lexer, None)
        if token is None:
            raise ParseError(
                original, with_token.span, PARSE_EMPTY, token_type=TOKEN_WITH)

        if token.type == TOKEN_EXCEPTION:
            addition = SpdxException(token.value)
        elif token.type == TOKEN_ADDITION_REF:
            addition = token.value
        elif token.type == TOKEN_UNKNOWN:
            raise ParseError(
                original, token.span, PARSE_UNKNOWN_EXCEPTION, token_type=token.type)
        else:
            raise ParseError(
                original, token.span, PARSE_UNEXPECTED,
                expected=('<addition>',), token_type=token.type)

        token = next(lexer, None)
        if token is not None:
            raise ParseError(original, token.span, PARSE_UNEXPECTED, token_type=token.type)

        return cls(license, addition)

    def satisfies(self, req):
        """
        Return True if this licensee satisfies a LicenseReq `req`.

        A licensee satisfies the same license or, when `req` is "or later", a
        later version of the same license. GNU licenses are compared without
        their "-only" and "-or-later" suffixes and a bare GNU license id such
        as "GPL-2.0" is the same as its "-only" id. The additions must be the
        same.
        """
        mine = self.req.license
        theirs = req.license

        if isinstance(mine, SpdxLicense) and isinstance(theirs, SpdxLicense):
            mine_id = resolve_gnu_id(mine.id)
            theirs_id = resolve_gnu_id(theirs.id)
            if mine_id != theirs_id:
                if not theirs.or_later:
                    return False
                if theirs_id.is_gnu:
                    if not (mine_id.is_gnu
                            and gnu_or_later_satisfies(mine_id.name, theirs_id.name)):
                        return False
                elif not or_later_satisfies(mine_id.name, theirs_id.name):
                    return False

        elif isinstance(mine, LicenseRef) and isinstance(theirs, LicenseRef):
            if mine != theirs:
                return False

        else:
            return False

        return self.req.addition == req.addition

    def __eq__(self, other):
        if not isinstance(other, Licensee):
            return NotImplemented
        return self.req == other.req

    def __lt__(self, other):
        if not isinstance(other, Licensee):
            return NotImplemented
        return self.req < other.req

    def __hash__(self):
        return hash(self.req)

    def __str__(self):
        return str(self.req)

    def __repr__(self):
        return 'Licensee(%r)' % str(self.req)


################################################################################
# boolean.py view of expressions
################################################################################

class Renderable(object):
    """
    An interface for renderable objects.
    """

    def render(self, template='{symbol.req}', *args, **kwargs):
        """
        Return a formatted string rendering for this expression using the
        `template` format string to render each symbol. The variables
        available are `symbol.req` and `symbol` for the RequirementSymbol.
        """
        raise NotImplementedError


class RequirementSymbol(Renderable, boolean.Symbol):
    """
    A boolean.py Symbol for a LicenseReq.
    """

    def __init__(self, req):
        if not isinstance(req, LicenseReq):
            raise ExpressionError(
                'A RequirementSymbol must wrap a LicenseReq: %(req)r' % locals())
        super(RequirementSymbol, self).__init__(req)

    @property
    def req(self):
        return self.obj

    def render(self, template='{symbol.req}', *args, **kwargs):
        return template.format(symbol=self)


class RenderableFunction(Renderable):
    # derived from the __str__ code in boolean.py

    def render(self, template='{symbol.req}', *args, **kwargs):
        """
        Render an expression as a string, recursively applying the string
        `template` to every symbol and parenthesizing nested operations.
        """
        rendered_items = []
        for arg in self.args:
            if isinstance(arg, Renderable):
                rendered = arg.render(template, *args, **kwargs)
            else:
                rendered = str(arg)

            if arg.isliteral:
                rendered_items.append(rendered)
            else:
                rendered_items.append('(%s)' % rendered)

        return self.operator.join(rendered_items)


class AND(RenderableFunction, boolean.AND):
    """
    Custom representation for the AND operator to uppercase.
    """

    def __init__(self, *args):
        super(AND, self).__init__(*args)
        self.operator = ' AND '


class OR(RenderableFunction, boolean.OR):
    """
    Custom representation for the OR operator to uppercase.
    """

    def __init__(self, *args):
        super(OR, self).__init__(*args)
        self.operator = ' OR '


class RequirementAlgebra(boolean.BooleanAlgebra):
    """
    A boolean algebra whose symbols are license requirements.
    """

    def __init__(self):
        super(RequirementAlgebra, self).__init__(
            Symbol_class=RequirementSymbol, AND_class=AND, OR_class=OR)
