"""
Search query compiler.

Turns the free-text search box into a conjunction of record matchers.

Grammar
───────
A query is a sequence of terms separated by single whitespace. A term is
either a ``/regex/`` literal (which may contain spaces) or a run of
non-space characters. Each term may be prefixed with ``~`` to negate it.

::

    term        := ["~"] ( "/" pattern "/" | category ":" value | text )

    ~/^rp/          negated regex on the stripped display name
    tag:pvp         category-scoped literal (``tag``, then ``tags`` list)
    vanilla         literal substring of the stripped display name

Rules
─────
- A term shorter than two characters once ``~`` is stripped adds no
  constraint; single characters are treated as typing noise.
- Category detection runs before regex detection and splits on the first
  colon, so ``/http:x/`` is the category ``/http`` with value ``x/``.
- Literal text and category values have every regex metacharacter escaped;
  only ``/…/`` terms are used verbatim. All matching is case-insensitive.
- A term whose regex does not compile is dropped; the rest of the query
  still applies.
- Negation inverts the term's final outcome, after any list "any element"
  logic, not the regex itself.

Examples:
    >>> query = compile_query("~/^test/ tag:pvp")
    >>> [type(t).__name__ for t in query.terms]
    ['RegexTerm', 'CategoryTerm']
    >>> len(compile_query("a ~b"))   # too short: no constraint at all
    0
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Union

from serverview.core.errors import InvalidTermError
from serverview.core.logging import get_logger
from serverview.core.records import Record, category_value, field_text

__all__ = [
    "LiteralTerm",
    "RegexTerm",
    "CategoryTerm",
    "Term",
    "Matcher",
    "CompiledQuery",
    "MIN_TERM_LENGTH",
    "quote_re",
    "tokenize",
    "parse_term",
    "compile_term",
    "compile_query",
    "explain_query",
    "describe_terms",
]

logger = get_logger(__name__)

MIN_TERM_LENGTH = 2

_TERM_RE = re.compile(r"((?:~?/.*?/)|(?:\S+))\s?")
_CATEGORY_RE = re.compile(r"([^:]*?):(.*)")
_REGEX_LITERAL_RE = re.compile(r"/(.+)/")
_META_RE = re.compile(r"[.*+?^${}()|\[\]\\]")

Matcher = Callable[[Record], bool]


def quote_re(text: str) -> str:
    """Escape every regex metacharacter in ``text``."""
    return _META_RE.sub(lambda m: "\\" + m.group(0), text)


# =============================================================================
# TERMS
# =============================================================================


@dataclass(frozen=True)
class LiteralTerm:
    """Plain substring match on the stripped display name."""

    text: str
    negated: bool = False

    @property
    def pattern(self) -> str:
        return quote_re(self.text)


@dataclass(frozen=True)
class RegexTerm:
    """``/pattern/`` term matched verbatim against the stripped display name."""

    source: str
    negated: bool = False

    @property
    def pattern(self) -> str:
        return self.source


@dataclass(frozen=True)
class CategoryTerm:
    """``category:value`` term matched against a named record field."""

    category: str
    value: str
    negated: bool = False

    @property
    def pattern(self) -> str:
        return quote_re(self.value)


Term = Union[LiteralTerm, RegexTerm, CategoryTerm]


def tokenize(text: str | None) -> list[str]:
    """Split a search string into raw terms, left to right."""
    if not text:
        return []
    return [match.group(1) for match in _TERM_RE.finditer(text)]


def parse_term(raw: str) -> Term | None:
    """Classify one raw term; ``None`` when it is too short to constrain."""
    negated = raw.startswith("~")
    body = raw[1:] if negated else raw

    if len(body) < MIN_TERM_LENGTH:
        return None

    category_match = _CATEGORY_RE.fullmatch(body)
    if category_match:
        return CategoryTerm(
            category=category_match.group(1),
            value=category_match.group(2),
            negated=negated,
        )

    regex_match = _REGEX_LITERAL_RE.fullmatch(body)
    if regex_match:
        return RegexTerm(source=regex_match.group(1), negated=negated)

    return LiteralTerm(text=body, negated=negated)


# =============================================================================
# COMPILATION
# =============================================================================


def _compile_pattern(term: Term) -> re.Pattern[str]:
    try:
        return re.compile(term.pattern, re.IGNORECASE)
    except re.error as e:
        raise InvalidTermError(_describe(term), term.pattern, cause=e) from e


def compile_term(term: Term) -> Matcher:
    """Compile a parsed term into a record matcher.

    Raises:
        InvalidTermError: the term's pattern is not a valid regular expression.
    """
    regex = _compile_pattern(term)
    negated = term.negated

    if isinstance(term, CategoryTerm):
        category = term.category

        def match_category(record: Record) -> bool:
            value = category_value(record, category)
            if value is None:
                result = False
            elif isinstance(value, (list, tuple)):
                result = any(regex.search(field_text(item)) for item in value)
            else:
                result = regex.search(field_text(value)) is not None
            return not result if negated else result

        return match_category

    def match_name(record: Record) -> bool:
        result = regex.search(record.stripped_name) is not None
        return not result if negated else result

    return match_name


@dataclass(frozen=True)
class CompiledQuery:
    """All-must-pass conjunction of term matchers."""

    terms: tuple[Term, ...] = ()
    matchers: tuple[Matcher, ...] = field(default=(), repr=False)
    dropped: tuple[str, ...] = ()

    def __call__(self, record: Record) -> bool:
        for matcher in self.matchers:
            if not matcher(record):
                return False
        return True

    def __len__(self) -> int:
        return len(self.matchers)


def compile_query(text: str | None) -> CompiledQuery:
    """Compile a search string into a ``CompiledQuery``.

    Never raises: short terms are skipped and terms with malformed regular
    expressions are dropped (and logged at debug level).
    """
    terms: list[Term] = []
    matchers: list[Matcher] = []
    dropped: list[str] = []

    for raw in tokenize(text):
        term = parse_term(raw)
        if term is None:
            continue

        try:
            matcher = compile_term(term)
        except InvalidTermError as e:
            logger.debug("query_term_dropped", term=raw, error=str(e.cause))
            dropped.append(raw)
            continue

        terms.append(term)
        matchers.append(matcher)

    return CompiledQuery(terms=tuple(terms), matchers=tuple(matchers), dropped=tuple(dropped))


def explain_query(text: str | None) -> list[tuple[str, Term | None, str]]:
    """Describe how each raw term of ``text`` is handled.

    Returns ``(raw, term, status)`` triples where status is ``"active"``,
    ``"skipped"`` (too short) or ``"invalid"`` (regex does not compile).
    """
    rows: list[tuple[str, Term | None, str]] = []
    for raw in tokenize(text):
        term = parse_term(raw)
        if term is None:
            rows.append((raw, None, "skipped"))
            continue
        try:
            _compile_pattern(term)
        except InvalidTermError:
            rows.append((raw, term, "invalid"))
            continue
        rows.append((raw, term, "active"))
    return rows


def _describe(term: Term) -> str:
    prefix = "~" if term.negated else ""
    if isinstance(term, CategoryTerm):
        return f"{prefix}{term.category}:{term.value}"
    if isinstance(term, RegexTerm):
        return f"{prefix}/{term.source}/"
    return f"{prefix}{term.text}"


def describe_terms(terms: Sequence[Term]) -> list[str]:
    """Render parsed terms back to their query-string form."""
    return [_describe(term) for term in terms]
