"""Text normalization and string similarity for bank fields.

Bank statements carry free text typed by payers: mixed case, Polish
diacritics, random spacing and legal-form suffixes spelled a dozen ways.
Everything here is pure and never raises; empty input yields empty output or
a zero score.
"""

import re
import unicodedata

from rapidfuzz.distance import Levenshtein

_WHITESPACE_RE = re.compile(r"\s+")

# Separators stripped from company names before suffix removal
_NAME_PUNCTUATION_RE = re.compile(r"[.,\-]")
_RESIDUAL_PUNCTUATION_RE = re.compile(r"[^\w\s]")

# Legal-entity suffixes, in normalized form (no diacritics, no punctuation)
LEGAL_SUFFIXES: tuple[str, ...] = (
    "sp z o o",
    "sp zoo",
    "spzoo",
    "spolka z o o",
    "spolka z ograniczona odpowiedzialnoscia",
    "s a",
    "sa",
    "spolka akcyjna",
    "sp j",
    "spolka jawna",
    "sp k",
    "spolka komandytowa",
    "sp p",
    "spolka partnerska",
)

# Longest first so "spolka z o o" is removed before "s a" can bite into it
_SUFFIX_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(suffix)}\b")
    for suffix in sorted(LEGAL_SUFFIXES, key=len, reverse=True)
)

# Word-level name comparison: share of words matched, and per-word typo tolerance
MOST_WORDS_RATIO = 0.8
HALF_WORDS_RATIO = 0.5
WORD_SIMILARITY_THRESHOLD = 0.85

# Bank systems sometimes split invoice numbers: "FV/2024/ 0 01"
_DIGIT_GAP_RE = re.compile(r"(\d)\s+(?=\d)")
_SEPARATOR_THEN_DIGIT_RE = re.compile(r"([/\\_.\-])\s+(?=\d)")
_DIGIT_THEN_SEPARATOR_RE = re.compile(r"(\d)\s+(?=[/\\_.\-])")


def normalize(text: str | None) -> str:
    """Canonicalize free text for comparison.

    Lower-cases, strips diacritics (NFD decomposition without combining
    marks), maps "ł" to "l", collapses whitespace and trims. Idempotent.

    >>> normalize("  Zapłata  ZA Fakturę ")
    'zaplata za fakture'
    """
    if not text:
        return ""

    # Lowering may itself produce combining marks ("İ" -> "i" + dot above)
    text = _strip_marks(_strip_marks(text).lower())
    # "ł" has no decomposition, map it by hand
    text = text.replace("ł", "l")
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def similarity(a: str | None, b: str | None) -> float:
    """Normalized Levenshtein similarity in [0, 1].

    1 for equal normalized strings, 0 when either side is empty.
    """
    left = normalize(a)
    right = normalize(b)

    if left == right:
        return 1.0
    if not left or not right:
        return 0.0

    distance = Levenshtein.distance(left, right)
    return 1.0 - distance / max(len(left), len(right))


def strip_legal_suffixes(name: str | None) -> str:
    """Reduce a company name to its distinctive part.

    >>> strip_legal_suffixes("ACME Sp. z o.o.")
    'acme'
    """
    text = _NAME_PUNCTUATION_RE.sub(" ", normalize(name))
    text = _WHITESPACE_RE.sub(" ", text).strip()

    for pattern in _SUFFIX_PATTERNS:
        text = pattern.sub("", text)

    text = _RESIDUAL_PUNCTUATION_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def compare_company_names(first: str | None, second: str | None) -> float:
    """Score how likely two names denote the same company.

    Returns:
        1.0 on equal stripped names and 0.9 when one contains the other.
        Otherwise names sharing most of their words in any order score
        0.85-0.95 ("JANOWSKI TOMASZ" vs "Tomasz Janowski"), names sharing
        at least half 0.7-0.8, and anything else the edit-distance
        ``similarity``. 0.0 when either name is empty once legal suffixes
        are removed.
    """
    left = strip_legal_suffixes(first)
    right = strip_legal_suffixes(second)

    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    if left in right or right in left:
        return 0.9

    ratio = _word_match_ratio(left, right)
    if ratio >= MOST_WORDS_RATIO:
        return round(0.85 + ratio * 0.1, 4)
    if ratio >= HALF_WORDS_RATIO:
        return round(0.6 + ratio * 0.2, 4)
    return similarity(left, right)


def _word_match_ratio(left: str, right: str) -> float:
    """Share of words matched one-to-one across both names, order ignored.

    Single-letter words (initials, stray "i") are skipped; words within
    ``WORD_SIMILARITY_THRESHOLD`` edit similarity count as typos of each
    other.
    """
    left_words = [word for word in left.split(" ") if len(word) > 1]
    right_words = [word for word in right.split(" ") if len(word) > 1]
    if not left_words or not right_words:
        return 0.0

    unused = list(right_words)
    matched = 0
    for word in left_words:
        for index, candidate in enumerate(unused):
            if word == candidate or similarity(word, candidate) >= WORD_SIMILARITY_THRESHOLD:
                matched += 1
                del unused[index]
                break
    return matched / max(len(left_words), len(right_words))


def normalize_payment_title(title: str | None) -> str:
    """Undo spaces a bank inserted inside invoice numbers.

    Only touches spaces between digits and around separators next to
    digits, so "FIRMA XYZ" stays as is.

    >>> normalize_payment_title("PS 1 7/12/ 2025")
    'PS 17/12/2025'
    """
    if not title:
        return ""

    text = _DIGIT_GAP_RE.sub(r"\1", title)
    text = _SEPARATOR_THEN_DIGIT_RE.sub(r"\1", text)
    return _DIGIT_THEN_SEPARATOR_RE.sub(r"\1", text)
