"""Content processing utilities - deep helper module.

Everything here is pure string work: heading normalization, the paywall
preview shown to anonymous readers, and the short excerpt used on article
cards. Slicing is by code point, never by byte.
"""

import re
import unicodedata
from typing import Optional

CONTENT_PREVIEW_LENGTH = 200
"""
Length of the excerpt on article cards and list views.
"""

DEFAULT_PREVIEW_CHARS = 400
DEFAULT_EXTENDED_PERCENTAGE = 40

ELLIPSIS = "…"

PARAGRAPH_BREAK = "\n\n"
SENTENCE_ENDINGS = (". ", "! ", "? ")

# Window around the extended-preview target in which a paragraph break is accepted.
EXTENDED_PARAGRAPH_TOLERANCE = 0.10

_H1_LINE = re.compile(r"^# ", re.MULTILINE)
_WHITESPACE = re.compile(r"\s")


def normalize_article_headings(content: str) -> str:
    """Demote level-1 markdown headings to level 2.

    The page template renders the article title as the only h1, so a
    ``# `` at the start of any line becomes ``## ``. Deeper headings are
    left alone.
    """
    return _H1_LINE.sub("## ", content)


def _sentence_cut(text: str, limit: int) -> Optional[int]:
    """End index (exclusive) after the latest sentence punctuation within ``limit`` chars."""
    best = -1
    for ending in SENTENCE_ENDINGS:
        # Punctuation must land inside the budget; the trailing space may not.
        pos = text.rfind(ending, 0, limit + 1)
        if pos > best:
            best = pos
    if best == -1:
        return None
    return best + 1


def _whitespace_cut(text: str, limit: int) -> Optional[int]:
    """Index of the latest whitespace strictly before ``limit``."""
    last = None
    for match in _WHITESPACE.finditer(text, 0, limit):
        last = match.start()
    return last


def _hard_cut(text: str, limit: int) -> str:
    """Slice at ``limit`` without separating a base character from its combining marks."""
    cut = limit
    while 0 < cut < len(text) and unicodedata.combining(text[cut]):
        cut -= 1
    return text[:cut] + ELLIPSIS


def _fallback_cut(text: str, limit: int) -> str:
    """Sentence, then word, then hard cut."""
    end = _sentence_cut(text, limit)
    if end is not None:
        return text[:end].rstrip()

    space = _whitespace_cut(text, limit)
    if space is not None:
        head = text[:space].rstrip()
        if head:
            return head + ELLIPSIS

    return _hard_cut(text, limit)


def get_content_preview(content: str, max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    """
    Truncate article content at a natural boundary for the paywall preview.

    Preference order:
      1. a blank-line paragraph break between 50% and 100% of the budget;
      2. the latest sentence ending (``. ``, ``! ``, ``? ``) within the budget;
      3. the latest whitespace before the budget, followed by an ellipsis;
      4. a hard cut at exactly ``max_chars`` followed by an ellipsis.

    Content that already fits is returned whole (after heading
    normalization). The result never ends in whitespace, so feeding it back
    in with the same or a larger budget returns it unchanged.

    Args:
        content: Full article text (markdown-like).
        max_chars: Character budget, must be >= 0.

    Returns:
        The preview text.
    """
    if max_chars < 0:
        raise ValueError("max_chars must be >= 0")

    text = normalize_article_headings(content.strip())

    if len(text) <= max_chars:
        return text

    paragraph = text.find(PARAGRAPH_BREAK, int(max_chars * 0.5))
    if paragraph != -1 and paragraph <= max_chars:
        head = text[:paragraph].rstrip()
        if head:
            return head

    return _fallback_cut(text, max_chars)


def get_extended_preview(content: str, percentage: float = DEFAULT_EXTENDED_PERCENTAGE) -> str:
    """
    Preview sized as a share of the whole article instead of a fixed budget.

    The target length is ``percentage`` percent of the normalized text. A
    paragraph break within +/-10% of the target wins (the one closest to the
    target); otherwise the same sentence / whitespace / hard-cut fallbacks
    as ``get_content_preview`` apply, measured against the target.

    Raises:
        ValueError: If ``percentage`` is not in (0, 100].
    """
    if not 0 < percentage <= 100:
        raise ValueError("percentage must be in (0, 100]")

    text = normalize_article_headings(content.strip())
    target = int(len(text) * percentage / 100)

    if percentage == 100 or len(text) <= target:
        return text

    low = int(target * (1 - EXTENDED_PARAGRAPH_TOLERANCE))
    high = int(target * (1 + EXTENDED_PARAGRAPH_TOLERANCE))

    best = None
    pos = text.find(PARAGRAPH_BREAK, low)
    while pos != -1 and pos <= high:
        if best is None or abs(pos - target) < abs(best - target):
            best = pos
        pos = text.find(PARAGRAPH_BREAK, pos + 1)

    if best is not None:
        head = text[:best].rstrip()
        if head:
            return head

    return _fallback_cut(text, target)


def generate_content_preview(content: str) -> str:
    """Short card excerpt: first paragraph of plain-ish text, cut to CONTENT_PREVIEW_LENGTH."""
    body = "\n".join(
        line for line in content.strip().splitlines() if not line.lstrip().startswith("#")
    ).strip()
    return get_content_preview(body, CONTENT_PREVIEW_LENGTH)


_SLUG_TRANSLITERATIONS = str.maketrans({"æ": "ae", "ø": "oe", "ß": "ss"})
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """URL slug: lowercase ASCII words joined by hyphens.

    >>> slugify("Ny logistikpark ved Køge")
    'ny-logistikpark-ved-koege'
    """
    decomposed = unicodedata.normalize("NFD", text.lower().translate(_SLUG_TRANSLITERATIONS))
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_SLUG.sub("-", ascii_only).strip("-")
