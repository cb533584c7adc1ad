"""Text normalization for answer comparison."""
import re

INVISIBLE_RE = re.compile("[\u200b-\u200d\ufeff\u00ad]")
EMPHASIS_RE = re.compile(r"[*_]+")
WHITESPACE_RE = re.compile(r"\s+")
TRAILING_PUNCT_RE = re.compile(r"[.?!…]+$")


def strip_markup(text: str) -> str:
    """Replace invisible characters and emphasis markers with spaces."""
    text = INVISIBLE_RE.sub(" ", text)
    return EMPHASIS_RE.sub(" ", text)


def strip_trailing_punctuation(text: str) -> str:
    # Repeat so "a. ." and "a ." both end up as "a".
    while True:
        stripped = TRAILING_PUNCT_RE.sub("", text).strip()
        if stripped == text:
            return stripped
        text = stripped


def normalize_answer_text(text) -> str:
    """Canonicalize an answer so that case, markup, spacing and final punctuation are ignored.

    Idempotent: normalize_answer_text(normalize_answer_text(x)) == normalize_answer_text(x).
    """
    if not text or not isinstance(text, str):
        return ""
    text = strip_markup(text).strip()
    text = WHITESPACE_RE.sub(" ", text)
    text = text.lower()
    return strip_trailing_punctuation(text)


def strip_markup_for_display(text) -> str:
    """Remove markup but keep case and punctuation, e.g. "**Affair**" -> "Affair"."""
    if not text or not isinstance(text, str):
        return ""
    return WHITESPACE_RE.sub(" ", strip_markup(text)).strip()
