"""Text cleanup for generated rule copy.

Repairs common generation artifacts (stray replacement characters, invisible
joiners, glued-on quotes, broken times) before rule text is rendered.
Meaning is never altered and every pass is safe to run twice.
"""

import re

# U+FFFD replacement character
_REPLACEMENT_CHAR_RE = re.compile("\ufffd")

# Variation selectors, zero-width space/non-joiner/joiner, word joiner
_INVISIBLE_CHARS_RE = re.compile("[\ufe00-\ufe0f\u200b-\u200d\u2060]")

# word"Quote or word"/path -> word "Quote (any Unicode letter or digit)
_GLUED_QUOTE_RE = re.compile(r'([^\W_])(["\u201c])(?=[^\W_]|/)')

# 10: 00 -> 10:00 (at most two digits before the colon, exactly two after)
_SPACED_TIME_RE = re.compile(r"(?<=\d)(?<!\d{3}):\s+(?=\d{2}\b)")

_NEWLINES_RE = re.compile(r"[\r\n]+")


def sanitize_rule_text(text: object) -> str:
    """
    Clean a single line of rule text.

    Processing order:
    1. Strip U+FFFD replacement characters
    2. Strip variation selectors and zero-width characters
    3. Insert a space before a quote glued to the preceding word
    4. Rejoin times split by a stray space ("10: 00")
    5. Collapse newlines into single spaces
    6. Trim

    Args:
        text: Raw text; anything that is not a string sanitizes to ""

    Returns:
        Sanitized single-line text
    """
    if not isinstance(text, str) or not text:
        return ""

    result = _REPLACEMENT_CHAR_RE.sub("", text)
    result = _INVISIBLE_CHARS_RE.sub("", result)
    result = _GLUED_QUOTE_RE.sub(r"\1 \2", result)
    result = _SPACED_TIME_RE.sub(":", result)
    result = _NEWLINES_RE.sub(" ", result)

    return result.strip()


def normalize_markdown_block(text: str | None) -> str:
    """
    Normalize whitespace in a generated multi-line markdown block.

    Collapses 3+ newlines into one blank line and strips leading/trailing
    whitespace on every line.
    """
    if not text:
        return ""

    lines = [line.strip() for line in text.splitlines()]
    result = "\n".join(lines)
    result = re.sub(r"\n{3,}", "\n\n", result)
    return result.strip()
