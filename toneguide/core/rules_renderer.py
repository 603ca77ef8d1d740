"""Render validated style rules to canonical markdown.

Format per rule:
    ### N. Title
    Description line
    ✅ Good example
    ❌ Bad example

A description that starts with "#", "`" or "~" is backslash-escaped so it
renders as text and cannot become a section heading or open a code fence.

Blocks are separated by one blank line. Numbering follows list position, so
callers must pass rules in their final (post-validation) order and may only
concatenate the output, never reformat it.
"""

import re
from collections.abc import Sequence

from toneguide.core.schemas_rules import StyleRule
from toneguide.core.text_sanitizer import sanitize_rule_text

GOOD_GLYPH = "✅"
BAD_GLYPH = "❌"

# A description must never open a heading or a code fence
_BLOCK_MARKER_RE = re.compile(r"^([#`~])")


def _escape_block_marker(line: str) -> str:
    return _BLOCK_MARKER_RE.sub(r"\\\1", line)


def render_rule_block(rule: StyleRule, position: int) -> str:
    """
    Render one rule as a markdown block.

    Args:
        rule: Validated rule
        position: 1-based position in the rendered list

    Returns:
        Four-line markdown block
    """
    lines = [
        f"### {position}. {sanitize_rule_text(rule.title)}",
        _escape_block_marker(sanitize_rule_text(rule.description)),
        f"{GOOD_GLYPH} {sanitize_rule_text(rule.examples.good)}",
        f"{BAD_GLYPH} {sanitize_rule_text(rule.examples.bad)}",
    ]
    return "\n".join(lines)


def render_rules_markdown(rules: Sequence[StyleRule] | None) -> str:
    """Render a list of validated rules; an empty list renders to ""."""
    if not rules:
        return ""

    return "\n\n".join(render_rule_block(rule, index + 1) for index, rule in enumerate(rules))
