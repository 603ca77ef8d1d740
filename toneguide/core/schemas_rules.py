"""Pydantic schemas and taxonomy for style guide rules."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =======================
# Category taxonomy
# =======================

# Changing this list changes the category set of every stored guide; bump the
# version and write a migration note for previously stored category values.
RULE_CATEGORIES_VERSION = "2"

RULE_CATEGORIES: tuple[str, ...] = (
    "Abbreviations",
    "Acronyms",
    "Capitalisation",
    "Contractions",
    "Emojis",
    "Numbers",
    "Pronouns",
    "Serial Comma",
    "Hyphens",
    "Em Dash",
    "Apostrophes",
    "Quotation Marks",
    "Exclamation Points",
    "Titles and Headings",
    "Job Titles",
    "Dates",
    "Time & Time Zones",
    "Money",
    "Percentages",
    "Proper Nouns",
    "Active vs. Passive Voice",
    "Ampersands",
    "Slang & Jargon",
    "UK vs. US English",
    "Compound Adjectives",
)

_CATEGORY_SET = frozenset(RULE_CATEGORIES)


# =======================
# Rule models
# =======================


class RuleExamples(BaseModel):
    """A good/bad usage pair for one rule."""

    model_config = ConfigDict(frozen=True)

    good: str = Field(..., min_length=1, description="Correct usage")
    bad: str = Field(..., min_length=1, description="Same content applied incorrectly")


class StyleRule(BaseModel):
    """One atomic piece of brand-writing guidance."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1, description="One of RULE_CATEGORIES")
    title: str = Field(..., min_length=1, description="Short human-readable label")
    description: str = Field(..., min_length=1, description="One-sentence guidance")
    examples: RuleExamples = Field(..., description="Good and bad examples")


# =======================
# Predicates
# =======================


def is_valid_rule_category(category: Any) -> bool:
    """Check if a rule category is in the allowed list."""
    return isinstance(category, str) and category in _CATEGORY_SET


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def is_valid_rule(rule: Any) -> bool:
    """
    Check if a single candidate rule is structurally valid.

    Accepts either a StyleRule or an untyped mapping straight from model
    output. Never raises: wrong types and missing keys simply return False.

    Args:
        rule: Candidate rule

    Returns:
        True if category, title, description and both examples are non-empty
        strings and the category is in the taxonomy
    """
    if rule is None or isinstance(rule, (str, bytes)):
        return False

    category = _field(rule, "category")
    if not all(
        _non_empty_str(value)
        for value in (category, _field(rule, "title"), _field(rule, "description"))
    ):
        return False

    examples = _field(rule, "examples")
    if examples is None:
        return False
    if not (_non_empty_str(_field(examples, "good")) and _non_empty_str(_field(examples, "bad"))):
        return False

    return is_valid_rule_category(category)


def get_allowed_categories_prompt_text() -> str:
    """Get a numbered list of allowed categories for prompts."""
    return "\n".join(f"{i + 1}. {category}" for i, category in enumerate(RULE_CATEGORIES))
