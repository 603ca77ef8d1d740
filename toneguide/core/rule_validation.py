"""
Validation and deduplication of candidate style rules.

Model output is untrusted: items may be missing fields, carry the wrong
types, use a category outside the taxonomy, or repeat a category. None of
that is an error here. Every candidate lands in exactly one of the two
partitions and the caller decides whether a short `valid` list warrants
regeneration.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from toneguide.core.logging import get_logger, log_with_context
from toneguide.core.schemas_rules import RULE_CATEGORIES, StyleRule, is_valid_rule

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Partition of a candidate list into valid and rejected rules."""

    valid: list[StyleRule] = field(default_factory=list)
    invalid: list[Any] = field(default_factory=list)


def normalize_category(category: str) -> str:
    """Normalize a category for uniqueness checks (trimmed, lowercase)."""
    return category.strip().lower()


def _category_of(candidate: Any) -> str:
    if isinstance(candidate, Mapping):
        return candidate["category"]
    return candidate.category


def _to_style_rule(candidate: Any) -> StyleRule:
    if isinstance(candidate, StyleRule):
        return candidate
    if isinstance(candidate, Mapping):
        candidate = dict(candidate)
    return StyleRule.model_validate(candidate, from_attributes=True)


def validate_rules(candidates: Iterable[Any] | None) -> ValidationResult:
    """
    Validate candidate rules and separate valid from invalid.

    Candidates are checked in input order. A rule that fails the schema check
    is rejected; a structurally valid rule whose normalized category was
    already accepted is rejected as a duplicate (first occurrence wins).

    Args:
        candidates: Untrusted rule objects (dicts or StyleRule instances)

    Returns:
        ValidationResult with both partitions in input order
    """
    valid: list[StyleRule] = []
    invalid: list[Any] = []
    seen_categories: set[str] = set()

    if not isinstance(candidates, Iterable) or isinstance(candidates, (str, bytes, Mapping)):
        candidates = []

    for candidate in candidates:
        if not is_valid_rule(candidate):
            invalid.append(candidate)
            continue

        key = normalize_category(_category_of(candidate))
        if key in seen_categories:
            invalid.append(candidate)
            continue

        seen_categories.add(key)
        valid.append(_to_style_rule(candidate))

    log_with_context(
        logger,
        logging.DEBUG,
        "Validated rules",
        valid_count=len(valid),
        invalid_count=len(invalid),
    )

    return ValidationResult(valid=valid, invalid=invalid)


def missing_categories(rules: Iterable[StyleRule]) -> list[str]:
    """
    List taxonomy categories not covered by a rule set.

    Args:
        rules: Validated rules

    Returns:
        Uncovered categories in taxonomy order
    """
    covered = {normalize_category(rule.category) for rule in rules}
    return [c for c in RULE_CATEGORIES if normalize_category(c) not in covered]
