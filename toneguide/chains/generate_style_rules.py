"""LLM chain for generating the Style Rules section of a guide."""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from openai import APIConnectionError, APITimeoutError, InternalServerError, OpenAI, RateLimitError

from toneguide.core.config import Settings
from toneguide.core.logging import get_logger, log_with_context
from toneguide.core.rule_validation import missing_categories, validate_rules
from toneguide.core.rules_renderer import render_rules_markdown
from toneguide.core.schemas_guide import BrandDetails
from toneguide.core.schemas_rules import StyleRule, get_allowed_categories_prompt_text

logger = get_logger(__name__)


# ruff: noqa: E501
SYSTEM_PROMPT = "You are a writing style guide expert. Return strict JSON only."

RULES_PROMPT = """Based on the brand info below, create exactly {count} specific writing style rules that support and reinforce the brand voice traits for this brand.

Brand Info:
- Brand Name: {name}
- Audience: {audience}
- What they do: {description}
{traits_section}
Style Constraints:
- Formality: {formality} (Professional: avoid contractions; Casual: allow contractions; Very Formal: use third person)
- Reading Level: {reading_level} (6-8: short sentences, simple vocab; 13+: technical precision allowed)
- English Variant: {english_variant} (apply spelling and punctuation accordingly)
{keyword_section}
CRITICAL: Choose ONLY from these allowed categories and use each category at most once. Reject content/tone/strategy topics (e.g., Clarity, Positive Language, Technical Terms).

Allowed Categories:
{categories}

Instructions:
- Each rule must be about writing style, grammar, punctuation, spelling, or formatting.
- Description must be 8-12 words. In about 60% of rules, reference 1-2 of the Selected Traits by name.
- Examples should be 6-12 words and written as if {name} is speaking to {audience}.
- Return a JSON object: {{"rules": [{{"category": "Contractions", "title": "Contractions", "description": "Avoid contractions to maintain our Authoritative tone", "examples": {{"good": "We will help you streamline workflows", "bad": "We'll help you streamline workflows"}}}}]}}

Return ONLY the JSON object with exactly {count} rules."""

REPAIR_PROMPT = """Some rules were rejected (invalid or repeated categories). Write {needed} replacement rules for {name}, using ONLY these categories that are still uncovered, each at most once:

{categories}

Rejected rules:
{rejected}

Brand context:
- Name: {name}
- Audience: {audience}
- What they do: {description}

Return a JSON object {{"rules": [...]}} with {needed} rules in the same shape as before."""


@dataclass
class StyleRulesResult:
    """Outcome of a style rule generation run."""

    rules: list[StyleRule] = field(default_factory=list)
    markdown: str = ""
    invalid_count: int = 0
    attempts: int = 0


def build_rules_prompt(brand: BrandDetails, count: int, traits_context: str | None = None) -> str:
    """Build the user prompt for a rule generation call."""
    traits_section = f"\nTraits Context:\n{traits_context}\n" if traits_context else ""
    if brand.traits:
        traits_section += f"\nSelected Traits: {', '.join(brand.traits)}\n"
    keyword_section = (
        "\nBrand Keywords (use naturally in examples where helpful):\n- "
        + "\n- ".join(brand.keywords[:15])
        + "\n"
        if brand.keywords
        else ""
    )
    return RULES_PROMPT.format(
        count=count,
        name=brand.name,
        audience=brand.audience,
        description=brand.description,
        traits_section=traits_section,
        formality=brand.formality_level or "Neutral",
        reading_level=brand.reading_level or "10-12",
        english_variant=brand.english_variant,
        keyword_section=keyword_section,
        categories=get_allowed_categories_prompt_text(),
    )


def parse_rule_candidates(raw_output: str) -> list[Any]:
    """
    Parse model output into a list of candidate rules.

    Accepts a bare JSON array, an object with a "rules" array, or a single
    rule object, optionally wrapped in a markdown code block.

    Raises:
        json.JSONDecodeError: If the output is not JSON
    """
    cleaned = raw_output.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    cleaned = cleaned.strip()

    parsed = json.loads(cleaned)
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        rules = parsed.get("rules")
        if isinstance(rules, list):
            return rules
        return [parsed]
    return []


def _complete(client: OpenAI, settings: Settings, model: str, prompt: str, max_tokens: int) -> str:
    """One JSON-mode completion, retried with exponential backoff on transient API errors."""
    for attempt in range(settings.OPENAI_MAX_RETRIES + 1):
        try:
            response = client.chat.completions.create(
                model=model,
                temperature=0.7,
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
            return response.choices[0].message.content or ""
        except (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError) as e:
            if attempt >= settings.OPENAI_MAX_RETRIES:
                raise
            delay = settings.OPENAI_RETRY_INITIAL_DELAY_SECONDS * (2**attempt)
            log_with_context(
                logger,
                logging.WARNING,
                f"OpenAI call failed ({type(e).__name__}), retrying in {delay}s",
                model=model,
                attempt=attempt + 1,
                max_attempts=settings.OPENAI_MAX_RETRIES + 1,
            )
            time.sleep(delay)
    return ""


def generate_style_rules(
    *,
    brand: BrandDetails,
    settings: Settings,
    traits_context: str | None = None,
    count: int | None = None,
    model_override: str | None = None,
    client: OpenAI | None = None,
) -> StyleRulesResult:
    """
    Generate, validate and render style rules using OpenAI.

    Each attempt asks for the full rule set; rejected rules trigger one
    repair call restricted to the still-uncovered categories. The combined
    list is re-validated so the first rule per category always wins.

    Args:
        brand: Brand details
        settings: Application settings
        traits_context: Brand voice context from the rendered Brand Voice section
        count: Rules wanted (defaults to settings.STYLE_RULES_COUNT)
        model_override: Optional model name instead of settings.STYLE_RULES_MODEL
        client: Optional OpenAI client (created from settings when omitted)

    Returns:
        StyleRulesResult; may hold fewer than `count` rules

    Raises:
        ValueError: If no attempt produced parseable output
    """
    client = client or OpenAI(api_key=settings.OPENAI_API_KEY)
    model = model_override or settings.STYLE_RULES_MODEL
    count = count or settings.STYLE_RULES_COUNT
    prompt = build_rules_prompt(brand, count, traits_context)

    candidates: list[Any] = []
    invalid_count = 0
    parsed_any = False
    attempts = 0

    while attempts < settings.STYLE_RULES_MAX_ATTEMPTS:
        attempts += 1
        log_with_context(
            logger,
            logging.INFO,
            "Requesting style rules",
            brand=brand.name,
            model=model,
            attempt=attempts,
            max_attempts=settings.STYLE_RULES_MAX_ATTEMPTS,
            count=count,
        )

        raw_output = _complete(client, settings, model, prompt, settings.STYLE_RULES_MAX_TOKENS)
        try:
            batch = parse_rule_candidates(raw_output)
        except json.JSONDecodeError as e:
            log_with_context(
                logger,
                logging.WARNING,
                f"Style rules JSON parsing failed: {e}",
                brand=brand.name,
                attempt=attempts,
            )
            continue
        parsed_any = True

        candidates.extend(batch)
        validation = validate_rules(candidates)
        invalid_count = len(validation.invalid)
        log_with_context(
            logger,
            logging.INFO,
            "Validated style rule batch",
            brand=brand.name,
            attempt=attempts,
            valid_count=len(validation.valid),
            invalid_count=len(validation.invalid),
            invalid_categories=",".join(_category_label(r) for r in validation.invalid) or None,
        )

        if len(validation.valid) >= count:
            break

        if validation.invalid and attempts < settings.STYLE_RULES_MAX_ATTEMPTS:
            repaired = _repair_rules(client, model, brand, settings, validation.valid, validation.invalid, count)
            candidates = list(validation.valid) + repaired
            if len(validate_rules(candidates).valid) >= count:
                break
        else:
            candidates = list(validation.valid)

    if not parsed_any:
        raise ValueError("Model output could not be parsed as style rules")

    validation = validate_rules(candidates)
    final_rules = validation.valid[:count]
    if len(final_rules) < count:
        log_with_context(
            logger,
            logging.WARNING,
            f"Generated {len(final_rules)} of {count} style rules",
            brand=brand.name,
            attempt=attempts,
        )

    return StyleRulesResult(
        rules=final_rules,
        markdown=render_rules_markdown(final_rules),
        invalid_count=invalid_count,
        attempts=attempts,
    )


def _category_label(rule: Any) -> str:
    if isinstance(rule, dict):
        return str(rule.get("category"))
    return str(getattr(rule, "category", None))


def _repair_rules(
    client: OpenAI,
    model: str,
    brand: BrandDetails,
    settings: Settings,
    valid: list[StyleRule],
    invalid: list[Any],
    count: int,
) -> list[Any]:
    """Ask for replacements covering uncovered categories. Failures return []."""
    uncovered = missing_categories(valid)
    needed = min(count - len(valid), len(uncovered))
    if needed <= 0:
        return []

    prompt = REPAIR_PROMPT.format(
        needed=needed,
        name=brand.name,
        audience=brand.audience,
        description=brand.description,
        categories="\n".join(f"- {c}" for c in uncovered),
        rejected=json.dumps(invalid, indent=2, default=str)[:3000],
    )
    raw_output = _complete(client, settings, model, prompt, settings.STYLE_RULES_REPAIR_MAX_TOKENS)
    try:
        return parse_rule_candidates(raw_output)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse repair response: {e}")
        return []


def make_style_rules_generator(settings: Settings, client: OpenAI | None = None):
    """
    Adapt generate_style_rules to the guide assembler's section generator shape.

    Returns:
        Callable (brand, traits_context) -> rendered rules markdown or None
    """

    def _generator(brand: BrandDetails, traits_context: str | None) -> str | None:
        result = generate_style_rules(
            brand=brand, settings=settings, traits_context=traits_context, client=client
        )
        return result.markdown or None

    return _generator
