"""
Guide assembly: fill the guide template, lock sections by tier, expand later.

Section content comes from generator collaborators supplied by the caller
(typically LLM chains). This module decides which sections are produced and
which get a placeholder; it never retries a generator on its own. A
generator that fails or returns nothing yields a fixed "could not generate"
line so one bad response cannot break the whole guide.

Locked sections are reported out-of-band (`locked_section_ids`). Matching on
placeholder text is only used for stored guides that have no lock list.
"""

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from toneguide.core.guide_template import (
    GENERATED_SLOTS,
    GUIDE_TEMPLATE,
    contact_content,
    how_to_use_content,
)
from toneguide.core.logging import get_logger, log_with_context
from toneguide.core.schemas_guide import (
    STYLE_GUIDE_SECTIONS,
    AccessTier,
    BrandDetails,
    SectionVisibility,
    StyleGuideSection,
    normalize_tier,
)
from toneguide.core.section_parser import (
    find_placeholder_sections,
    find_section,
    parse_style_guide_content,
    replace_section_content,
    section_visibility,
)
from toneguide.core.text_sanitizer import normalize_markdown_block

logger = get_logger(__name__)

# (brand, traits_context) -> markdown body, or None when nothing was produced
SectionGenerator = Callable[[BrandDetails, str | None], str | None]

# Placeholder copy is shared with the UI layer; change both together.
DEFAULT_PLACEHOLDERS: dict[str, str] = {
    "style-rules": "_Unlock to see Style Rules._",
    "before-after": "_Unlock to see Before/After examples._",
    "word-list": "_Unlock to see Word List._",
}

DEFAULT_TIER_POLICY: dict[str, AccessTier] = {
    config.id: config.min_tier
    for config in STYLE_GUIDE_SECTIONS
    if config.min_tier is not AccessTier.STARTER
}

# Sections whose generated prose only needs whitespace cleanup
_NORMALIZED_SECTIONS = {"audience", "brand-voice"}

_SLOT_FOR_SECTION = {section_id: slot for slot, section_id, _ in GENERATED_SLOTS}
_LABEL_FOR_SECTION = {section_id: label for _, section_id, label in GENERATED_SLOTS}
_SLOT_RE = re.compile(r"\{\{([^{}]+)\}\}")


@dataclass
class AssembledGuide:
    """A rendered guide plus its parsed sections and lock list."""

    markdown: str
    sections: list[StyleGuideSection] = field(default_factory=list)
    locked_section_ids: list[str] = field(default_factory=list)


def format_guide_date(day: date) -> str:
    """Format a date as "5 March 2026"."""
    return f"{day.day} {day.strftime('%B')} {day.year}"


def fallback_content(section_id: str) -> str:
    """Line used when a section could not be generated."""
    label = _LABEL_FOR_SECTION.get(section_id, section_id.replace("-", " "))
    return f"_Could not generate {label}._"


def build_traits_context(
    brand: BrandDetails, brand_voice_content: str | None, max_chars: int = 4000
) -> str | None:
    """
    Build the voice context handed to downstream section generators.

    Args:
        brand: Brand details (selected trait names are included)
        brand_voice_content: Rendered Brand Voice section body
        max_chars: Context length cap

    Returns:
        Context string, or None when there is nothing to pass on
    """
    parts = []
    if brand.traits:
        parts.append(f"Selected Traits: {', '.join(brand.traits)}")
    if brand_voice_content and brand_voice_content.strip():
        parts.append(brand_voice_content.strip())
    if not parts:
        return None
    return "\n\n".join(parts)[:max_chars]


def render_guide_template(
    template: str,
    brand: BrandDetails,
    contents: Mapping[str, str],
    *,
    contact_email: str | None = None,
    today: date | None = None,
) -> str:
    """
    Fill the guide template's {{slots}}.

    Args:
        template: Template markdown
        brand: Brand details for the static slots
        contents: Body per generated section id (see GENERATED_SLOTS)
        contact_email: Contact shown in the closing section
        today: Date printed on the cover (defaults to today)

    Returns:
        Rendered guide markdown
    """
    values = {
        "DD MONTH YYYY": format_guide_date(today or date.today()),
        "brand_name": brand.name,
        "brand_description": brand.description,
        "brand_audience": brand.audience,
        "how_to_use_section": how_to_use_content(brand.name),
        "contact_section": contact_content(brand.name, contact_email),
    }
    for section_id, body in contents.items():
        slot = _SLOT_FOR_SECTION.get(section_id)
        if slot:
            values[slot] = body

    # One pass: slot-like text inside brand details or generated content stays literal
    return _SLOT_RE.sub(lambda match: values.get(match.group(1), match.group(0)), template)


def _generate_section(
    section_id: str,
    generator: SectionGenerator | None,
    brand: BrandDetails,
    traits_context: str | None,
    guide_id: str | None = None,
) -> str:
    if generator is None:
        logger.debug(f"No generator supplied for section {section_id}")
        return fallback_content(section_id)

    try:
        content = generator(brand, traits_context)
    except Exception as e:
        log_with_context(
            logger,
            logging.ERROR,
            f"Section generator failed: {e}",
            guide_id=guide_id,
            brand=brand.name,
            section_id=section_id,
        )
        return fallback_content(section_id)

    if not content or not content.strip():
        log_with_context(
            logger,
            logging.WARNING,
            "Section generator returned no content",
            guide_id=guide_id,
            section_id=section_id,
        )
        return fallback_content(section_id)

    if section_id in _NORMALIZED_SECTIONS:
        return normalize_markdown_block(content)
    return content.strip()


def _generator_for(
    section: StyleGuideSection | None,
    section_id: str,
    generators: Mapping[str, SectionGenerator],
) -> SectionGenerator | None:
    if section_id in generators:
        return generators[section_id]
    if section is not None and section.config_id in generators:
        return generators[section.config_id]
    return None


def assemble_guide(
    brand: BrandDetails,
    tier: Any,
    generators: Mapping[str, SectionGenerator],
    *,
    template: str = GUIDE_TEMPLATE,
    policy: Mapping[str, AccessTier] = DEFAULT_TIER_POLICY,
    placeholders: Mapping[str, str] = DEFAULT_PLACEHOLDERS,
    contact_email: str | None = None,
    today: date | None = None,
    max_context_chars: int = 4000,
    guide_id: str | None = None,
) -> AssembledGuide:
    """
    Render a complete guide for a tier.

    Sections the tier cannot read are filled with their placeholder and
    never generated; every other generated section is produced by its
    generator, Brand Voice first so its content can steer the rest.

    Args:
        brand: Brand details
        tier: Viewer's tier ("free" and other aliases are normalized)
        generators: Section generator per section id
        template: Guide template
        policy: Minimum tier per section id
        placeholders: Placeholder text per section id
        contact_email: Contact shown in the closing section
        today: Cover date
        max_context_chars: Cap for the brand voice context
        guide_id: Stored guide id, for log context

    Returns:
        AssembledGuide with markdown, parsed sections and locked section ids
    """
    tier = normalize_tier(tier)
    contents: dict[str, str] = {}
    locked: list[str] = []
    traits_context: str | None = None

    for _slot, section_id, _label in GENERATED_SLOTS:
        if section_visibility(section_id, tier, policy) is SectionVisibility.PLACEHOLDER:
            contents[section_id] = placeholders.get(section_id) or fallback_content(section_id)
            locked.append(section_id)
            continue

        contents[section_id] = _generate_section(
            section_id, generators.get(section_id), brand, traits_context, guide_id
        )
        if section_id == "brand-voice" and contents[section_id] != fallback_content(section_id):
            traits_context = build_traits_context(brand, contents[section_id], max_context_chars)

    markdown = render_guide_template(
        template, brand, contents, contact_email=contact_email, today=today
    )
    sections = parse_style_guide_content(markdown)
    if not sections:
        logger.warning("Assembled guide has no parseable sections")

    log_with_context(
        logger,
        logging.INFO,
        "Assembled style guide",
        guide_id=guide_id,
        brand=brand.name,
        tier=tier.value,
        sections=len(sections),
        locked=",".join(locked) or "none",
    )

    return AssembledGuide(markdown=markdown, sections=sections, locked_section_ids=locked)


def expand_guide(
    markdown: str,
    brand: BrandDetails,
    tier: Any,
    generators: Mapping[str, SectionGenerator],
    *,
    locked_section_ids: Sequence[str] | None = None,
    policy: Mapping[str, AccessTier] = DEFAULT_TIER_POLICY,
    placeholders: Mapping[str, str] = DEFAULT_PLACEHOLDERS,
    max_context_chars: int = 4000,
    guide_id: str | None = None,
) -> AssembledGuide:
    """
    Fill previously locked sections that the tier can now read.

    The rest of the document, including content the user already edited,
    is preserved. Sections the tier still cannot read stay locked.

    Args:
        markdown: Stored guide document
        brand: Brand details
        tier: Viewer's (upgraded) tier
        generators: Section generator per section id
        locked_section_ids: Stored lock list; when None, sections whose body
            is exactly one of `placeholders` are treated as locked
        policy: Minimum tier per section id
        placeholders: Placeholder text per section id
        max_context_chars: Cap for the brand voice context
        guide_id: Stored guide id, for log context

    Returns:
        AssembledGuide with the expanded markdown and remaining locked ids
    """
    tier = normalize_tier(tier)
    if locked_section_ids is None:
        locked_section_ids = find_placeholder_sections(markdown, placeholders.values())

    sections = parse_style_guide_content(markdown)
    brand_voice = find_section(sections, "brand-voice")
    traits_context = build_traits_context(
        brand, brand_voice.content if brand_voice else None, max_context_chars
    )

    result = markdown
    still_locked: list[str] = []
    expanded_count = 0
    for section_id in locked_section_ids:
        section = find_section(sections, section_id)
        if section is None:
            log_with_context(
                logger,
                logging.WARNING,
                "Locked section not found in guide; skipping",
                guide_id=guide_id,
                section_id=section_id,
            )
            continue

        policy_id = section_id if section_id in policy else (section.config_id or section_id)
        if section_visibility(policy_id, tier, policy) is SectionVisibility.PLACEHOLDER:
            still_locked.append(section_id)
            continue

        generator = _generator_for(section, section_id, generators)
        body = _generate_section(
            section.config_id or section_id, generator, brand, traits_context, guide_id
        )
        result = replace_section_content(result, section_id, body)
        expanded_count += 1

    expanded = parse_style_guide_content(result)
    log_with_context(
        logger,
        logging.INFO,
        "Expanded style guide",
        guide_id=guide_id,
        brand=brand.name,
        tier=tier.value,
        expanded=expanded_count,
        still_locked=len(still_locked),
    )

    return AssembledGuide(markdown=result, sections=expanded, locked_section_ids=still_locked)
