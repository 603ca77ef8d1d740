"""
Split a guide document into addressable sections.

H1 and H2 headings are section boundaries; deeper headings (the numbered
rule blocks) stay inside their section's content. A document with no H1/H2
at all, such as a bare rules rendering, splits on its shallowest heading
level instead. Section ids are slugs of the heading text, so re-parsing a
document that was produced by splicing sections back together yields the
same ids and boundaries.

A document with no recognizable headings parses to an empty list. Callers
must treat that as "fall back to the raw content", not as an empty guide.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from toneguide.core.logging import get_logger
from toneguide.core.schemas_guide import (
    AccessTier,
    SectionVisibility,
    StyleGuideSection,
    match_section_config,
    normalize_tier,
    tier_rank,
)

logger = get_logger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_FENCE_RE = re.compile(r"^[ ]{0,3}(`{3,}|~{3,})")

DEFAULT_PLACEHOLDER = "_Unlock to see {title}._"


@dataclass(frozen=True)
class _Heading:
    level: int
    title: str
    start: int
    body_start: int


@dataclass
class GatedDocument:
    """A guide with tier-gated sections swapped for placeholders."""

    markdown: str
    locked_section_ids: list[str] = field(default_factory=list)


def slugify_heading(title: str) -> str:
    """Lowercase, non-alphanumeric runs to one hyphen, no edge hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def _scan_headings(markdown: str) -> list[_Heading] | None:
    """Locate section headings, skipping fenced code. None if a fence never closes."""
    headings: list[_Heading] = []
    fence: str | None = None
    offset = 0

    for line in markdown.splitlines(keepends=True):
        line_start = offset
        offset += len(line)
        text = line.rstrip("\r\n")

        fence_match = _FENCE_RE.match(text)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            continue
        if fence is not None:
            continue

        match = _HEADING_RE.match(text)
        if match:
            headings.append(
                _Heading(
                    level=len(match.group(1)),
                    title=match.group(2).strip(),
                    start=line_start,
                    body_start=offset,
                )
            )

    if fence is not None:
        return None
    if not headings:
        return headings

    # H1/H2 split a guide; a document without them splits on its shallowest level
    boundary = max(2, min(h.level for h in headings))
    return [h for h in headings if h.level <= boundary]


def parse_style_guide_content(markdown: Any) -> list[StyleGuideSection]:
    """
    Parse a guide document into ordered sections.

    Each section runs from its heading to the next boundary heading (or the end
    of the document); its content is the trimmed markdown in between.

    Args:
        markdown: Guide document

    Returns:
        Sections in document order; [] for empty, headingless or malformed
        (unclosed code fence) documents
    """
    if not isinstance(markdown, str) or not markdown.strip():
        return []

    headings = _scan_headings(markdown)
    if headings is None:
        logger.warning("Unclosed code fence in guide document; treating as unparseable")
        return []
    if not headings:
        return []

    sections: list[StyleGuideSection] = []
    taken: set[str] = set()

    for i, heading in enumerate(headings):
        end = headings[i + 1].start if i + 1 < len(headings) else len(markdown)
        config = match_section_config(heading.title)

        base_id = slugify_heading(heading.title) or f"section-{i}"
        section_id = base_id
        suffix = 1
        while section_id in taken:
            suffix += 1
            section_id = f"{base_id}-{suffix}"
        taken.add(section_id)

        sections.append(
            StyleGuideSection(
                id=section_id,
                title=heading.title,
                content=markdown[heading.body_start:end].strip(),
                level=heading.level,
                position=i,
                is_main_section=heading.level <= 2,
                config_id=config.id if config else None,
                min_tier=config.min_tier if config else AccessTier.STARTER,
                start=heading.start,
                end=end,
            )
        )

    return sections


def get_default_open_sections(sections: Sequence[StyleGuideSection]) -> list[str]:
    """
    Ids of the sections shown expanded by default.

    The first two sections are always open; of the rest, the first one
    (index 2) is the default expanded accordion item.
    """
    return [section.id for section in sections[:3]]


def find_section(
    sections: Iterable[StyleGuideSection], section_id: str
) -> StyleGuideSection | None:
    """Find a parsed section by id."""
    for section in sections:
        if section.id == section_id:
            return section
    return None


# =======================
# Tier gating
# =======================


def is_tier_unlocked(min_tier: Any, tier: Any) -> bool:
    """True when `tier` is at or above `min_tier` (starter < pro < agency)."""
    return tier_rank(normalize_tier(tier)) >= tier_rank(normalize_tier(min_tier))


def section_visibility(
    section_id: str, tier: Any, policy: Mapping[str, AccessTier]
) -> SectionVisibility:
    """
    Decide whether a section is shown verbatim or as a placeholder.

    Args:
        section_id: Section id
        tier: Viewer's tier (aliases such as "free" are normalized)
        policy: Minimum tier per section id; ids not listed are visible to all

    Returns:
        SectionVisibility.VISIBLE or SectionVisibility.PLACEHOLDER
    """
    min_tier = policy.get(section_id)
    if min_tier is None or is_tier_unlocked(min_tier, tier):
        return SectionVisibility.VISIBLE
    return SectionVisibility.PLACEHOLDER


def _policy_key(section: StyleGuideSection, policy: Mapping[str, AccessTier]) -> str:
    # Headings like "25 Core Rules" are gated through their known section id
    if section.id not in policy and section.config_id in policy:
        return section.config_id
    return section.id


def visibility_for_section(
    section: StyleGuideSection, tier: Any, policy: Mapping[str, AccessTier]
) -> SectionVisibility:
    """section_visibility for a parsed section, falling back to its known section id."""
    return section_visibility(_policy_key(section, policy), tier, policy)


# =======================
# Section editing
# =======================


def _heading_line(markdown: str, section: StyleGuideSection) -> str:
    line_end = markdown.find("\n", section.start)
    if line_end == -1:
        line_end = len(markdown)
    return markdown[section.start:line_end].rstrip("\r")


def _splice(markdown: str, section: StyleGuideSection, new_section_markdown: str) -> str:
    before = markdown[: section.start]
    after = markdown[section.end:]
    return before + new_section_markdown.strip() + ("\n\n" + after if after else "")


def _with_body(heading: str, body: str) -> str:
    body = body.strip()
    return f"{heading}\n\n{body}" if body else heading


def get_section_markdown(markdown: str, section_id: str) -> str:
    """
    Get a section (heading + body) from a document by id.

    Returns:
        Section markdown, or "" if the section is not found
    """
    if not markdown or not section_id:
        return ""
    section = find_section(parse_style_guide_content(markdown), section_id)
    if section is None:
        return ""
    return _with_body(f"{'#' * section.level} {section.title}", section.content)


def replace_section_in_markdown(markdown: str, section_id: str, new_section_markdown: str) -> str:
    """
    Replace a whole section (heading + body) with new markdown.

    Sibling sections and everything before the first heading are left
    untouched. Returns the document unchanged if the section is not found.
    """
    if not markdown or not section_id:
        return markdown
    section = find_section(parse_style_guide_content(markdown), section_id)
    if section is None:
        return markdown
    return _splice(markdown, section, new_section_markdown)


def replace_section_content(markdown: str, section_id: str, body: str) -> str:
    """
    Replace a section's body, keeping its heading line as-is.

    Used to swap real content for a placeholder string (and back) without
    disturbing sibling sections or the heading structure.
    """
    if not markdown or not section_id:
        return markdown
    section = find_section(parse_style_guide_content(markdown), section_id)
    if section is None:
        return markdown
    return _splice(markdown, section, _with_body(_heading_line(markdown, section), body))


def apply_tier_gating(
    markdown: str,
    tier: Any,
    policy: Mapping[str, AccessTier],
    placeholders: Mapping[str, str] | None = None,
) -> GatedDocument:
    """
    Replace every section the tier may not read with a placeholder.

    Args:
        markdown: Full guide document
        tier: Viewer's tier
        policy: Minimum tier per section id
        placeholders: Placeholder text per section id; defaults to
            DEFAULT_PLACEHOLDER formatted with the section title

    Returns:
        GatedDocument with the gated markdown and the ids that were locked
    """
    sections = parse_style_guide_content(markdown)
    placeholders = placeholders or {}
    locked = [
        s for s in sections if visibility_for_section(s, tier, policy) is SectionVisibility.PLACEHOLDER
    ]

    result = markdown
    # Splice from the end so earlier offsets stay valid
    for section in reversed(locked):
        key = _policy_key(section, policy)
        text = placeholders.get(key) or DEFAULT_PLACEHOLDER.format(title=section.title)
        result = _splice(result, section, _with_body(_heading_line(result, section), text))

    return GatedDocument(markdown=result, locked_section_ids=[s.id for s in locked])


def find_placeholder_sections(markdown: str, sentinels: Iterable[str]) -> list[str]:
    """
    Ids of sections whose whole body is one of the given sentinel strings.

    Only for documents stored without an explicit lock list; matching is
    verbatim (after trimming), never fuzzy.
    """
    sentinel_set = {s.strip() for s in sentinels if s and s.strip()}
    return [
        section.id
        for section in parse_style_guide_content(markdown)
        if section.content in sentinel_set
    ]


# =======================
# Editable view
# =======================


def build_editable_markdown(
    sections: Sequence[StyleGuideSection], tier: Any, policy: Mapping[str, AccessTier]
) -> str:
    """Join the sections the tier may edit (everything but the cover) into one document."""
    editable = [
        s
        for s in sections
        if s.id != "cover"
        and s.config_id != "cover"
        and visibility_for_section(s, tier, policy) is SectionVisibility.VISIBLE
    ]
    return "\n\n".join(_with_body(f"## {s.title}", s.content) for s in editable)


def merge_editable_into_full_markdown(
    full_markdown: str, editable_markdown: str, unlocked_section_ids: Sequence[str]
) -> str:
    """
    Write sections from the editable view back into the full document.

    The i-th section of the editable document replaces the section with the
    i-th id in `unlocked_section_ids`; locked sections are never touched.
    Targets are resolved against the original document before any edit, so
    a retitled section cannot redirect a later write-back.
    """
    if not full_markdown or not editable_markdown:
        return full_markdown

    full_sections = parse_style_guide_content(full_markdown)
    editable_sections = parse_style_guide_content(editable_markdown)
    targets = {}
    for section_id, edited in zip(unlocked_section_ids, editable_sections):
        target = find_section(full_sections, section_id)
        if target is None or section_id in targets:
            logger.warning(f"Section {section_id} missing from guide or repeated; edit dropped")
            continue
        targets[section_id] = (target, edited)

    result = full_markdown
    # Splice from the end so earlier offsets stay valid
    for target, edited in sorted(targets.values(), key=lambda pair: pair[0].start, reverse=True):
        result = _splice(result, target, _with_body(f"## {edited.title}", edited.content))
    return result
