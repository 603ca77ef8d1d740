"""Pydantic schemas for guide documents, sections and access tiers."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# =======================
# Access tiers
# =======================


class AccessTier(str, Enum):
    """Subscription level controlling which guide sections are visible."""

    STARTER = "starter"
    PRO = "pro"
    AGENCY = "agency"


_TIER_RANK = {AccessTier.STARTER: 0, AccessTier.PRO: 1, AccessTier.AGENCY: 2}

# Legacy plan names still found in stored profiles
_TIER_ALIASES = {"free": AccessTier.STARTER, "team": AccessTier.AGENCY}


def normalize_tier(value: Any) -> AccessTier:
    """
    Normalize a stored or user-supplied tier value.

    "free" maps to starter and "team" to agency; empty or unknown values
    fall back to starter (the least privileged tier).
    """
    if isinstance(value, AccessTier):
        return value
    if not isinstance(value, str):
        return AccessTier.STARTER

    key = value.strip().lower()
    if key in _TIER_ALIASES:
        return _TIER_ALIASES[key]
    try:
        return AccessTier(key)
    except ValueError:
        return AccessTier.STARTER


def tier_rank(tier: AccessTier) -> int:
    """Position of a tier in the starter < pro < agency ordering."""
    return _TIER_RANK[tier]


class SectionVisibility(str, Enum):
    """How a section is exposed to a given tier."""

    VISIBLE = "visible"
    PLACEHOLDER = "placeholder"


# =======================
# Sections
# =======================


@dataclass(frozen=True)
class SectionConfig:
    """A known guide section and the lowest tier that may read it."""

    id: str
    label: str
    min_tier: AccessTier
    match_heading: re.Pattern


STYLE_GUIDE_SECTIONS: tuple[SectionConfig, ...] = (
    SectionConfig("cover", "Cover Page", AccessTier.STARTER, re.compile(r"^Cover", re.I)),
    SectionConfig("about", "About Brand", AccessTier.STARTER, re.compile(r"^About", re.I)),
    SectionConfig("audience", "Audience", AccessTier.STARTER, re.compile(r"^(?:Your )?Audience", re.I)),
    SectionConfig("how-to-use", "How to Use", AccessTier.STARTER, re.compile(r"^How to Use", re.I)),
    SectionConfig(
        "general-guidelines",
        "General Guidelines",
        AccessTier.STARTER,
        re.compile(r"^General Guidelines", re.I),
    ),
    SectionConfig("brand-voice", "Brand Voice", AccessTier.STARTER, re.compile(r"^Brand Voice", re.I)),
    SectionConfig(
        "style-rules",
        "Style Rules",
        AccessTier.PRO,
        re.compile(r"^(?:\d+ )?(?:Core|Style) Rules", re.I),
    ),
    SectionConfig("before-after", "Before / After", AccessTier.PRO, re.compile(r"^Before.*After", re.I)),
    SectionConfig("word-list", "Word List", AccessTier.PRO, re.compile(r"^Word List", re.I)),
    SectionConfig("questions", "Questions", AccessTier.STARTER, re.compile(r"^Questions", re.I)),
)


def match_section_config(title: str) -> SectionConfig | None:
    """Find the known section a heading belongs to, if any."""
    for config in STYLE_GUIDE_SECTIONS:
        if config.match_heading.search(title):
            return config
    return None


class StyleGuideSection(BaseModel):
    """A heading-delimited span of a guide document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Deterministic slug of the heading text")
    title: str = Field(..., description="Heading text")
    content: str = Field(default="", description="Markdown body up to the next section heading")
    level: int = Field(..., ge=1, le=6, description="Heading level of the section boundary")
    position: int = Field(..., ge=0, description="Ordinal position in the document")
    is_main_section: bool = Field(default=True, description="True for H1/H2 sections")
    config_id: str | None = Field(default=None, description="Matching known section, if any")
    min_tier: AccessTier = Field(
        default=AccessTier.STARTER, description="Lowest tier of the matching known section"
    )
    start: int = Field(default=0, ge=0, description="Offset of the heading line in the document")
    end: int = Field(default=0, ge=0, description="Offset where the next section begins")


# =======================
# Brand input
# =======================


class BrandDetails(BaseModel):
    """Brand description supplied by the user when creating a guide."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(default="Your Brand", description="Brand name")
    description: str = Field(
        default="An innovative company focused on delivering exceptional results.",
        validation_alias=AliasChoices("description", "brandDetailsDescription", "brandDetailsText"),
        description="What the brand does",
    )
    audience: str = Field(
        default="Business professionals and decision makers", description="Target audience"
    )
    traits: list[str] = Field(default_factory=list, description="Selected voice trait names")
    keywords: list[str] = Field(default_factory=list, description="Brand keywords")
    formality_level: str = Field(
        default="",
        validation_alias=AliasChoices("formality_level", "formalityLevel"),
        description="Formality preference",
    )
    reading_level: str = Field(
        default="",
        validation_alias=AliasChoices("reading_level", "readingLevel"),
        description="Target reading level",
    )
    english_variant: str = Field(
        default="american",
        validation_alias=AliasChoices("english_variant", "englishVariant"),
        description="american or british",
    )

    @field_validator("name", "description", "audience", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value.strip() if isinstance(value, str) else value

    @field_validator("traits", mode="before")
    @classmethod
    def _trait_names(cls, value: Any) -> list[str]:
        # Traits arrive either as names or as {"name": ...} objects
        if not isinstance(value, list):
            return []
        names = []
        for trait in value:
            name = trait.get("name") if isinstance(trait, dict) else trait
            if isinstance(name, str) and name.strip():
                names.append(name.strip())
        return names

    @field_validator("keywords", mode="before")
    @classmethod
    def _keyword_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [k for k in value if isinstance(k, str) and k.strip()]
