"""Guide document template and the static copy that fills it."""

# ruff: noqa: E501
GUIDE_TEMPLATE = """# {{brand_name}} Tone of Voice Guide

{{DD MONTH YYYY}}

## About {{brand_name}}

{{brand_description}}

**Audience:** {{brand_audience}}

## Audience

{{audience_section}}

## How to Use This Guide

{{how_to_use_section}}

## Brand Voice

{{brand_voice_traits}}

## Style Rules

{{style_rules}}

## Before / After

{{before_after_examples}}

## Word List

{{word_list}}

## Questions?

{{contact_section}}
"""

# Template slot -> section id for every generated (non-static) section.
# Brand Voice comes first: its content is the context for the others.
GENERATED_SLOTS: tuple[tuple[str, str, str], ...] = (
    ("brand_voice_traits", "brand-voice", "brand voice traits"),
    ("audience_section", "audience", "audience section"),
    ("style_rules", "style-rules", "rules"),
    ("before_after_examples", "before-after", "before/after examples"),
    ("word_list", "word-list", "word list"),
)


def how_to_use_content(brand_name: str) -> str:
    """Static "How to Use" copy."""
    return (
        f"Use this guide whenever you write for {brand_name}: web pages, emails, "
        "social posts, support replies and product copy.\n\n"
        "- Start with **Brand Voice** to understand how we sound.\n"
        "- Check **Style Rules** when you are unsure about punctuation, numbers or formatting.\n"
        "- Use **Before / After** and the **Word List** as quick references while editing."
    )


def contact_content(brand_name: str, contact_email: str | None = None) -> str:
    """Contact copy for the closing section."""
    lead = f"Need help applying these guidelines? Have questions about {brand_name}'s voice?"
    if contact_email and contact_email.strip():
        return f"{lead}\n\n**Contact:** {contact_email.strip()}"
    return f"{lead}\n\nContact the {brand_name} content team."
