"""Tests for guide assembly and expansion."""

from datetime import date

from toneguide.core.guide_assembler import (
    DEFAULT_PLACEHOLDERS,
    assemble_guide,
    build_traits_context,
    expand_guide,
    format_guide_date,
    render_guide_template,
)
from toneguide.core.guide_template import GUIDE_TEMPLATE
from toneguide.core.schemas_guide import BrandDetails
from toneguide.core.section_parser import find_section, parse_style_guide_content

BRAND = BrandDetails(
    name="Acme",
    description="Project software for builders",
    audience="Site managers",
    traits=["Direct", "Warm"],
)
TODAY = date(2026, 3, 5)


def _static(text):
    return lambda brand, context: text


def _generators(calls=None):
    def record(section_id, text):
        def _gen(brand, context):
            if calls is not None:
                calls.append((section_id, context))
            return text

        return _gen

    return {
        "brand-voice": record("brand-voice", "**Direct**\n\n  Say it plainly.  "),
        "audience": record("audience", "Busy site managers."),
        "style-rules": record("style-rules", "### 1. Numbers\nSpell out one to nine\n✅ three\n❌ 3"),
        "before-after": record("before-after", "Before: Hi\nAfter: Hey there"),
        "word-list": record("word-list", "- sign in, not login"),
    }


class TestRenderGuideTemplate:
    def test_fills_static_and_generated_slots(self):
        markdown = render_guide_template(
            GUIDE_TEMPLATE,
            BRAND,
            {"brand-voice": "Voice.", "word-list": "Words."},
            contact_email="team@acme.test",
            today=TODAY,
        )
        assert markdown.startswith("# Acme Tone of Voice Guide\n\n5 March 2026")
        assert "Project software for builders" in markdown
        assert "Voice." in markdown
        assert "**Contact:** team@acme.test" in markdown
        assert "{{style_rules}}" in markdown

    def test_slot_text_in_brand_details_stays_literal(self):
        brand = BrandDetails(name="Acme", description="We love {{style_rules}} and {{brand_name}}")
        markdown = render_guide_template(
            GUIDE_TEMPLATE, brand, {"style-rules": "Paid rules."}, today=TODAY
        )
        about = find_section(parse_style_guide_content(markdown), "about-acme")
        assert about.content.startswith("We love {{style_rules}} and {{brand_name}}")
        assert markdown.count("Paid rules.") == 1

    def test_format_guide_date(self):
        assert format_guide_date(date(2026, 10, 19)) == "19 October 2026"


class TestAssembleGuide:
    def test_starter_gets_placeholders(self):
        calls = []
        guide = assemble_guide(BRAND, "free", _generators(calls), today=TODAY)
        assert guide.locked_section_ids == ["style-rules", "before-after", "word-list"]
        assert [c[0] for c in calls] == ["brand-voice", "audience"]

        rules = find_section(guide.sections, "style-rules")
        assert rules.content == DEFAULT_PLACEHOLDERS["style-rules"]
        word_list = find_section(guide.sections, "word-list")
        assert word_list.content == DEFAULT_PLACEHOLDERS["word-list"]

    def test_pro_gets_everything(self):
        guide = assemble_guide(BRAND, "pro", _generators(), today=TODAY)
        assert guide.locked_section_ids == []
        rules = find_section(guide.sections, "style-rules")
        assert rules.content.startswith("### 1. Numbers")
        assert "_Unlock to see" not in guide.markdown

    def test_section_order(self):
        guide = assemble_guide(BRAND, "agency", _generators(), today=TODAY)
        assert [s.id for s in guide.sections] == [
            "acme-tone-of-voice-guide",
            "about-acme",
            "audience",
            "how-to-use-this-guide",
            "brand-voice",
            "style-rules",
            "before-after",
            "word-list",
            "questions",
        ]

    def test_brand_voice_feeds_context(self):
        calls = []
        assemble_guide(BRAND, "pro", _generators(calls), today=TODAY)
        contexts = dict(calls)
        assert contexts["brand-voice"] is None
        assert "Selected Traits: Direct, Warm" in contexts["style-rules"]
        assert "Say it plainly." in contexts["style-rules"]

    def test_brand_voice_is_normalized(self):
        guide = assemble_guide(BRAND, "pro", _generators(), today=TODAY)
        assert find_section(guide.sections, "brand-voice").content == "**Direct**\n\nSay it plainly."

    def test_failing_generator_falls_back(self):
        generators = _generators()

        def boom(brand, context):
            raise RuntimeError("model timeout")

        generators["word-list"] = boom
        generators["before-after"] = _static("   ")
        guide = assemble_guide(BRAND, "pro", generators, today=TODAY)
        assert find_section(guide.sections, "word-list").content == "_Could not generate word list._"
        assert (
            find_section(guide.sections, "before-after").content
            == "_Could not generate before/after examples._"
        )
        assert find_section(guide.sections, "style-rules").content.startswith("### 1.")

    def test_missing_generator_falls_back(self):
        guide = assemble_guide(BRAND, "pro", {}, today=TODAY)
        assert find_section(guide.sections, "audience").content == "_Could not generate audience section._"


class TestExpandGuide:
    def test_fills_locked_sections_after_upgrade(self):
        preview = assemble_guide(BRAND, "starter", _generators(), today=TODAY)
        edited = preview.markdown.replace("Busy site managers.", "Edited audience copy.")

        expanded = expand_guide(
            edited,
            BRAND,
            "pro",
            _generators(),
            locked_section_ids=preview.locked_section_ids,
        )
        assert expanded.locked_section_ids == []
        assert "Edited audience copy." in expanded.markdown
        assert "_Unlock to see" not in expanded.markdown
        assert [s.id for s in expanded.sections] == [s.id for s in preview.sections]

    def test_detects_placeholders_without_lock_list(self):
        preview = assemble_guide(BRAND, "starter", _generators(), today=TODAY)
        expanded = expand_guide(preview.markdown, BRAND, "agency", _generators())
        assert find_section(expanded.sections, "word-list").content == "- sign in, not login"

    def test_tier_still_too_low(self):
        policy = {"style-rules": "pro", "word-list": "agency"}
        preview = assemble_guide(BRAND, "starter", _generators(), policy=policy, today=TODAY)
        assert preview.locked_section_ids == ["style-rules", "word-list"]

        expanded = expand_guide(
            preview.markdown,
            BRAND,
            "pro",
            _generators(),
            locked_section_ids=preview.locked_section_ids,
            policy=policy,
        )
        assert expanded.locked_section_ids == ["word-list"]
        assert find_section(expanded.sections, "style-rules").content.startswith("### 1.")

    def test_uses_stored_brand_voice_as_context(self):
        calls = []
        preview = assemble_guide(BRAND, "starter", _generators(), today=TODAY)
        expand_guide(
            preview.markdown,
            BRAND,
            "pro",
            _generators(calls),
            locked_section_ids=["style-rules"],
        )
        assert calls[0][0] == "style-rules"
        assert "Say it plainly." in calls[0][1]

    def test_unknown_locked_section_skipped(self):
        markdown = "## Brand Voice\n\nVoice."
        expanded = expand_guide(markdown, BRAND, "pro", _generators(), locked_section_ids=["word-list"])
        assert expanded.markdown == markdown
        assert parse_style_guide_content(expanded.markdown)[0].id == "brand-voice"


class TestBuildTraitsContext:
    def test_combines_traits_and_voice(self):
        context = build_traits_context(BRAND, "Voice body")
        assert context == "Selected Traits: Direct, Warm\n\nVoice body"

    def test_truncates(self):
        assert len(build_traits_context(BRAND, "x" * 10_000, max_chars=100)) == 100

    def test_nothing_to_pass(self):
        assert build_traits_context(BrandDetails(name="Plain"), None) is None
