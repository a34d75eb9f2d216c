"""Tests for promptforge.core.prompt_expander: rule-based idea expansion.

Tests cover:
- Validation of type, blank input and length limits.
- Category selection and its precedence order.
- Colour descriptor selection, independent of category.
- Output structure and verbatim containment of the idea.
"""

from __future__ import annotations

import pytest

from promptforge.core.errors import ValidationError
from promptforge.core.prompt_expander import (
    DEFAULT_COLOR,
    DEFAULT_PROFILE,
    PromptExpander,
    detect_color,
    detect_profile,
    expand_prompt,
)


class TestExpandValidation:
    """Verify that invalid ideas are rejected."""

    def test_empty_string_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            expand_prompt("")

    def test_whitespace_only_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            expand_prompt("   ")

    @pytest.mark.parametrize("value", [None, 123, {}, [], b"a cat"])
    def test_non_string_rejected(self, value):
        with pytest.raises(ValidationError, match="non-empty string"):
            expand_prompt(value)

    def test_too_long_rejected(self):
        with pytest.raises(ValidationError, match="too long"):
            expand_prompt("a" * 501)

    def test_maximum_length_accepted(self):
        idea = "a" * 500
        result = expand_prompt(idea)
        assert idea in result

    def test_custom_limit(self):
        expander = PromptExpander(max_idea_length=10)
        with pytest.raises(ValidationError):
            expander.expand("a very long idea")
        assert "short" in expander.expand("short")

    def test_validate_returns_trimmed_idea(self):
        assert PromptExpander().validate("  a dog  ") == "a dog"


class TestExpandCategories:
    """Verify category-specific descriptors."""

    def test_portrait(self):
        result = expand_prompt("portrait of a woman")
        assert "portrait of a woman" in result
        assert "soft natural lighting" in result
        assert "portrait composition" in result
        assert "professional portrait photography" in result

    def test_landscape(self):
        result = expand_prompt("mountain landscape")
        assert "mountain landscape" in result
        assert "golden hour lighting" in result
        assert "sweeping vista" in result
        assert "landscape photography" in result

    def test_abstract(self):
        result = expand_prompt("abstract geometric shapes")
        assert "artistic masterpiece" in result
        assert "dramatic lighting" in result
        assert "dynamic geometric composition" in result

    def test_animal(self):
        result = expand_prompt("wild tiger in jungle")
        assert "wild tiger in jungle" in result
        assert "natural lighting" in result
        assert "wildlife photography" in result
        assert "telephoto lens" in result

    def test_default(self):
        result = expand_prompt("a flower")
        assert result.startswith("highly detailed, photorealistic image of a flower")
        assert "dramatic lighting" in result
        assert "rule of thirds composition" in result
        assert "professional photography" in result

    def test_portrait_wins_over_landscape(self):
        """Portrait keywords take precedence when several categories match."""
        assert detect_profile("person in a forest").name == "portrait"

    def test_landscape_wins_over_animal(self):
        assert detect_profile("deer in a mountain meadow").name == "landscape"

    def test_abstract_wins_over_animal(self):
        assert detect_profile("abstract cat").name == "abstract"

    def test_keyword_matching_is_case_insensitive(self):
        assert detect_profile("PORTRAIT Of A Man").name == "portrait"

    def test_keywords_match_at_word_start(self):
        """'cat' matches 'cats' but not a word merely containing it."""
        assert detect_profile("three cats").name == "animal"
        assert detect_profile("education reform").name == DEFAULT_PROFILE.name

    def test_different_categories_give_different_prompts(self):
        portrait = expand_prompt("person smiling")
        landscape = expand_prompt("forest path")
        abstract = expand_prompt("geometric pattern")

        assert portrait != landscape
        assert landscape != abstract
        assert abstract != portrait


class TestExpandColor:
    """Verify colour descriptor selection."""

    def test_sunset_is_warm(self):
        assert "warm, golden tones" in expand_prompt("sunset over ocean")

    def test_ocean_is_cool(self):
        assert "cool blue tones" in expand_prompt("deep ocean waves")

    def test_black_and_white_is_monochromatic(self):
        assert "monochromatic tones" in expand_prompt("black and white street scene")

    def test_monochrome_keyword(self):
        assert detect_color("monochrome city") == "monochromatic tones with strong contrast"

    def test_default_is_vibrant(self):
        assert detect_color("a flower") == DEFAULT_COLOR

    def test_color_is_layered_on_category(self):
        """Colour comes from its own scan, so it combines with any category."""
        result = expand_prompt("portrait at sunset")
        assert "soft natural lighting" in result
        assert "warm, golden tones" in result


class TestExpandStructure:
    """Verify the shape of the expanded prompt."""

    def test_contains_idea_and_is_longer(self, sample_ideas):
        for idea in sample_ideas:
            result = expand_prompt(idea)
            assert idea in result
            assert len(result) > len(idea)

    def test_trims_surrounding_whitespace(self):
        result = expand_prompt("  a dog  ")
        assert "a dog" in result
        assert "  " not in result

    def test_contains_trimmed_idea_not_padded_input(self):
        """Containment holds for the trimmed idea; surrounding padding is dropped."""
        raw = "a cat "
        result = expand_prompt(raw)
        assert raw.strip() in result
        assert "image of a cat, " in result
        assert raw + "," not in result

    def test_ends_with_artstation(self):
        assert expand_prompt("a flower").endswith("trending on artstation")

    def test_full_format(self):
        assert expand_prompt("a flower") == (
            "highly detailed, photorealistic image of a flower, dramatic lighting, "
            "vibrant colors, rule of thirds composition, professional photography "
            "trending on artstation"
        )

    def test_long_idea_more_than_doubles(self):
        idea = "steampunk robot playing violin in Victorian library"
        assert len(expand_prompt(idea)) > len(idea) * 2

    def test_deterministic(self):
        assert expand_prompt("a cat") == expand_prompt("a cat")
