"""Rule-based expansion of a short user idea into a descriptive image prompt.

The expander picks a content category from keywords in the idea, takes the
style, lighting, composition and quality descriptors for that category, and
layers a colour descriptor chosen by an independent keyword scan.

Category Detection
------------------
Categories are tried in order and the first match wins:

1. **portrait**  - portrait, person, face
2. **landscape** - landscape, nature, mountain, forest
3. **abstract**  - abstract, geometric
4. **animal**    - animal, wildlife and a list of species/settings
5. **default**   - anything else

Keywords match at word starts in the lowercased idea, so ``"cat"`` matches
``"two cats"`` but not ``"education"``.

Output Structure
----------------
::

    {style} image of {idea}, {lighting}, {color}, {composition}, {quality} trending on artstation

``{idea}`` is the trimmed input, unchanged, so the expanded prompt always
contains the trimmed idea as a substring.  Leading and trailing whitespace of
the raw input is not carried over: ``"a cat "`` yields ``"... image of a cat, ..."``.

Usage
-----
::

    >>> expand_prompt("mountain landscape")
    'breathtaking, highly detailed image of mountain landscape, golden hour lighting, ...'
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from promptforge.core.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_IDEA_LENGTH = 500


@dataclass(frozen=True)
class StyleProfile:
    """Descriptors contributed by a detected content category."""

    name: str
    style: str
    lighting: str
    composition: str
    quality: str


@dataclass(frozen=True)
class _Rule:
    profile: StyleProfile
    keywords: tuple[str, ...]


# ---------------------------------------------------------------------------
# Category rule table, in precedence order.
# ---------------------------------------------------------------------------
_CATEGORY_RULES: tuple[_Rule, ...] = (
    _Rule(
        StyleProfile(
            name="portrait",
            style="highly detailed, photorealistic",
            lighting="soft natural lighting",
            composition="portrait composition, shallow depth of field",
            quality="professional portrait photography",
        ),
        ("portrait", "person", "face"),
    ),
    _Rule(
        StyleProfile(
            name="landscape",
            style="breathtaking, highly detailed",
            lighting="golden hour lighting",
            composition="sweeping vista, wide angle composition",
            quality="landscape photography",
        ),
        ("landscape", "nature", "mountain", "forest"),
    ),
    _Rule(
        StyleProfile(
            name="abstract",
            style="artistic masterpiece, highly detailed",
            lighting="dramatic lighting",
            composition="dynamic geometric composition",
            quality="digital art",
        ),
        ("abstract", "geometric"),
    ),
    _Rule(
        StyleProfile(
            name="animal",
            style="highly detailed, photorealistic",
            lighting="natural lighting",
            composition="close-up shot, telephoto lens",
            quality="wildlife photography",
        ),
        (
            "animal",
            "wildlife",
            "cat",
            "dog",
            "bird",
            "tiger",
            "lion",
            "elephant",
            "horse",
            "wolf",
            "bear",
            "fox",
            "deer",
            "owl",
            "eagle",
            "jungle",
            "safari",
        ),
    ),
)

DEFAULT_PROFILE = StyleProfile(
    name="default",
    style="highly detailed, photorealistic",
    lighting="dramatic lighting",
    composition="rule of thirds composition",
    quality="professional photography",
)

# Colour rules, in precedence order.  Independent of the category.
_COLOR_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("warm, golden tones", ("sunset", "warm")),
    ("cool blue tones", ("ocean", "water", "cool")),
    (
        "monochromatic tones with strong contrast",
        ("monochrome", "black and white", "black-and-white"),
    ),
)

DEFAULT_COLOR = "vibrant colors"


def _has_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    """Return True if any keyword starts a word in *text* (already lowercased)."""
    return any(re.search(r"\b" + re.escape(keyword), text) for keyword in keywords)


def detect_profile(user_idea: str) -> StyleProfile:
    """Return the style profile of the first category whose keywords match."""
    text = user_idea.lower()
    for rule in _CATEGORY_RULES:
        if _has_keyword(text, rule.keywords):
            return rule.profile
    return DEFAULT_PROFILE


def detect_color(user_idea: str) -> str:
    """Return the colour descriptor for *user_idea*."""
    text = user_idea.lower()
    for color, keywords in _COLOR_RULES:
        if _has_keyword(text, keywords):
            return color
    return DEFAULT_COLOR


class PromptExpander:
    """Expand short user ideas into detailed image-generation prompts.

    The expander is stateless apart from its length limit; ``expand()`` is a
    pure function of its input.

    Attributes
    ----------
    max_idea_length : int
        Longest accepted idea, measured after trimming
    """

    def __init__(self, max_idea_length: int = DEFAULT_MAX_IDEA_LENGTH):
        self.max_idea_length = max_idea_length

    def validate(self, user_idea: object) -> str:
        """Validate a user idea and return it trimmed.

        Args:
            user_idea: Raw input from the caller

        Returns:
            The idea with surrounding whitespace removed

        Raises:
            ValidationError: If the idea is not a string, is blank, or is too long
        """
        if not isinstance(user_idea, str):
            raise ValidationError("User idea must be a non-empty string")

        idea = user_idea.strip()
        if not idea:
            raise ValidationError("User idea cannot be empty")
        if len(idea) > self.max_idea_length:
            raise ValidationError(
                f"User idea is too long ({len(idea)} characters). "
                f"Maximum is {self.max_idea_length} characters."
            )
        return idea

    def expand(self, user_idea: object) -> str:
        """Expand *user_idea* into a full prompt.

        Args:
            user_idea: Short description of the desired image

        Returns:
            The expanded prompt, containing the trimmed idea verbatim

        Raises:
            ValidationError: If the idea fails validation
        """
        idea = self.validate(user_idea)
        profile = detect_profile(idea)
        color = detect_color(idea)
        logger.debug(f"Expanding idea as '{profile.name}' with '{color}'")

        return (
            f"{profile.style} image of {idea}, {profile.lighting}, {color}, "
            f"{profile.composition}, {profile.quality} trending on artstation"
        )


def expand_prompt(user_idea: object) -> str:
    """Expand *user_idea* with the default length limit."""
    return PromptExpander().expand(user_idea)
