"""
Comment Refiner — folds free-text designer feedback into DesignMetadata.

The comment is lower-cased once and scanned for substrings from fixed,
ordered vocabularies. Three kinds of update:

  - collect:  every matching keyword, in vocabulary order (colors, embellishments)
  - last:     each match overwrites the previous one, in vocabulary order (fabric)
  - priority: ordered (keywords, value) rules, first match wins (sheen, pattern, length)

Refinement is a pure re-derivation from the full comment text, so running it
twice with the same comment gives the same result as running it once.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import DesignMetadata

logger = logging.getLogger(__name__)

# ── Vocabularies ─────────────────────────────────────────────────────────────

FABRIC_KEYWORDS = (
    "cotton",
    "silk",
    "linen",
    "velvet",
    "satin",
    "chiffon",
    "lace",
    "denim",
    "wool",
    "polyester",
    "leather",
    "suede",
)

COLOR_KEYWORDS = (
    "red",
    "blue",
    "green",
    "yellow",
    "purple",
    "pink",
    "orange",
    "black",
    "white",
    "gray",
    "grey",
    "brown",
    "beige",
    "cream",
    "ivory",
    "navy",
    "maroon",
    "teal",
    "turquoise",
    "gold",
    "silver",
    "bronze",
    "emerald",
    "sapphire",
    "ruby",
    "linen",
    "champagne",
    "burgundy",
    "coral",
    "lavender",
    "mint",
    "peach",
)

EMBELLISHMENT_KEYWORDS = (
    "sequins",
    "beads",
    "crystals",
    "rhinestones",
    "pearls",
    "embroidery",
    "applique",
    "lace",
    "ruffles",
    "bows",
    "ribbons",
    "fringe",
)


@dataclass(frozen=True)
class KeywordRule:
    """Apply ``value`` when any of ``keywords`` occurs in the comment."""

    keywords: tuple[str, ...]
    value: str

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


SHEEN_RULES = (
    KeywordRule(("matte",), "matte"),
    KeywordRule(("glossy", "shiny"), "high gloss"),
    KeywordRule(("satin",), "satin sheen"),
)

PATTERN_RULES = (
    KeywordRule(("floral",), "floral"),
    KeywordRule(("striped", "stripes"), "striped"),
    KeywordRule(("polka dot",), "polka dot"),
    KeywordRule(("solid",), "solid color"),
)

LENGTH_RULES = (
    KeywordRule(("mini", "short"), "mini/short length"),
    KeywordRule(("midi",), "midi length"),
    KeywordRule(("maxi", "floor-length", "long"), "maxi/floor-length"),
)


# ── Matchers ─────────────────────────────────────────────────────────────────

def first_match(text: str, rules: Sequence[KeywordRule]) -> Optional[str]:
    """Value of the first rule whose keywords occur in ``text``."""
    for rule in rules:
        if rule.matches(text):
            return rule.value
    return None


def all_matches(text: str, vocabulary: Sequence[str]) -> list[str]:
    """Every vocabulary keyword found in ``text``, in vocabulary order."""
    return [keyword for keyword in vocabulary if keyword in text]


def last_match(text: str, vocabulary: Sequence[str]) -> Optional[str]:
    """The last vocabulary keyword (in vocabulary order) found in ``text``."""
    found = all_matches(text, vocabulary)
    return found[-1] if found else None


# ── Refinement ───────────────────────────────────────────────────────────────

def refine_metadata(comments: str, metadata: DesignMetadata) -> DesignMetadata:
    """
    Return a copy of ``metadata`` updated from the keywords in ``comments``.

    Each field is updated independently; fields with no matching keyword keep
    their current value.
    """
    refined = metadata.model_copy(deep=True)
    text = (comments or "").lower()
    if not text.strip():
        return refined

    fabric = last_match(text, FABRIC_KEYWORDS)
    if fabric:
        refined.fabric_and_texture.primary_material = fabric
        logger.info(f"Updated fabric to: {fabric}")

    colors = all_matches(text, COLOR_KEYWORDS)
    if colors:
        refined.pattern_and_color.primary_colors = colors
        logger.info(f"Updated colors to: {', '.join(colors)}")

    sheen = first_match(text, SHEEN_RULES)
    if sheen:
        refined.fabric_and_texture.sheen_level = sheen
        logger.info(f"Updated sheen to: {sheen}")

    pattern = first_match(text, PATTERN_RULES)
    if pattern:
        refined.pattern_and_color.patterns = pattern
        logger.info(f"Updated pattern to: {pattern}")

    embellishments = all_matches(text, EMBELLISHMENT_KEYWORDS)
    if embellishments:
        refined.embellishments.details = ", ".join(embellishments)
        logger.info(f"Updated embellishments to: {refined.embellishments.details}")

    length = first_match(text, LENGTH_RULES)
    if length:
        refined.silhouette.length = length
        logger.info(f"Updated length to: {length}")

    return refined
