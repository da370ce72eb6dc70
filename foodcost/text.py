"""Product-name text helpers shared by the pack-size parser and name matcher."""

from __future__ import annotations

import re
import unicodedata

# Pack and weight specs embedded in names: "12x454g", "15x12un", "500g", "2kg"
PACK_SPEC_RE = re.compile(r"\b(?:\d+(?:\.\d+)?x\d+(?:\.\d+)?[a-z]*|\d+(?:\.\d+)?[a-z]+)\b")

# Same specs written with spaces: "12 x 1 kg", "1 kg"
SPACED_PACK_SPEC_RE = re.compile(
    r"\b\d+(?:\s*x\s*\d+)?\s+(?:kg|gr|g|ml|l|oz|lbs|lb|un)\b"
)
# Units and multipliers left over once the numbers are gone
_UNIT_WORDS: frozenset[str] = frozenset(
    {"kg", "gr", "g", "ml", "l", "oz", "lbs", "lb", "un", "x"}
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_BARE_NUMBER_RE = re.compile(r"\b\d+\b")


def fold_accents(text: str) -> str:
    """Strip diacritics: "haché" → "hache", "crème" → "creme"."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def collapse(text: str) -> str:
    return " ".join(text.split())


def simplify(text: str) -> str:
    """Lowercase, fold accents, drop punctuation and collapse whitespace."""
    lowered = fold_accents(text or "").lower()
    return collapse(_NON_ALNUM_RE.sub(" ", lowered))


def strip_pack_specs(text: str) -> str:
    """Remove pack/weight specs and stray numbers from simplified text."""
    text = PACK_SPEC_RE.sub(" ", text)
    text = SPACED_PACK_SPEC_RE.sub(" ", text)
    text = _BARE_NUMBER_RE.sub(" ", text)
    return remove_words(text, _UNIT_WORDS)


def remove_words(text: str, words: frozenset[str]) -> str:
    return " ".join(w for w in text.split() if w not in words)
