"""Bilingual synonym groups and filler words used by the name matcher.

Entries are written without accents; names are accent-folded before lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

# First entry of each group is the canonical spelling
_SYNONYM_GROUPS: tuple[tuple[str, ...], ...] = (
    ("chicken", "poulet", "volaille"),
    ("chicken breast", "poitrine poulet", "blanc poulet", "supreme poulet"),
    ("chicken thigh", "cuisse poulet", "haut cuisse poulet"),
    ("beef", "boeuf"),
    ("ground beef", "boeuf hache"),
    ("pork", "porc"),
    ("pork belly", "flanc porc", "poitrine porc"),
    ("duck", "canard"),
    ("lamb", "agneau"),
    ("salmon", "saumon"),
    ("shrimp", "crevette", "crevettes", "prawn", "prawns"),
    ("cod", "morue", "cabillaud"),
    ("egg", "eggs", "oeuf", "oeufs"),
    ("milk", "lait"),
    ("cream", "creme"),
    ("butter", "beurre"),
    ("cheese", "fromage"),
    ("onion", "oignon", "onions", "oignons"),
    ("green onion", "oignon vert", "scallion", "echalote verte"),
    ("shallot", "echalote", "echalote francaise"),
    ("garlic", "ail"),
    ("ginger", "gingembre"),
    ("tomato", "tomate", "tomatoes", "tomates"),
    ("potato", "pomme terre", "patate", "potatoes", "pommes terre"),
    ("carrot", "carotte", "carrots", "carottes"),
    ("mushroom", "champignon", "mushrooms", "champignons"),
    ("bell pepper", "poivron"),
    ("eggplant", "aubergine"),
    ("zucchini", "courgette"),
    ("cucumber", "concombre"),
    ("lettuce", "laitue"),
    ("spinach", "epinard", "epinards"),
    ("cabbage", "chou"),
    ("cauliflower", "chou fleur"),
    ("lemon", "citron"),
    ("lime", "citron vert"),
    ("apple", "pomme"),
    ("cilantro", "coriandre", "coriander"),
    ("parsley", "persil"),
    ("basil", "basilic"),
    ("mint", "menthe"),
    ("flour", "farine"),
    ("sugar", "sucre"),
    ("salt", "sel"),
    ("black pepper", "poivre", "poivre noir"),
    ("rice", "riz"),
    ("noodles", "nouilles"),
    ("bread", "pain"),
    ("oil", "huile"),
    ("olive oil", "huile olive"),
    ("vinegar", "vinaigre"),
    ("soy sauce", "sauce soya", "sauce soja"),
    ("fish sauce", "sauce poisson"),
)

_FILLER_WORDS: frozenset[str] = frozenset({
    # English
    "fresh", "frozen", "dried", "organic", "natural", "premium", "quality",
    "grade", "raw", "whole", "diced", "cubed", "chopped", "minced", "sliced",
    "peeled", "boneless", "skinless", "large", "medium", "small", "extra",
    "local", "the", "of", "and",
    # French
    "frais", "fraiche", "fraiches", "congele", "congelee", "surgele",
    "seche", "sechee", "bio", "biologique", "naturel", "entier", "entiere",
    "hache", "hachee", "emince", "emincee", "tranche", "tranchee", "pele",
    "pelee", "desosse", "desossee", "gros", "grosse", "petit", "petite",
    "moyen", "moyenne", "cru", "crue", "de", "du", "des", "la", "le", "les",
    "et", "au", "aux",
    # Elided articles: "d'olive", "l'huile"
    "d", "l",
    # Grade letters
    "a", "aa", "aaa", "b", "c",
})


@dataclass(frozen=True)
class MatchingTables:
    """Immutable synonym and filler-word configuration for a NameMatcher."""

    synonym_groups: tuple[tuple[str, ...], ...] = _SYNONYM_GROUPS
    filler_words: frozenset[str] = _FILLER_WORDS

    def merged(
        self,
        synonyms: Mapping[str, Iterable[str]] | None = None,
        filler_words: Iterable[str] = (),
    ) -> MatchingTables:
        """Return new tables with extra synonyms and filler words.

        ``synonyms`` maps a canonical name to its alternate spellings. A
        canonical name already present gets its group extended.
        """
        groups = [list(g) for g in self.synonym_groups]
        for canonical, alternates in (synonyms or {}).items():
            for group in groups:
                if group[0] == canonical:
                    group.extend(a for a in alternates if a not in group)
                    break
            else:
                groups.append([canonical, *alternates])
        return MatchingTables(
            synonym_groups=tuple(tuple(g) for g in groups),
            filler_words=self.filler_words | frozenset(filler_words),
        )


def default_tables() -> MatchingTables:
    return MatchingTables()
