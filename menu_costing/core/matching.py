"""Pantry matching for free-text ingredient lines.

Used to label shopping list items with a supplier and cost.  The heuristic is
lossy on purpose: it is a display enrichment, not a costing source.

Rules, in order:
1. The line contains a pantry name, or a pantry name contains the line's
   last two words.
2. Any word longer than two characters is contained in a pantry name, or
   contains one.  Words are tried left to right.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from menu_costing.db.models import PantryIngredient

logger = logging.getLogger(__name__)

MATCHED = "matched"
UNMATCHED = "unmatched"
AMBIGUOUS = "ambiguous"


@dataclass
class IngredientMatch:
    """Tagged match result.

    For 'ambiguous', ingredient is the first candidate in catalog order and
    candidates holds every entry that satisfied the winning rule.
    """

    status: str
    ingredient: Optional[PantryIngredient] = None
    candidates: list = field(default_factory=list)  # list[PantryIngredient]

    @property
    def supplier(self) -> Optional[str]:
        return self.ingredient.supplier if self.ingredient else None


def _result(candidates: list) -> IngredientMatch:
    if len(candidates) == 1:
        return IngredientMatch(MATCHED, candidates[0], candidates)
    return IngredientMatch(AMBIGUOUS, candidates[0], candidates)


def match_ingredient(line_text: str, pantry_catalog: Iterable[PantryIngredient]) -> IngredientMatch:
    """Return the best pantry match for an ingredient line such as '200g fresh salmon, diced'."""
    catalog = [p for p in pantry_catalog if p.name and p.name.strip()]
    search = (line_text or "").lower().strip()
    if not search or not catalog:
        return IngredientMatch(UNMATCHED)

    tail = " ".join(search.split(" ")[-2:])
    candidates = [
        p for p in catalog
        if p.name.lower() in search or tail in p.name.lower()
    ]
    if candidates:
        return _result(candidates)

    for word in (w for w in re.split(r"\s+", search) if len(w) > 2):
        candidates = [
            p for p in catalog
            if word in p.name.lower() or p.name.lower() in word
        ]
        if candidates:
            result = _result(candidates)
            if result.status == AMBIGUOUS:
                logger.debug("Ambiguous pantry match for %r on word %r: %d candidates",
                             line_text, word, len(candidates))
            return result

    return IngredientMatch(UNMATCHED)
