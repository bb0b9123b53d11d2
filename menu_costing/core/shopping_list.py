"""Shopping list generation: flatten recipe ingredients into a checklist and group it.

build_shopping_list() is the main entry point.  It walks the selected
recipes in order, each followed by its directly linked components, and
turns their ingredient content into one ShoppingItem per line.  Identical
lines from different recipes stay separate items.  Items are then grouped
by nothing, by source recipe, or by the supplier of their pantry match.

Checked state lives on the ShoppingList for its lifetime only; nothing here
is persisted.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from menu_costing.core.matching import UNMATCHED, match_ingredient
from menu_costing.db.models import Recipe, RecipeIngredientLine

logger = logging.getLogger(__name__)

UNKNOWN_SUPPLIER = "Unknown Supplier"
GROUP_MODES = ("none", "recipe", "supplier")

_BULLET_SPLIT = re.compile(r"[\n\r]+|•|·|‣|⁃|◦")


@dataclass
class ShoppingItem:
    """One checklist line.  Supplier and cost fields come from the pantry match, if any."""

    index: int
    text: str
    recipe: str
    checked: bool = False
    match_status: str = UNMATCHED
    pantry_name: Optional[str] = None
    supplier: Optional[str] = None
    cost_per_unit: Optional[float] = None
    cost_unit: Optional[str] = None


@dataclass
class ShoppingGroup:
    label: Optional[str]  # None when the list is ungrouped
    items: list = field(default_factory=list)  # list[ShoppingItem]


@dataclass
class ShoppingList:
    group_by: str
    items: list = field(default_factory=list)  # list[ShoppingItem]
    groups: list = field(default_factory=list)  # list[ShoppingGroup]

    def toggle(self, index: int) -> bool:
        """Flip the checked state of item `index` and return the new state."""
        item = self.items[index]
        item.checked = not item.checked
        return item.checked

    def set_checked(self, indices: Iterable[int]) -> None:
        """Mark exactly the given item indices as checked; unknown indices are ignored."""
        wanted = set(indices)
        for item in self.items:
            item.checked = item.index in wanted

    @property
    def checked_count(self) -> int:
        return sum(1 for item in self.items if item.checked)


def extract_ingredient_lines(html: Optional[str]) -> list[str]:
    """Split rich-text ingredient content into item strings.

    List items win over paragraphs; with neither, the text is split on line
    breaks and bullet characters.  Empty entries are dropped.
    """
    if not html or not html.strip():
        return []
    soup = BeautifulSoup(html, "html.parser")

    list_items = soup.find_all("li")
    if list_items:
        return [text for text in (li.get_text().strip() for li in list_items) if text]

    paragraphs = soup.find_all("p")
    if paragraphs:
        return [text for text in (p.get_text().strip() for p in paragraphs) if text]

    for br in soup.find_all("br"):
        br.replace_with("\n")
    return [s.strip() for s in _BULLET_SPLIT.split(soup.get_text()) if s.strip()]


def format_line(line: RecipeIngredientLine) -> str:
    """Render a structured line as text: '250 g salmon, diced (optional)'."""
    parts = [p.strip() for p in (line.quantity, line.unit, line.ingredient_name) if p and str(p).strip()]
    text = " ".join(parts)
    if line.preparation and line.preparation.strip():
        text += f", {line.preparation.strip()}"
    if line.is_optional and text:
        text += " (optional)"
    return text


def recipe_items(recipe: Recipe) -> list[str]:
    """Return the shopping list text for each ingredient of a recipe."""
    if recipe.uses_structured_ingredients:
        texts = (format_line(line) for line in recipe.ingredient_lines if not line.is_heading)
        return [t for t in texts if t]
    return extract_ingredient_lines(recipe.ingredients_html)


def group_items(items: list, group_by: str) -> list:
    """Group items for display.

    'recipe' keeps first-seen recipe order; 'supplier' sorts suppliers
    alphabetically and puts UNKNOWN_SUPPLIER last.
    """
    if group_by not in GROUP_MODES:
        raise ValueError(f"Unknown group_by mode: {group_by!r}")
    if not items:
        return []
    if group_by == "none":
        return [ShoppingGroup(None, list(items))]

    buckets: dict[str, list] = {}
    for item in items:
        if group_by == "recipe":
            label = item.recipe
        else:
            label = item.supplier or UNKNOWN_SUPPLIER
        buckets.setdefault(label, []).append(item)

    labels = list(buckets)
    if group_by == "supplier":
        labels.sort(key=lambda s: (s == UNKNOWN_SUPPLIER, s.casefold()))
    return [ShoppingGroup(label, buckets[label]) for label in labels]


def build_shopping_list(
    recipes: Iterable[Recipe],
    components_by_id: dict,
    group_by: str = "none",
    pantry_catalog: Optional[Iterable] = None,
) -> ShoppingList:
    """Build a grouped shopping list from recipes and their linked components.

    pantry_catalog enables supplier/cost enrichment; without it every item is
    unmatched and a supplier grouping puts everything under UNKNOWN_SUPPLIER.
    """
    if group_by not in GROUP_MODES:
        raise ValueError(f"Unknown group_by mode: {group_by!r}")
    catalog = list(pantry_catalog or [])
    items = []

    def add_recipe(recipe: Recipe) -> None:
        for text in recipe_items(recipe):
            item = ShoppingItem(index=len(items), text=text, recipe=recipe.title)
            if catalog:
                match = match_ingredient(text, catalog)
                item.match_status = match.status
                if match.ingredient is not None:
                    item.pantry_name = match.ingredient.name
                    item.supplier = match.ingredient.supplier
                    item.cost_per_unit = match.ingredient.cost_per_unit
                    item.cost_unit = match.ingredient.cost_unit
            items.append(item)

    for recipe in recipes:
        add_recipe(recipe)
        for component_id in recipe.linked_components:
            component = components_by_id.get(component_id)
            if component is None:
                logger.debug("Skipping missing component %s of recipe %s", component_id, recipe.id)
                continue
            add_recipe(component)

    return ShoppingList(group_by=group_by, items=items, groups=group_items(items, group_by))


def format_shopping_list(shopping_list: ShoppingList, title: Optional[str] = None) -> str:
    """Format the shopping list as plain text for export/printing."""
    if not shopping_list.items:
        return "No items needed."

    lines = []
    if title:
        lines.append(f"Shopping List: {title}")
        lines.append("")
    for group in shopping_list.groups:
        if group.label is not None:
            lines.append(f"=== {group.label} ===")
        for item in group.items:
            mark = "x" if item.checked else " "
            parts = [f"  [{mark}] {item.text}"]
            if shopping_list.group_by != "recipe":
                parts.append(f"  ({item.recipe})")
            if item.supplier and shopping_list.group_by != "supplier":
                parts.append(f"  @ {item.supplier}")
            lines.append("".join(parts))
        lines.append("")

    return "\n".join(lines).strip()
