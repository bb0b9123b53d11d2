"""Recipe and menu cost aggregation.

A recipe's own cost is its manual estimated_cost when that is set and
positive, otherwise the sum of its structured line costs (see units.py).
The two are never added together.  A recipe's total adds the own cost of
each linked component, one level deep: a component's own components are
not expanded.

At menu scope a component that is also listed as a dish on the menu is costed
as that dish only.  Every other component is charged to each dish that links
it, so a dish costs the same on a menu as it does on its own.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from menu_costing.core.units import UNCONVERTIBLE, convert_line_cost, to_number
from menu_costing.db.models import Menu, Recipe

logger = logging.getLogger(__name__)

BASE_LABEL = "Base recipe"
MANUAL = "manual"
CALCULATED = "calculated"


@dataclass
class RecipeCost:
    """Cost summary for one recipe.

    breakdown is a list of (label, cost) pairs: the base recipe first, then
    every linked component that contributed a positive cost.
    """

    recipe_id: Optional[int]
    title: str
    base_cost: float = 0.0
    cost_source: Optional[str] = None  # 'manual', 'calculated' or None
    total: float = 0.0
    per_serving: Optional[float] = None
    breakdown: list = field(default_factory=list)  # list[tuple[str, float]]
    line_costs: list = field(default_factory=list)  # list[tuple[RecipeIngredientLine, LineCost]]

    @property
    def unconvertible_lines(self) -> list:
        return [line for line, cost in self.line_costs if cost.status == UNCONVERTIBLE]


@dataclass
class MenuCost:
    """Cost summary for a menu; food_cost_pct is on a 0-100 scale."""

    menu_id: Optional[int]
    total: float = 0.0
    per_guest: Optional[float] = None
    food_cost_pct: Optional[float] = None
    recipes_costed: int = 0
    recipe_count: int = 0
    recipe_costs: list = field(default_factory=list)  # list[RecipeCost]


def round_money(amount: Optional[float]) -> Optional[float]:
    """Round to currency precision for display; None passes through."""
    return round(amount, 2) if amount is not None else None


def index_by_id(items: Iterable) -> dict:
    """Build {item.id: item}, keeping the first item seen for a repeated id."""
    index = {}
    for item in items:
        index.setdefault(item.id, item)
    return index


def line_costs(recipe: Recipe, pantry_by_id: Optional[dict] = None) -> list[tuple]:
    """Return (line, LineCost) for every non-heading structured line, in line order."""
    pantry_by_id = pantry_by_id or {}
    results = []
    for line in recipe.ingredient_lines:
        if line.is_heading:
            continue
        pantry = pantry_by_id.get(line.ingredient_id) if line.ingredient_id is not None else None
        results.append((line, convert_line_cost(line, pantry)))
    return results


def own_cost(
    recipe: Recipe,
    pantry_by_id: Optional[dict] = None,
    costed_lines: Optional[list] = None,
) -> tuple[float, Optional[str]]:
    """Return (cost, source) for a recipe without its components.

    costed_lines, when given, is the recipe's line_costs() result and is
    used instead of costing the lines again.
    """
    manual = to_number(recipe.estimated_cost)
    if manual is not None and manual > 0:
        return manual, MANUAL
    if recipe.uses_structured_ingredients:
        if costed_lines is None:
            costed_lines = line_costs(recipe, pantry_by_id)
        calculated = sum(cost.cost for _, cost in costed_lines)
        if calculated > 0:
            return calculated, CALCULATED
    return 0.0, None


def aggregate_recipe_cost(
    recipe: Recipe,
    components_by_id: dict,
    pantry_by_id: Optional[dict] = None,
    exclude_component_ids: Iterable[int] = (),
) -> RecipeCost:
    """Total a recipe and its directly linked components.

    Component ids in exclude_component_ids are skipped; aggregate_menu_cost
    uses this for components that are listed as dishes on the same menu.
    """
    costed_lines = line_costs(recipe, pantry_by_id) if recipe.uses_structured_ingredients else []
    base, source = own_cost(recipe, pantry_by_id, costed_lines)
    result = RecipeCost(
        recipe_id=recipe.id,
        title=recipe.title,
        base_cost=base,
        cost_source=source,
        total=base,
        breakdown=[(BASE_LABEL, base)],
        line_costs=costed_lines,
    )

    skip = set(exclude_component_ids)
    if recipe.id is not None:
        skip.add(recipe.id)
    for component_id in recipe.linked_components:
        if component_id in skip:
            continue
        skip.add(component_id)
        component = components_by_id.get(component_id)
        if component is None:
            logger.debug("Recipe %s links missing component %s", recipe.id, component_id)
            continue
        component_cost, _ = own_cost(component, pantry_by_id)
        if component_cost > 0:
            result.breakdown.append((component.title, component_cost))
            result.total += component_cost

    servings = to_number(recipe.servings)
    if servings and servings > 0:
        result.per_serving = result.total / servings
    return result


def aggregate_menu_cost(
    menu: Menu,
    recipes_by_id: dict,
    components_by_id: dict,
    pantry_by_id: Optional[dict] = None,
) -> MenuCost:
    """Total every dish on a menu.

    A linked component that is also a dish on the menu is not added to its
    parent, so it is charged once, as a dish.
    """
    dishes = []
    listed = set()
    for recipe_id in menu.recipe_ids:
        if recipe_id in listed or recipe_id not in recipes_by_id:
            continue
        listed.add(recipe_id)
        dishes.append(recipes_by_id[recipe_id])

    lookup = {**recipes_by_id, **(components_by_id or {})}
    result = MenuCost(menu_id=menu.id, recipe_count=len(dishes))
    for recipe in dishes:
        cost = aggregate_recipe_cost(
            recipe, lookup, pantry_by_id,
            exclude_component_ids=[c for c in recipe.linked_components if c in listed],
        )
        result.recipe_costs.append(cost)
        if cost.total > 0:
            result.total += cost.total
            result.recipes_costed += 1

    guests = to_number(menu.guest_count)
    ticket = to_number(menu.ticket_price)
    if guests and guests > 0:
        result.per_guest = result.total / guests
        if ticket and ticket > 0:
            result.food_cost_pct = result.total / (ticket * guests) * 100
    return result
