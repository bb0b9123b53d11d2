"""Dataclass models for all database entities.

Each class maps 1:1 to a database table (lines, components and menu recipe
ids are embedded lists).  Fields use Optional types for nullable columns.
These are plain data containers with no business logic.
"""

from dataclasses import dataclass, field
from typing import Optional

RECIPE_STATUSES = ["inspiration", "to-test", "retest", "menu-ready"]
LEGACY_STATUSES = ["testing"]


@dataclass
class PantryIngredient:
    """A pantry ingredient with its cost basis.

    cost_unit is a free-text annotation such as 'per kg', 'per 100g' or
    'per 20 pieces'.  expiry_date is stored as an ISO YYYY-MM-DD string.
    """

    id: Optional[int]
    name: str
    category: Optional[str] = None
    cost_per_unit: Optional[float] = None
    cost_unit: Optional[str] = None
    supplier: Optional[str] = None
    quantity_on_hand: Optional[float] = None
    unit_on_hand: Optional[str] = None
    expiry_date: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class RecipeIngredientLine:
    """A structured ingredient row or a heading row within a recipe.

    ingredient_name, cost_per_unit and cost_unit are a snapshot of the pantry
    ingredient taken at save time; they survive deletion of the pantry row.
    """

    id: Optional[int] = None
    recipe_id: Optional[int] = None
    is_heading: bool = False
    heading_text: Optional[str] = None
    ingredient_id: Optional[int] = None
    ingredient_name: Optional[str] = None
    quantity: Optional[str] = None
    unit: Optional[str] = None
    preparation: Optional[str] = None
    is_optional: bool = False
    sort_order: int = 0
    cost_per_unit: Optional[float] = None
    cost_unit: Optional[str] = None


@dataclass
class Recipe:
    """A recipe in either rich-text or structured ingredient mode.

    When uses_structured_ingredients is set, ingredient_lines is the source of
    truth and ingredients_html is ignored for costing.  linked_components is
    an ordered list of other recipe ids.
    """

    id: Optional[int]
    title: str
    description: Optional[str] = None
    status: str = "to-test"
    servings: Optional[int] = None
    ingredients_html: Optional[str] = None
    instructions_html: Optional[str] = None
    equipment_html: Optional[str] = None
    uses_structured_ingredients: bool = False
    estimated_cost: Optional[float] = None
    cost_notes: Optional[str] = None
    is_component: bool = False
    created_at: Optional[str] = None
    ingredient_lines: list = field(default_factory=list)  # list[RecipeIngredientLine]
    linked_components: list = field(default_factory=list)  # list[int]


@dataclass
class Menu:
    """An event menu: an ordered list of recipe ids plus costing inputs."""

    id: Optional[int]
    name: str
    event_date: Optional[str] = None
    location: Optional[str] = None
    guest_count: Optional[int] = None
    ticket_price: Optional[float] = None
    notes: Optional[str] = None
    recipe_ids: list = field(default_factory=list)  # list[int]
