"""Recipe library CRUD and search.

Each recipe has an embedded, ordered list of RecipeIngredientLine rows and
an ordered list of linked component recipe ids.  On update, all existing
lines and component links are deleted and replaced with the new set.
On every save, each line's name and cost snapshot is refreshed from the
pantry ingredient it references, if that ingredient still exists.
"""

import logging
from typing import Optional

from menu_costing.db.database import get_connection
from menu_costing.db.models import LEGACY_STATUSES, RECIPE_STATUSES, Recipe, RecipeIngredientLine

logger = logging.getLogger(__name__)


def _row_to_recipe(row, conn) -> Recipe:
    """Convert a database row into a Recipe, loading its lines and components."""
    recipe = Recipe(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        status=row["status"],
        servings=row["servings"],
        ingredients_html=row["ingredients_html"],
        instructions_html=row["instructions_html"],
        equipment_html=row["equipment_html"],
        uses_structured_ingredients=bool(row["uses_structured_ingredients"]),
        estimated_cost=row["estimated_cost"],
        cost_notes=row["cost_notes"],
        is_component=bool(row["is_component"]),
        created_at=row["created_at"],
    )
    line_rows = conn.execute(
        "SELECT * FROM recipe_ingredients WHERE recipe_id = ? ORDER BY sort_order, id",
        (recipe.id,),
    ).fetchall()
    recipe.ingredient_lines = [
        RecipeIngredientLine(
            id=r["id"],
            recipe_id=r["recipe_id"],
            is_heading=bool(r["is_heading"]),
            heading_text=r["heading_text"],
            ingredient_id=r["ingredient_id"],
            ingredient_name=r["ingredient_name"],
            quantity=r["quantity"],
            unit=r["unit"],
            preparation=r["preparation"],
            is_optional=bool(r["is_optional"]),
            sort_order=r["sort_order"],
            cost_per_unit=r["cost_per_unit"],
            cost_unit=r["cost_unit"],
        )
        for r in line_rows
    ]
    component_rows = conn.execute(
        "SELECT component_id FROM recipe_components WHERE recipe_id = ? ORDER BY position",
        (recipe.id,),
    ).fetchall()
    recipe.linked_components = [r["component_id"] for r in component_rows]
    return recipe


def _snapshot(conn, line: RecipeIngredientLine) -> tuple:
    """Return (name, cost_per_unit, cost_unit) to store for a line.

    Values come from the referenced pantry ingredient when it still exists,
    otherwise from the line as given.  The line itself is not modified.
    """
    current = (line.ingredient_name, line.cost_per_unit, line.cost_unit)
    if line.ingredient_id is None:
        return current
    row = conn.execute(
        "SELECT name, cost_per_unit, cost_unit FROM ingredients WHERE id = ?",
        (line.ingredient_id,),
    ).fetchone()
    if row is None:
        logger.debug("Line references deleted ingredient %s; keeping snapshot", line.ingredient_id)
        return current
    return row["name"], row["cost_per_unit"], row["cost_unit"]


def _write_children(conn, recipe_id: int, recipe: Recipe) -> None:
    for position, line in enumerate(recipe.ingredient_lines):
        if line.is_heading:
            conn.execute(
                """INSERT INTO recipe_ingredients
                   (recipe_id, is_heading, heading_text, sort_order)
                   VALUES (?, 1, ?, ?)""",
                (recipe_id, line.heading_text, position),
            )
            continue
        name, cost_per_unit, cost_unit = _snapshot(conn, line)
        conn.execute(
            """INSERT INTO recipe_ingredients
               (recipe_id, is_heading, ingredient_id, ingredient_name, quantity, unit,
                preparation, is_optional, sort_order, cost_per_unit, cost_unit)
               VALUES (?, 0, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (recipe_id, line.ingredient_id, name, line.quantity, line.unit,
             line.preparation, int(line.is_optional), position,
             cost_per_unit, cost_unit),
        )
    seen = set()
    for component_id in recipe.linked_components:
        if component_id == recipe_id or component_id in seen:
            continue
        seen.add(component_id)
        conn.execute(
            "INSERT INTO recipe_components (recipe_id, component_id, position) VALUES (?, ?, ?)",
            (recipe_id, component_id, len(seen) - 1),
        )


def is_valid_status(status: str) -> bool:
    return status in RECIPE_STATUSES or status in LEGACY_STATUSES


def get_all(status: Optional[str] = None) -> list[Recipe]:
    """Return all recipes sorted alphabetically by title, optionally by status."""
    conn = get_connection()
    try:
        if status:
            rows = conn.execute(
                "SELECT * FROM recipes WHERE status = ? ORDER BY title COLLATE NOCASE", (status,)
            ).fetchall()
        else:
            rows = conn.execute("SELECT * FROM recipes ORDER BY title COLLATE NOCASE").fetchall()
        return [_row_to_recipe(r, conn) for r in rows]
    finally:
        conn.close()


def get_components() -> list[Recipe]:
    """Return recipes flagged as components, sorted by title."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT * FROM recipes WHERE is_component = 1 ORDER BY title COLLATE NOCASE"
        ).fetchall()
        return [_row_to_recipe(r, conn) for r in rows]
    finally:
        conn.close()


def get(recipe_id: int) -> Optional[Recipe]:
    """Return a single recipe with its lines and components, or None if not found."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM recipes WHERE id = ?", (recipe_id,)).fetchone()
        return _row_to_recipe(row, conn) if row else None
    finally:
        conn.close()


def get_many(recipe_ids: list[int]) -> list[Recipe]:
    """Return recipes for the given ids in the order requested.

    Unknown ids are dropped; a repeated id yields the recipe once.
    """
    ids = list(dict.fromkeys(recipe_ids))
    if not ids:
        return []
    conn = get_connection()
    try:
        placeholders = ",".join("?" for _ in ids)
        rows = conn.execute(f"SELECT * FROM recipes WHERE id IN ({placeholders})", ids).fetchall()
        by_id = {row["id"]: _row_to_recipe(row, conn) for row in rows}
        return [by_id[i] for i in ids if i in by_id]
    finally:
        conn.close()


def get_linked_components(recipes: list[Recipe]) -> dict[int, Recipe]:
    """Load every component linked from the given recipes, keyed by id."""
    component_ids = [cid for r in recipes for cid in r.linked_components]
    return {c.id: c for c in get_many(component_ids)}


def search(query: str) -> list[Recipe]:
    """Return recipes whose title or description match the query (case-insensitive)."""
    conn = get_connection()
    try:
        pattern = f"%{query}%"
        rows = conn.execute(
            "SELECT * FROM recipes WHERE title LIKE ? OR description LIKE ? ORDER BY title COLLATE NOCASE",
            (pattern, pattern),
        ).fetchall()
        return [_row_to_recipe(r, conn) for r in rows]
    finally:
        conn.close()


def add(recipe: Recipe) -> int:
    """Insert a new recipe with its lines and component links. Return the new recipe ID."""
    conn = get_connection()
    try:
        cursor = conn.execute(
            """INSERT INTO recipes (title, description, status, servings, ingredients_html,
               instructions_html, equipment_html, uses_structured_ingredients,
               estimated_cost, cost_notes, is_component)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                recipe.title, recipe.description, recipe.status, recipe.servings,
                recipe.ingredients_html, recipe.instructions_html, recipe.equipment_html,
                int(recipe.uses_structured_ingredients), recipe.estimated_cost,
                recipe.cost_notes, int(recipe.is_component),
            ),
        )
        recipe_id = cursor.lastrowid
        _write_children(conn, recipe_id, recipe)
        conn.commit()
        return recipe_id
    finally:
        conn.close()


def update(recipe: Recipe) -> None:
    """Update a recipe's fields and replace all its lines and component links."""
    conn = get_connection()
    try:
        conn.execute(
            """UPDATE recipes SET title=?, description=?, status=?, servings=?,
               ingredients_html=?, instructions_html=?, equipment_html=?,
               uses_structured_ingredients=?, estimated_cost=?, cost_notes=?, is_component=?
               WHERE id=?""",
            (
                recipe.title, recipe.description, recipe.status, recipe.servings,
                recipe.ingredients_html, recipe.instructions_html, recipe.equipment_html,
                int(recipe.uses_structured_ingredients), recipe.estimated_cost,
                recipe.cost_notes, int(recipe.is_component), recipe.id,
            ),
        )
        conn.execute("DELETE FROM recipe_ingredients WHERE recipe_id = ?", (recipe.id,))
        conn.execute("DELETE FROM recipe_components WHERE recipe_id = ?", (recipe.id,))
        _write_children(conn, recipe.id, recipe)
        conn.commit()
    finally:
        conn.close()


def delete(recipe_id: int) -> None:
    """Delete a recipe by ID. Lines and its own component links are cascade-deleted.

    Links from other recipes and menus to this recipe are left in place and
    skipped when they no longer resolve.
    """
    conn = get_connection()
    try:
        conn.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,))
        conn.commit()
    finally:
        conn.close()
