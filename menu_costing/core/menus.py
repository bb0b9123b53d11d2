"""Menu CRUD: events with an ordered list of recipes, a guest count and a ticket price.

Menu costs are never stored; see costing.aggregate_menu_cost().
"""

from typing import Optional

from menu_costing.db.database import get_connection
from menu_costing.db.models import Menu


def _row_to_menu(row, conn) -> Menu:
    menu = Menu(**dict(row))
    recipe_rows = conn.execute(
        "SELECT recipe_id FROM menu_recipes WHERE menu_id = ? ORDER BY position",
        (menu.id,),
    ).fetchall()
    menu.recipe_ids = [r["recipe_id"] for r in recipe_rows]
    return menu


def _write_recipes(conn, menu_id: int, recipe_ids: list[int]) -> None:
    for position, recipe_id in enumerate(recipe_ids):
        conn.execute(
            "INSERT INTO menu_recipes (menu_id, recipe_id, position) VALUES (?, ?, ?)",
            (menu_id, recipe_id, position),
        )


def get_all() -> list[Menu]:
    """Return all menus, most recent event first; undated menus last."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT * FROM menus ORDER BY event_date IS NULL, event_date DESC, name"
        ).fetchall()
        return [_row_to_menu(r, conn) for r in rows]
    finally:
        conn.close()


def get(menu_id: int) -> Optional[Menu]:
    """Return a single menu with its recipe ids, or None if not found."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM menus WHERE id = ?", (menu_id,)).fetchone()
        return _row_to_menu(row, conn) if row else None
    finally:
        conn.close()


def add(menu: Menu) -> int:
    """Insert a new menu and its recipe list. Return the new menu ID."""
    conn = get_connection()
    try:
        cursor = conn.execute(
            """INSERT INTO menus (name, event_date, location, guest_count, ticket_price, notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (menu.name, menu.event_date, menu.location, menu.guest_count,
             menu.ticket_price, menu.notes),
        )
        menu_id = cursor.lastrowid
        _write_recipes(conn, menu_id, menu.recipe_ids)
        conn.commit()
        return menu_id
    finally:
        conn.close()


def update(menu: Menu) -> None:
    """Update a menu's fields and replace its recipe list."""
    conn = get_connection()
    try:
        conn.execute(
            """UPDATE menus SET name=?, event_date=?, location=?, guest_count=?,
               ticket_price=?, notes=? WHERE id=?""",
            (menu.name, menu.event_date, menu.location, menu.guest_count,
             menu.ticket_price, menu.notes, menu.id),
        )
        conn.execute("DELETE FROM menu_recipes WHERE menu_id = ?", (menu.id,))
        _write_recipes(conn, menu.id, menu.recipe_ids)
        conn.commit()
    finally:
        conn.close()


def delete(menu_id: int) -> None:
    """Delete a menu by ID. Its recipe list is cascade-deleted by the DB."""
    conn = get_connection()
    try:
        conn.execute("DELETE FROM menus WHERE id = ?", (menu_id,))
        conn.commit()
    finally:
        conn.close()
