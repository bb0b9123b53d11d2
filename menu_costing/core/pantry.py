"""Pantry ingredient management: CRUD operations and CSV import.

This is the pantry catalog accessor: costing and shopping list code takes
the list returned by get_all() as its catalog snapshot.  Deleting an
ingredient does not touch recipe lines that reference it.
"""

import csv
import logging
import re
from pathlib import Path
from typing import Optional

from menu_costing.db.database import get_connection
from menu_costing.db.models import PantryIngredient

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Pantry"

_FIELDS = (
    "name", "category", "cost_per_unit", "cost_unit", "supplier",
    "quantity_on_hand", "unit_on_hand", "expiry_date", "notes",
)


def _row_to_ingredient(row) -> PantryIngredient:
    return PantryIngredient(**dict(row))


def get_all(category: Optional[str] = None, supplier: Optional[str] = None) -> list[PantryIngredient]:
    """Return all pantry ingredients sorted by name, optionally filtered."""
    conn = get_connection()
    try:
        query = "SELECT * FROM ingredients WHERE 1=1"
        params = []
        if category:
            query += " AND category = ?"
            params.append(category)
        if supplier:
            query += " AND supplier = ?"
            params.append(supplier)
        query += " ORDER BY name COLLATE NOCASE"
        rows = conn.execute(query, params).fetchall()
        return [_row_to_ingredient(row) for row in rows]
    finally:
        conn.close()


def get(ingredient_id: int) -> Optional[PantryIngredient]:
    """Return a single ingredient by ID, or None if not found."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM ingredients WHERE id = ?", (ingredient_id,)).fetchone()
        return _row_to_ingredient(row) if row else None
    finally:
        conn.close()


def search(query: str, limit: int = 20) -> list[PantryIngredient]:
    """Return ingredients whose name contains query (case-insensitive)."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT * FROM ingredients WHERE name LIKE ? ORDER BY name COLLATE NOCASE LIMIT ?",
            (f"%{query}%", limit),
        ).fetchall()
        return [_row_to_ingredient(row) for row in rows]
    finally:
        conn.close()


def add(item: PantryIngredient) -> int:
    """Insert a new ingredient and return its ID."""
    conn = get_connection()
    try:
        cursor = conn.execute(
            f"INSERT INTO ingredients ({', '.join(_FIELDS)}) VALUES ({', '.join('?' for _ in _FIELDS)})",
            tuple(getattr(item, f) for f in _FIELDS),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def update(item: PantryIngredient) -> None:
    """Update an existing ingredient by its ID."""
    conn = get_connection()
    try:
        conn.execute(
            f"UPDATE ingredients SET {', '.join(f'{f}=?' for f in _FIELDS)} WHERE id=?",
            (*(getattr(item, f) for f in _FIELDS), item.id),
        )
        conn.commit()
    finally:
        conn.close()


def delete(ingredient_id: int) -> None:
    """Delete an ingredient by ID.  Recipe lines keep their snapshot."""
    conn = get_connection()
    try:
        conn.execute("DELETE FROM ingredients WHERE id = ?", (ingredient_id,))
        conn.commit()
    finally:
        conn.close()


def get_categories() -> list[str]:
    """Return distinct category values currently in the pantry."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT DISTINCT category FROM ingredients WHERE category IS NOT NULL ORDER BY category"
        ).fetchall()
        return [r[0] for r in rows]
    finally:
        conn.close()


def get_suppliers() -> list[str]:
    """Return distinct supplier values currently in the pantry."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT DISTINCT supplier FROM ingredients WHERE supplier IS NOT NULL ORDER BY supplier"
        ).fetchall()
        return [r[0] for r in rows]
    finally:
        conn.close()


# ── CSV import ────────────────────────────────────────────────────────────────

def _parse_expiry(value: str) -> Optional[str]:
    """Turn 'MM/YYYY' or 'MM/YY' into an ISO date on the first of the month."""
    parts = value.split("/")
    if len(parts) != 2:
        return None
    try:
        month = int(parts[0])
        year = int(parts[1])
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    if year < 100:
        year += 2000
    return f"{year}-{month:02d}-01"


def _parse_amount(value: str) -> Optional[float]:
    try:
        return float(value) if value else None
    except ValueError:
        return None


def parse_csv_row(row: dict) -> Optional[PantryIngredient]:
    """Map one CSV row (lower-cased headers) onto a PantryIngredient.

    Returns None for rows without a name.
    """
    item = PantryIngredient(id=None, name="")
    for header, raw in row.items():
        if header is None:
            continue
        value = (raw or "").strip()
        if "ingredient" in header or header == "name":
            item.name = value
        elif header == "category":
            item.category = value or None
        elif header == "supplier":
            item.supplier = value or None
        elif header in ("cost_per_unit", "cost per unit", "cost", "price"):
            item.cost_per_unit = _parse_amount(value)
        elif header in ("cost_unit", "cost unit"):
            item.cost_unit = value or None
        elif "quantity" in header:
            match = re.search(r"(\d+\.?\d*)", value)
            if match:
                item.quantity_on_hand = float(match.group(1))
            unit = re.sub(r"[\d.]", "", value).strip()
            if unit:
                item.unit_on_hand = unit
        elif "expir" in header or "best before" in header:
            if value:
                item.expiry_date = _parse_expiry(value)
        elif header == "notes":
            item.notes = value or None
    if not item.name:
        return None
    if not item.category:
        item.category = DEFAULT_CATEGORY
    return item


def import_csv(filepath: str) -> tuple[int, int]:
    """Import a pantry CSV.  Existing ingredients are matched by name (case-insensitive).

    Returns (inserted, updated) counts.
    """
    inserted = 0
    updated = 0
    path = Path(filepath)

    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError("CSV must have a header row")
        reader.fieldnames = [h.strip().lower() for h in reader.fieldnames]
        conn = get_connection()
        try:
            for line_no, row in enumerate(reader, start=2):
                item = parse_csv_row(row)
                if item is None:
                    logger.warning("Skipping CSV row %d of %s: no ingredient name", line_no, path.name)
                    continue

                existing = conn.execute(
                    "SELECT id FROM ingredients WHERE LOWER(name) = LOWER(?)", (item.name,)
                ).fetchone()
                values = {f: getattr(item, f) for f in _FIELDS}
                if existing:
                    conn.execute(
                        f"UPDATE ingredients SET {', '.join(f'{f}=:{f}' for f in _FIELDS)} WHERE id=:id",
                        {**values, "id": existing["id"]},
                    )
                    updated += 1
                else:
                    conn.execute(
                        f"INSERT INTO ingredients ({', '.join(_FIELDS)}) "
                        f"VALUES ({', '.join(':' + f for f in _FIELDS)})",
                        values,
                    )
                    inserted += 1

            conn.commit()
        finally:
            conn.close()

    logger.info("Imported %s: %d inserted, %d updated", path.name, inserted, updated)
    return inserted, updated
