"""Form parsing and JSON shaping helpers shared by the routers."""

from typing import Optional

from fastapi import HTTPException

from menu_costing.core import pantry as pantry_core
from menu_costing.core.costing import index_by_id, round_money


def optional_float(value, field: str) -> Optional[float]:
    """Parse a form value as float; blank means None, garbage is a 400."""
    value = (value or "").strip() if isinstance(value, str) else value
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{field} must be a number")


def optional_int(value, field: str) -> Optional[int]:
    """Parse a form value as int; blank means None, garbage is a 400."""
    value = (value or "").strip() if isinstance(value, str) else value
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{field} must be a whole number")


def int_list(values, field: str) -> list[int]:
    """Parse repeated form values (e.g. recipe_id=1&recipe_id=2) into ints, skipping blanks."""
    result = []
    for value in values:
        parsed = optional_int(value, field)
        if parsed is not None:
            result.append(parsed)
    return result


def pantry_index() -> dict:
    """Snapshot the pantry catalog as {id: PantryIngredient}."""
    return index_by_id(pantry_core.get_all())


def recipe_cost_payload(cost, currency: str) -> dict:
    """Shape a RecipeCost for JSON, rounding money at this boundary."""
    return {
        "recipe_id": cost.recipe_id,
        "title": cost.title,
        "currency": currency,
        "cost_source": cost.cost_source,
        "base_cost": round_money(cost.base_cost),
        "total": round_money(cost.total),
        "per_serving": round_money(cost.per_serving),
        "breakdown": [
            {"label": label, "cost": round_money(amount)} for label, amount in cost.breakdown
        ],
        "lines": [
            {
                "line_id": line.id,
                "ingredient_id": line.ingredient_id,
                "ingredient_name": line.ingredient_name,
                "quantity": line.quantity,
                "unit": line.unit,
                "status": line_cost.status,
                "rule": line_cost.rule,
                "cost": round_money(line_cost.amount),
            }
            for line, line_cost in cost.line_costs
        ],
        "unconvertible_count": len(cost.unconvertible_lines),
    }
