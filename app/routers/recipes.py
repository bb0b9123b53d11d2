import re

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse

from app.dependencies import (
    int_list, optional_float, optional_int, pantry_index, recipe_cost_payload,
)
from menu_costing.config import get_currency
from menu_costing.core import recipes as recipes_core
from menu_costing.core.costing import aggregate_recipe_cost
from menu_costing.db.models import Recipe, RecipeIngredientLine

router = APIRouter(prefix="/recipes", tags=["recipes"])

_LINE_KEY = re.compile(r"line_(?:heading|name|ingredient_id)_(\d+)$")


def _collect_lines(form) -> list:
    """Collect indexed line fields, tolerating gaps from deleted rows.

    A row with line_heading_N is a heading; any other row needs a name or an
    ingredient id.  Rows keep the order of their indices.
    """
    indices = set()
    for key in form.keys():
        m = _LINE_KEY.match(key)
        if m:
            indices.add(int(m.group(1)))
    lines = []
    for i in sorted(indices):
        heading = (form.get(f"line_heading_{i}") or "").strip()
        if heading:
            lines.append(RecipeIngredientLine(is_heading=True, heading_text=heading))
            continue
        name = (form.get(f"line_name_{i}") or "").strip()
        ingredient_id = optional_int(form.get(f"line_ingredient_id_{i}"), f"line_ingredient_id_{i}")
        if not name and ingredient_id is None:
            continue
        lines.append(RecipeIngredientLine(
            ingredient_id=ingredient_id,
            ingredient_name=name or None,
            quantity=(form.get(f"line_qty_{i}") or "").strip() or None,
            unit=(form.get(f"line_unit_{i}") or "").strip() or None,
            preparation=(form.get(f"line_prep_{i}") or "").strip() or None,
            is_optional=form.get(f"line_optional_{i}") is not None,
            cost_per_unit=optional_float(form.get(f"line_cost_per_unit_{i}"), f"line_cost_per_unit_{i}"),
            cost_unit=(form.get(f"line_cost_unit_{i}") or "").strip() or None,
        ))
    return lines


def _recipe_from_form(form, recipe_id=None) -> Recipe:
    title = (form.get("title") or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="title is required")
    status = (form.get("status") or "to-test").strip()
    if not recipes_core.is_valid_status(status):
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
    return Recipe(
        id=recipe_id,
        title=title,
        description=form.get("description") or None,
        status=status,
        servings=optional_int(form.get("servings"), "servings"),
        ingredients_html=form.get("ingredients_html") or None,
        instructions_html=form.get("instructions_html") or None,
        equipment_html=form.get("equipment_html") or None,
        uses_structured_ingredients=form.get("uses_structured_ingredients") is not None,
        estimated_cost=optional_float(form.get("estimated_cost"), "estimated_cost"),
        cost_notes=form.get("cost_notes") or None,
        is_component=form.get("is_component") is not None,
        ingredient_lines=_collect_lines(form),
        linked_components=int_list(form.getlist("component_id"), "component_id"),
    )


def _get_or_404(recipe_id: int) -> Recipe:
    recipe = recipes_core.get(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


# ── List & search ──────────────────────────────────────────────────────────────

@router.get("")
def recipes_list(q: str = "", status: str = ""):
    recipe_list = recipes_core.search(q) if q else recipes_core.get_all(status=status or None)
    if q and status:
        recipe_list = [r for r in recipe_list if r.status == status]
    return {"recipes": recipe_list, "q": q, "status": status}


@router.get("/components")
def recipes_components():
    return {"recipes": recipes_core.get_components()}


# ── Add ────────────────────────────────────────────────────────────────────────

@router.post("/add")
async def recipes_add(request: Request):
    form = await request.form()
    recipe = _recipe_from_form(form)
    recipe_id = recipes_core.add(recipe)
    return RedirectResponse(url=f"/recipes/{recipe_id}", status_code=303)


# ── Detail, edit, delete ──────────────────────────────────────────────────────

@router.get("/{recipe_id}")
def recipe_detail(recipe_id: int):
    return _get_or_404(recipe_id)


@router.post("/{recipe_id}/edit")
async def recipe_edit(request: Request, recipe_id: int):
    _get_or_404(recipe_id)
    form = await request.form()
    recipe = _recipe_from_form(form, recipe_id=recipe_id)
    recipes_core.update(recipe)
    return recipes_core.get(recipe_id)


@router.delete("/{recipe_id}")
def recipe_delete(recipe_id: int):
    recipes_core.delete(recipe_id)
    return {"deleted": recipe_id}


# ── Costing ───────────────────────────────────────────────────────────────────

@router.get("/{recipe_id}/cost")
def recipe_cost(recipe_id: int):
    recipe = _get_or_404(recipe_id)
    components = recipes_core.get_linked_components([recipe])
    cost = aggregate_recipe_cost(recipe, components, pantry_index())
    return recipe_cost_payload(cost, get_currency())
