from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse

from app.dependencies import (
    int_list, optional_float, optional_int, pantry_index, recipe_cost_payload,
)
from menu_costing.config import get_currency
from menu_costing.core import menus as menus_core
from menu_costing.core import recipes as recipes_core
from menu_costing.core.costing import aggregate_menu_cost, index_by_id, round_money
from menu_costing.db.models import Menu

router = APIRouter(prefix="/menus", tags=["menus"])


def _menu_from_form(form, menu_id=None) -> Menu:
    name = (form.get("name") or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    return Menu(
        id=menu_id,
        name=name,
        event_date=form.get("event_date") or None,
        location=form.get("location") or None,
        guest_count=optional_int(form.get("guest_count"), "guest_count"),
        ticket_price=optional_float(form.get("ticket_price"), "ticket_price"),
        notes=form.get("notes") or None,
        recipe_ids=int_list(form.getlist("recipe_id"), "recipe_id"),
    )


def _get_or_404(menu_id: int) -> Menu:
    menu = menus_core.get(menu_id)
    if menu is None:
        raise HTTPException(status_code=404, detail="Menu not found")
    return menu


@router.get("")
def menus_list():
    return {"menus": menus_core.get_all()}


@router.post("/add")
async def menus_add(request: Request):
    form = await request.form()
    menu_id = menus_core.add(_menu_from_form(form))
    return RedirectResponse(url=f"/menus/{menu_id}", status_code=303)


@router.get("/{menu_id}")
def menu_detail(menu_id: int):
    menu = _get_or_404(menu_id)
    return {"menu": menu, "recipes": recipes_core.get_many(menu.recipe_ids)}


@router.post("/{menu_id}/edit")
async def menu_edit(request: Request, menu_id: int):
    _get_or_404(menu_id)
    form = await request.form()
    menus_core.update(_menu_from_form(form, menu_id=menu_id))
    return menus_core.get(menu_id)


@router.delete("/{menu_id}")
def menu_delete(menu_id: int):
    menus_core.delete(menu_id)
    return {"deleted": menu_id}


@router.get("/{menu_id}/cost")
def menu_cost(menu_id: int):
    menu = _get_or_404(menu_id)
    recipes = recipes_core.get_many(menu.recipe_ids)
    components = recipes_core.get_linked_components(recipes)
    cost = aggregate_menu_cost(menu, index_by_id(recipes), components, pantry_index())
    currency = get_currency()
    return {
        "menu_id": menu.id,
        "currency": currency,
        "total": round_money(cost.total),
        "per_guest": round_money(cost.per_guest),
        "food_cost_pct": round(cost.food_cost_pct, 1) if cost.food_cost_pct is not None else None,
        "recipes_costed": cost.recipes_costed,
        "recipe_count": cost.recipe_count,
        "recipes": [recipe_cost_payload(rc, currency) for rc in cost.recipe_costs],
    }
