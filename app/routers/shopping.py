from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from app.dependencies import int_list, optional_int
from menu_costing.core import menus as menus_core
from menu_costing.core import pantry as pantry_core
from menu_costing.core import recipes as recipes_core
from menu_costing.core.shopping_list import GROUP_MODES, build_shopping_list, format_shopping_list

router = APIRouter(prefix="/shopping", tags=["shopping"])


def _shopping_from_form(form):
    """Build a ShoppingList from the posted selection.

    With a menu_id the menu's recipes are used in menu order; any recipe_id
    values then narrow that selection.  Returns (shopping_list, title).
    """
    group_by = form.get("group_by") or "none"
    if group_by not in GROUP_MODES:
        raise HTTPException(status_code=400, detail=f"Unknown group_by: {group_by}")

    recipe_ids = int_list(form.getlist("recipe_id"), "recipe_id")
    menu_id = optional_int(form.get("menu_id"), "menu_id")
    title = None
    if menu_id is not None:
        menu = menus_core.get(menu_id)
        if menu is None:
            raise HTTPException(status_code=404, detail="Menu not found")
        title = menu.name
        if recipe_ids:
            selected = set(recipe_ids)
            recipe_ids = [rid for rid in menu.recipe_ids if rid in selected]
        else:
            recipe_ids = menu.recipe_ids

    recipes = recipes_core.get_many(recipe_ids)
    components = recipes_core.get_linked_components(recipes)
    shopping = build_shopping_list(
        recipes, components, group_by=group_by, pantry_catalog=pantry_core.get_all(),
    )
    shopping.set_checked(int_list(form.getlist("checked"), "checked"))
    return shopping, title


@router.post("/generate")
async def shopping_generate(request: Request):
    form = await request.form()
    shopping, title = _shopping_from_form(form)
    return {
        "title": title,
        "group_by": shopping.group_by,
        "item_count": len(shopping.items),
        "checked_count": shopping.checked_count,
        "groups": [
            {"label": group.label, "items": group.items} for group in shopping.groups
        ],
        "plain_text": format_shopping_list(shopping, title),
    }


@router.post("/export")
async def shopping_export(request: Request):
    form = await request.form()
    shopping, title = _shopping_from_form(form)
    text = format_shopping_list(shopping, title)
    return PlainTextResponse(text, headers={
        "Content-Disposition": "attachment; filename=shopping_list.txt",
    })
