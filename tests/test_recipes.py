import pytest

from menu_costing.core import pantry as pantry_core
from menu_costing.core import recipes as recipes_core
from menu_costing.db.models import PantryIngredient, Recipe, RecipeIngredientLine


def _add_recipe(client, **fields):
    resp = client.post("/recipes/add", data=fields, follow_redirects=False)
    assert resp.status_code == 303
    return int(resp.headers["location"].rsplit("/", 1)[1])


def test_recipes_list_returns_200(client):
    resp = client.get("/recipes")
    assert resp.status_code == 200
    assert "recipes" in resp.json()


def test_recipe_add_redirects_to_detail(client):
    recipe_id = _add_recipe(client, title="Test Pozole", status="inspiration", servings="6")
    resp = client.get(f"/recipes/{recipe_id}")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Test Pozole"
    assert resp.json()["servings"] == 6


def test_recipe_add_requires_title(client):
    resp = client.post("/recipes/add", data={"title": "  "}, follow_redirects=False)
    assert resp.status_code == 400


def test_recipe_add_rejects_unknown_status(client):
    resp = client.post("/recipes/add", data={"title": "Bad", "status": "done"}, follow_redirects=False)
    assert resp.status_code == 400


def test_legacy_status_accepted(client):
    recipe_id = _add_recipe(client, title="Old Testing Recipe", status="testing")
    assert recipes_core.get(recipe_id).status == "testing"


def test_recipe_detail_missing_is_404(client):
    assert client.get("/recipes/999999").status_code == 404
    assert client.get("/recipes/999999/cost").status_code == 404


def test_structured_lines_saved_in_index_order(client):
    salmon_id = pantry_core.add(PantryIngredient(
        id=None, name="Recipe Test Salmon", cost_per_unit=12, cost_unit="per kg",
    ))
    recipe_id = _add_recipe(client, **{
        "title": "Structured Tiradito",
        "uses_structured_ingredients": "on",
        "line_heading_0": "Fish",
        "line_ingredient_id_2": str(salmon_id),
        "line_qty_2": "250",
        "line_unit_2": "g",
        "line_prep_2": "sliced thin",
        "line_name_5": "Lime juice",
        "line_qty_5": "60",
        "line_unit_5": "ml",
        "line_optional_5": "on",
    })
    recipe = recipes_core.get(recipe_id)
    assert recipe.uses_structured_ingredients
    assert [l.is_heading for l in recipe.ingredient_lines] == [True, False, False]
    salmon = recipe.ingredient_lines[1]
    assert salmon.ingredient_name == "Recipe Test Salmon"
    assert salmon.cost_per_unit == 12.0
    assert salmon.preparation == "sliced thin"
    assert recipe.ingredient_lines[2].is_optional


def test_recipe_cost_endpoint(client):
    garlic_id = pantry_core.add(PantryIngredient(
        id=None, name="Recipe Test Garlic", cost_per_unit=80, cost_unit="per kg",
    ))
    component_id = _add_recipe(client, title="Cost Test Salsa", estimated_cost="30",
                               is_component="on")
    recipe_id = _add_recipe(client, **{
        "title": "Cost Test Tacos",
        "uses_structured_ingredients": "on",
        "servings": "4",
        "line_ingredient_id_0": str(garlic_id),
        "line_qty_0": "50",
        "line_unit_0": "g",
        "line_name_1": "Water",
        "line_qty_1": "2",
        "line_unit_1": "cups",
        "component_id": [str(component_id)],
    })
    resp = client.get(f"/recipes/{recipe_id}/cost")
    assert resp.status_code == 200
    body = resp.json()
    assert body["currency"]
    assert body["cost_source"] == "calculated"
    assert body["base_cost"] == pytest.approx(4.0)
    assert body["total"] == pytest.approx(34.0)
    assert body["per_serving"] == pytest.approx(8.5)
    assert body["breakdown"] == [
        {"label": "Base recipe", "cost": 4.0},
        {"label": "Cost Test Salsa", "cost": 30.0},
    ]
    assert [l["status"] for l in body["lines"]] == ["converted", "missing"]


def test_recipe_edit_replaces_lines_and_components(client):
    recipe_id = _add_recipe(client, title="Edit Test", line_name_0="Salt")
    resp = client.post(f"/recipes/{recipe_id}/edit", data={
        "title": "Edit Test v2", "status": "menu-ready", "line_name_0": "Pepper",
    })
    assert resp.status_code == 200
    recipe = recipes_core.get(recipe_id)
    assert recipe.title == "Edit Test v2"
    assert recipe.status == "menu-ready"
    assert [l.ingredient_name for l in recipe.ingredient_lines] == ["Pepper"]


def test_recipe_filters(client):
    _add_recipe(client, title="Filter Mole Negro", status="retest")
    resp = client.get("/recipes?q=mole%20negro")
    assert [r["title"] for r in resp.json()["recipes"]] == ["Filter Mole Negro"]
    resp = client.get("/recipes?status=retest")
    assert "Filter Mole Negro" in [r["title"] for r in resp.json()["recipes"]]
    resp = client.get("/recipes?q=mole%20negro&status=inspiration")
    assert resp.json()["recipes"] == []


def test_components_listing(client):
    _add_recipe(client, title="Listing Component Crema", is_component="on")
    titles = [r["title"] for r in client.get("/recipes/components").json()["recipes"]]
    assert "Listing Component Crema" in titles


def test_recipe_delete(client):
    recipe_id = _add_recipe(client, title="Delete Me")
    assert client.delete(f"/recipes/{recipe_id}").status_code == 200
    assert recipes_core.get(recipe_id) is None


def test_snapshot_survives_pantry_delete(scratch_db):
    onion_id = pantry_core.add(PantryIngredient(id=None, name="Onion", cost_per_unit=20, cost_unit="per kg"))
    recipe_id = recipes_core.add(Recipe(
        id=None, title="Sopa", uses_structured_ingredients=True,
        ingredient_lines=[RecipeIngredientLine(ingredient_id=onion_id, quantity="500", unit="g")],
    ))
    pantry_core.delete(onion_id)
    line = recipes_core.get(recipe_id).ingredient_lines[0]
    assert line.ingredient_name == "Onion"
    assert line.cost_per_unit == 20.0


def test_get_many_keeps_requested_order(scratch_db):
    a = recipes_core.add(Recipe(id=None, title="A"))
    b = recipes_core.add(Recipe(id=None, title="B"))
    assert [r.title for r in recipes_core.get_many([b, 999, a, b])] == ["B", "A"]


def test_self_component_link_not_stored(scratch_db):
    recipe_id = recipes_core.add(Recipe(id=None, title="Loop"))
    recipe = recipes_core.get(recipe_id)
    recipe.linked_components = [recipe_id]
    recipes_core.update(recipe)
    assert recipes_core.get(recipe_id).linked_components == []


def test_save_does_not_modify_callers_lines(scratch_db):
    lime_id = pantry_core.add(PantryIngredient(id=None, name="Lime", cost_per_unit=35, cost_unit="per kg"))
    line = RecipeIngredientLine(ingredient_id=lime_id, ingredient_name="limes", quantity="200", unit="g")
    recipe = Recipe(id=None, title="Agua fresca", uses_structured_ingredients=True, ingredient_lines=[line])
    recipe_id = recipes_core.add(recipe)
    assert line.ingredient_name == "limes"
    assert line.cost_per_unit is None
    stored = recipes_core.get(recipe_id).ingredient_lines[0]
    assert stored.ingredient_name == "Lime"
    assert stored.cost_per_unit == 35.0
