import pytest

from menu_costing.core import menus as menus_core
from menu_costing.core import pantry as pantry_core
from menu_costing.core import recipes as recipes_core
from menu_costing.db.models import Menu, PantryIngredient, Recipe


@pytest.fixture(scope="module")
def shopping_data(client):
    """Two recipes and a menu; the octopus is the only pantry item that can match."""
    pantry_core.add(PantryIngredient(id=None, name="Shopping Test Octopus", supplier="Shopping Test Fishmonger"))
    first = recipes_core.add(Recipe(
        id=None, title="Shopping Pulpo",
        ingredients_html="<ul><li>1 kg shopping test octopus</li><li>2 zzqx leaves</li></ul>",
    ))
    second = recipes_core.add(Recipe(
        id=None, title="Shopping Tostada", ingredients_html="<p>4 zzqy shells</p>",
    ))
    menu_id = menus_core.add(Menu(id=None, name="Shopping Menu", recipe_ids=[first, second]))
    return first, second, menu_id


def test_shopping_generate_empty(client):
    resp = client.post("/shopping/generate", data={})
    assert resp.status_code == 200
    assert resp.json()["item_count"] == 0
    assert resp.json()["groups"] == []


def test_shopping_generate_by_recipe(client, shopping_data):
    first, second, _ = shopping_data
    resp = client.post("/shopping/generate", data={
        "recipe_id": [str(first), str(second)], "group_by": "recipe", "checked": ["1"],
    })
    assert resp.status_code == 200
    body = resp.json()
    assert [g["label"] for g in body["groups"]] == ["Shopping Pulpo", "Shopping Tostada"]
    assert body["item_count"] == 3
    assert body["checked_count"] == 1
    assert body["groups"][0]["items"][1]["checked"] is True


def test_shopping_generate_from_menu_by_supplier(client, shopping_data):
    _, _, menu_id = shopping_data
    resp = client.post("/shopping/generate", data={"menu_id": str(menu_id), "group_by": "supplier"})
    body = resp.json()
    assert body["title"] == "Shopping Menu"
    assert [g["label"] for g in body["groups"]] == ["Shopping Test Fishmonger", "Unknown Supplier"]
    assert body["groups"][0]["items"][0]["match_status"] == "matched"


def test_shopping_menu_narrowed_by_recipe_selection(client, shopping_data):
    _, second, menu_id = shopping_data
    resp = client.post("/shopping/generate", data={
        "menu_id": str(menu_id), "recipe_id": [str(second)],
    })
    assert [i["text"] for i in resp.json()["groups"][0]["items"]] == ["4 zzqy shells"]


def test_shopping_rejects_unknown_grouping(client):
    resp = client.post("/shopping/generate", data={"group_by": "aisle"})
    assert resp.status_code == 400


def test_shopping_unknown_menu_is_404(client):
    resp = client.post("/shopping/generate", data={"menu_id": "999999"})
    assert resp.status_code == 404


def test_shopping_export(client, shopping_data):
    first, _, _ = shopping_data
    resp = client.post("/shopping/export", data={"recipe_id": [str(first)]})
    assert resp.status_code == 200
    assert "text/plain" in resp.headers["content-type"]
    assert "attachment" in resp.headers["content-disposition"]
    assert "[ ] 1 kg shopping test octopus" in resp.text
