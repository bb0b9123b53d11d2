from menu_costing.core.matching import AMBIGUOUS, MATCHED, UNMATCHED, match_ingredient
from menu_costing.db.models import PantryIngredient


def _catalog():
    return [
        PantryIngredient(id=1, name="Garlic", supplier="Central de Abastos"),
        PantryIngredient(id=2, name="Salmon fillet", supplier="Fish Market"),
        PantryIngredient(id=3, name="Olive oil", supplier="Costco"),
        PantryIngredient(id=4, name="Sesame oil", supplier="Asian Grocer"),
    ]


def test_line_containing_pantry_name():
    match = match_ingredient("2 cloves garlic, minced", _catalog())
    assert match.status == MATCHED
    assert match.ingredient.name == "Garlic"
    assert match.supplier == "Central de Abastos"


def test_word_fallback():
    match = match_ingredient("200g fresh salmon", _catalog())
    assert match.status == MATCHED
    assert match.ingredient.id == 2


def test_ambiguous_returns_first_in_catalog_order():
    match = match_ingredient("1 tbsp oil", _catalog())
    assert match.status == AMBIGUOUS
    assert match.ingredient.name == "Olive oil"
    assert [c.id for c in match.candidates] == [3, 4]


def test_no_match():
    match = match_ingredient("1 bunch cilantro", _catalog())
    assert match.status == UNMATCHED
    assert match.ingredient is None
    assert match.supplier is None


def test_empty_inputs():
    assert match_ingredient("", _catalog()).status == UNMATCHED
    assert match_ingredient("garlic", []).status == UNMATCHED


def test_pantry_name_containing_last_two_words():
    catalog = [
        PantryIngredient(id=1, name="Pimenton"),
        PantryIngredient(id=2, name="Smoked paprika powder"),
    ]
    match = match_ingredient("1 tsp smoked paprika", catalog)
    assert match.status == MATCHED
    assert match.ingredient.id == 2


def test_last_two_words_rule_wins_over_word_fallback():
    catalog = [
        PantryIngredient(id=1, name="Smoked salt"),
        PantryIngredient(id=2, name="Smoked paprika powder"),
    ]
    match = match_ingredient("1 tsp smoked paprika", catalog)
    assert match.status == MATCHED
    assert match.ingredient.id == 2
