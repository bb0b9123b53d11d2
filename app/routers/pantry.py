import csv
import logging
import os
import shutil
import tempfile

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from app.dependencies import optional_float
from menu_costing.core import pantry as pantry_core
from menu_costing.db.models import PantryIngredient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pantry", tags=["pantry"])


def _apply_form(item: PantryIngredient, name, category, cost_per_unit, cost_unit, supplier,
                quantity_on_hand, unit_on_hand, expiry_date, notes) -> PantryIngredient:
    if not name.strip():
        raise HTTPException(status_code=400, detail="name is required")
    item.name = name.strip()
    item.category = category or None
    item.cost_per_unit = optional_float(cost_per_unit, "cost_per_unit")
    item.cost_unit = cost_unit.strip() or None
    item.supplier = supplier or None
    item.quantity_on_hand = optional_float(quantity_on_hand, "quantity_on_hand")
    item.unit_on_hand = unit_on_hand or None
    item.expiry_date = expiry_date or None
    item.notes = notes or None
    return item


@router.get("")
def pantry_list(category: str = "", supplier: str = "", q: str = ""):
    if q:
        items = [
            i for i in pantry_core.search(q, limit=500)
            if (not category or i.category == category) and (not supplier or i.supplier == supplier)
        ]
    else:
        items = pantry_core.get_all(category=category or None, supplier=supplier or None)
    return {
        "items": items,
        "categories": pantry_core.get_categories(),
        "suppliers": pantry_core.get_suppliers(),
    }


@router.post("/add")
def pantry_add(
    name: str = Form(...),
    category: str = Form(""),
    cost_per_unit: str = Form(""),
    cost_unit: str = Form(""),
    supplier: str = Form(""),
    quantity_on_hand: str = Form(""),
    unit_on_hand: str = Form(""),
    expiry_date: str = Form(""),
    notes: str = Form(""),
):
    item = _apply_form(
        PantryIngredient(id=None, name=""), name, category, cost_per_unit, cost_unit,
        supplier, quantity_on_hand, unit_on_hand, expiry_date, notes,
    )
    item.id = pantry_core.add(item)
    return item


@router.get("/{item_id}")
def pantry_detail(item_id: int):
    item = pantry_core.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Ingredient not found")
    return item


@router.post("/{item_id}/edit")
def pantry_edit(
    item_id: int,
    name: str = Form(...),
    category: str = Form(""),
    cost_per_unit: str = Form(""),
    cost_unit: str = Form(""),
    supplier: str = Form(""),
    quantity_on_hand: str = Form(""),
    unit_on_hand: str = Form(""),
    expiry_date: str = Form(""),
    notes: str = Form(""),
):
    item = pantry_core.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Ingredient not found")
    _apply_form(item, name, category, cost_per_unit, cost_unit, supplier,
                quantity_on_hand, unit_on_hand, expiry_date, notes)
    pantry_core.update(item)
    return item


@router.delete("/{item_id}")
def pantry_delete(item_id: int):
    pantry_core.delete(item_id)
    return {"deleted": item_id}


@router.post("/import")
def pantry_import(file: UploadFile = File(...)):
    with tempfile.NamedTemporaryFile(suffix=".csv", delete=False) as tmp:
        shutil.copyfileobj(file.file, tmp)
        tmp_path = tmp.name
    try:
        inserted, updated = pantry_core.import_csv(tmp_path)
    except (ValueError, UnicodeDecodeError, csv.Error) as e:
        logger.warning("Pantry import of %s failed: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=f"Import failed: {e}")
    finally:
        os.unlink(tmp_path)
    return {
        "inserted": inserted,
        "updated": updated,
        "message": f"Imported: {inserted} new items, {updated} updated.",
    }
