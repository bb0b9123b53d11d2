from fastapi import APIRouter, Form, HTTPException
from fastapi.responses import RedirectResponse

from menu_costing.config import get_settings, set_currency

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
def settings_page(saved: str = ""):
    return {
        **get_settings(),
        "flash_message": "Settings saved." if saved else None,
    }


@router.post("")
def settings_save(currency: str = Form("")):
    if currency.strip():
        try:
            set_currency(currency)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return RedirectResponse(url="/settings?saved=1", status_code=303)
