"""Runtime settings stored in the SQLite settings table.

Known keys:
    currency: ISO 4217 code shown next to every cost (default MXN).

Costs are plain numbers throughout; the currency is a display label only and
no conversion between currencies is ever done.
"""

import re

from menu_costing.db.database import get_connection

DEFAULT_CURRENCY = "MXN"
DEFAULTS = {"currency": DEFAULT_CURRENCY}

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def get_setting(key: str, default: str = None) -> str:
    """Return the stored value for key, falling back to default."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    return row["value"] if row else default


def set_setting(key: str, value: str) -> None:
    conn = get_connection()
    try:
        conn.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )
        conn.commit()
    finally:
        conn.close()


def get_settings() -> dict:
    """Return every known setting with defaults filled in."""
    return {key: get_setting(key) or default for key, default in DEFAULTS.items()}


def get_currency() -> str:
    return get_setting("currency") or DEFAULT_CURRENCY


def set_currency(code: str) -> str:
    """Validate and store a currency code.  Returns the normalized code.

    Raises ValueError for anything that is not three letters.
    """
    normalized = (code or "").strip().upper()
    if not _CURRENCY_CODE.match(normalized):
        raise ValueError(f"Currency must be a three-letter code, got {code!r}")
    set_setting("currency", normalized)
    return normalized
