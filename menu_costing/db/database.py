"""SQLite database connection management and schema initialization.

Provides a single-file database at ~/.menu_costing/menu_costing.db.
Every public function that needs a connection should call get_connection(),
use it, and close it in a finally block.
"""

import os
import sqlite3
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path

_db_path_override: ContextVar["Path | None"] = ContextVar("_db_path_override", default=None)


@contextmanager
def override_db_path(path: "Path"):
    """Context manager to override the DB path for the current async task/thread.

    Example:
        with override_db_path(tmp_path / "scratch.db"):
            init_db()
            items = pantry_core.get_all()
    """
    token = _db_path_override.set(path)
    try:
        yield
    finally:
        _db_path_override.reset(token)


def get_db_path() -> Path:
    """Return the active DB path.

    Priority order:
    1. ContextVar override (scratch databases in tests and scripts)
    2. DB_PATH environment variable, read from .env at start-up
    3. ~/.menu_costing/menu_costing.db
    """
    override = _db_path_override.get()
    if override is not None:
        return override
    env_url = os.environ.get("DB_PATH")
    if env_url:
        p = Path(env_url)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    db_dir = Path.home() / ".menu_costing"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "menu_costing.db"


def get_connection(db_path: Path = None) -> sqlite3.Connection:
    """Return a new SQLite connection with Row factory and foreign keys enabled.

    Callers are responsible for closing the connection when done.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: Path = None) -> None:
    """Create all tables if they don't already exist.

    Called once at application startup from app/main.py.
    recipe_ingredients.ingredient_id has no foreign key: deleting
    a pantry ingredient leaves the line's snapshot in place.
    """
    conn = get_connection(db_path)
    cursor = conn.cursor()

    cursor.executescript("""
        CREATE TABLE IF NOT EXISTS ingredients (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            name             TEXT NOT NULL,
            category         TEXT,
            cost_per_unit    REAL,
            cost_unit        TEXT,
            supplier         TEXT,
            quantity_on_hand REAL,
            unit_on_hand     TEXT,
            expiry_date      TEXT,
            notes            TEXT
        );

        CREATE TABLE IF NOT EXISTS recipes (
            id                          INTEGER PRIMARY KEY AUTOINCREMENT,
            title                       TEXT NOT NULL,
            description                 TEXT,
            status                      TEXT DEFAULT 'to-test',
            servings                    INTEGER,
            ingredients_html            TEXT,
            instructions_html           TEXT,
            equipment_html              TEXT,
            uses_structured_ingredients INTEGER DEFAULT 0,
            estimated_cost              REAL,
            cost_notes                  TEXT,
            is_component                INTEGER DEFAULT 0,
            created_at                  TEXT DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS recipe_ingredients (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            recipe_id       INTEGER NOT NULL REFERENCES recipes(id) ON DELETE CASCADE,
            is_heading      INTEGER DEFAULT 0,
            heading_text    TEXT,
            ingredient_id   INTEGER,
            ingredient_name TEXT,
            quantity        TEXT,
            unit            TEXT,
            preparation     TEXT,
            is_optional     INTEGER DEFAULT 0,
            sort_order      INTEGER DEFAULT 0,
            cost_per_unit   REAL,
            cost_unit       TEXT
        );

        CREATE TABLE IF NOT EXISTS recipe_components (
            recipe_id    INTEGER NOT NULL REFERENCES recipes(id) ON DELETE CASCADE,
            component_id INTEGER NOT NULL,
            position     INTEGER DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS menus (
            id           INTEGER PRIMARY KEY AUTOINCREMENT,
            name         TEXT NOT NULL,
            event_date   TEXT,
            location     TEXT,
            guest_count  INTEGER,
            ticket_price REAL,
            notes        TEXT
        );

        CREATE TABLE IF NOT EXISTS menu_recipes (
            menu_id   INTEGER NOT NULL REFERENCES menus(id) ON DELETE CASCADE,
            recipe_id INTEGER NOT NULL,
            position  INTEGER DEFAULT 0
        );

        CREATE INDEX IF NOT EXISTS idx_recipe_ingredients_recipe ON recipe_ingredients(recipe_id, sort_order);
        CREATE INDEX IF NOT EXISTS idx_recipe_components_recipe ON recipe_components(recipe_id, position);
        CREATE INDEX IF NOT EXISTS idx_menu_recipes_menu ON menu_recipes(menu_id, position);
        CREATE INDEX IF NOT EXISTS idx_ingredients_name ON ingredients(name COLLATE NOCASE);

        CREATE TABLE IF NOT EXISTS settings (
            key   TEXT PRIMARY KEY,
            value TEXT
        );
    """)

    conn.commit()
    conn.close()
