import logging
import os
from contextlib import asynccontextmanager
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from menu_costing.db.database import init_db
from app.routers import pantry, recipes, menus, shopping, settings

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(lifespan=lifespan)


@app.get("/", include_in_schema=False)
def index():
    return RedirectResponse(url="/menus", status_code=302)


app.include_router(pantry.router)
app.include_router(recipes.router)
app.include_router(menus.router)
app.include_router(shopping.router)
app.include_router(settings.router)
