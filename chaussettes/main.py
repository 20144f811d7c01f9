import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from chaussettes.config import settings
from chaussettes.db.session import AsyncSessionLocal
from chaussettes.utils.errors import register_exception_handlers
from chaussettes.utils.logging_setup import setup_logging
from chaussettes.concerts.api import router as concerts_router
from chaussettes.concerts.services import mark_past_concerts
from chaussettes.inscriptions.api import router as inscriptions_router
from chaussettes.contacts.api import router as contacts_router
from chaussettes.avis.api import router as avis_router
from chaussettes.groupes.api import router as groupes_router
from chaussettes.devis.api import router as devis_router
from chaussettes.reports.api import router as reports_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Démarrage de l'API Concert Chaussettes")
    try:
        async with AsyncSessionLocal() as db:
            await mark_past_concerts(db)
    except SQLAlchemyError:
        logger.exception("Impossible de mettre à jour les concerts passés au démarrage")
    yield
    logger.info("Arrêt de l'API")


app = FastAPI(title="Concert Chaussettes API", lifespan=lifespan)

register_exception_handlers(app)

# Ajout des routers
app.include_router(concerts_router)
app.include_router(inscriptions_router)
app.include_router(contacts_router)
app.include_router(avis_router)
app.include_router(groupes_router)
app.include_router(devis_router)
app.include_router(reports_router)

# Middleware CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Bienvenue sur l'API Concert Chaussettes !"}
