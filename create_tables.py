import asyncio
import logging

from chaussettes.db.session import engine
# IMPORTER TOUS LES MODÈLES pour enregistrer toutes les tables dans metadata
from chaussettes.db.models import metadata
from chaussettes.utils.logging_setup import setup_logging

logger = logging.getLogger("create_tables")


async def create_all():
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Toutes les tables ont été créées")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(create_all())
