import uuid

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

from chaussettes.config import settings


Base = declarative_base()

# Créer le moteur async (postgresql+asyncpg en prod, sqlite+aiosqlite en test)
engine = create_async_engine(settings.POSTGRES_URL, echo=settings.SQL_ECHO)

# Session async
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# Dépendance FastAPI pour obtenir la session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def generate_uuid() -> str:
    return str(uuid.uuid4())
