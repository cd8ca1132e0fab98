import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from crm.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Options du moteur selon le dialecte (SQLite n'accepte pas les paramètres de pool)."""
    options = {"echo": settings.DB_ECHO_LOG, "future": True}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return options


# Créer le moteur de base de données asynchrone
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Créer une classe de session asynchrone
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Empêche les objets d'expirer après commit
)

logger.info("Moteur et Session Factory SQLAlchemy Async configurés.")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            # Pas de commit ici: les services contrôlent leurs transactions.
        except Exception as e:
            logger.error(f"Erreur durant la session DB, rollback: {e}", exc_info=True)
            await session.rollback()
            raise
        finally:
            await session.close()
            logger.debug("Session DB fermée.")


async def ping_database(session: AsyncSession) -> bool:
    """Vérifie que la base répond à une requête triviale."""
    try:
        await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Ping base de données en échec: {e}", exc_info=True)
        return False


async def create_tables():
    """Crée toutes les tables définies dans SQLModel.metadata."""
    # Enregistre tous les modèles de table dans les métadonnées partagées
    import crm.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
