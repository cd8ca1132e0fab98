import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()

DEFAULT_JWT_SECRET = "remplacer_par_une_vraie_cle_secrete_forte"


# Classe de configuration utilisant Pydantic BaseSettings
class Settings(BaseSettings):
    # --- Application ---
    APP_NAME: str = "Construction CRM API"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:4200",
        "http://localhost:3000",
        "http://127.0.0.1:4200",
    ]

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # --- Base de Données ---
    # DATABASE_URL prend le pas sur les variables POSTGRES_* si elle est définie
    DATABASE_URL: Optional[str] = None
    POSTGRES_DB: str = "construction_crm"
    POSTGRES_USER: str = "crm"
    POSTGRES_PASSWORD: str = "crm"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_LOG: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # --- Serveur ---
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # --- JWT ---
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 jours

    # --- Administrateur initial (optionnel) ---
    FIRST_ADMIN_EMAIL: Optional[str] = None
    FIRST_ADMIN_PASSWORD: Optional[str] = None

    # --- Messages Génériques ---
    DB_SQL_ERROR_MSG: str = "Un problème technique est survenu avec la base de données."
    INTERNAL_ERROR_MSG: str = "Erreur interne du serveur."

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignorer les variables d'env non définies dans le modèle
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


# Instancier la classe de configuration
settings = Settings()

if settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
    logger.warning("La variable JWT_SECRET_KEY utilise la valeur par défaut. Veuillez définir une clé secrète forte.")

logger.info(f"Configuration chargée: DB={settings.POSTGRES_DB}@{settings.POSTGRES_HOST}, API={settings.API_V1_PREFIX}")
