# app/config/settings.py
from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    # App Info
    app_name: str = "PDV API"
    version: str = "1.0.0"
    debug: bool = False

    # Database - SQLite local por defecto, PostgreSQL en producción
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./pdv.db")

    # Security
    secret_key: str = os.getenv("SECRET_KEY", "change-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080

    # Ventas
    notes_max_length: int = 500
    default_page_size: int = 20
    max_page_size: int = 100
    top_products_limit: int = 10

    # Server
    host: str = "0.0.0.0"
    port: int = int(os.getenv("PORT", 8000))

    @property
    def database_url_with_ssl(self) -> str:
        """Agregar SSL para conexiones PostgreSQL alojadas"""
        if self.database_url.startswith("postgresql") and "render" in self.database_url:
            if "?sslmode=" not in self.database_url:
                return f"{self.database_url}?sslmode=require"
        return self.database_url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = 'ignore'

settings = Settings()
