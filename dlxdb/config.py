"""
Configuration Settings
Environment variables and database layer settings
"""

import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "digitallinguistics"

    # Store limits
    BULK_LIMIT: int = 100  # max operations per physical batch request
    QUERY_PAGE_SIZE: int = 100

    # Schemas
    SCHEMA_BASE_URL: str = "https://schemas.digitallinguistics.io"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.DATABASE_NAME == "digitallinguistics" and self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()


def configure_logging(level: str = None):
    """Configure root logging for scripts that use the database layer"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format='%(levelname)s:     %(name)s: %(message)s'
    )
