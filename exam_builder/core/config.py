from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL_LOCAL: str = "sqlite:///./exam_builder.db"
    DATABASE_URL_DOCKER: Optional[str] = None

    USE_DOCKER_DB: bool = False

    # Frontend origins allowed by CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def DATABASE_URL(self) -> str:
        """
        Use the Docker DB only when explicitly enabled and configured.
        """
        if self.USE_DOCKER_DB and self.DATABASE_URL_DOCKER:
            return self.DATABASE_URL_DOCKER
        return self.DATABASE_URL_LOCAL


settings = Settings()
