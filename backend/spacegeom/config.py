from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Service defaults; the geometry engine itself always takes tolerance as an argument
    default_tolerance: float = 0.01  # m
    max_intersection_passes: int = 100
    log_level: str = "INFO"
    log_file: str = ""
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "SPACEGEOM_"}


settings = Settings()
