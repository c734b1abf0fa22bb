"""Application configuration via environment variables."""
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    app_name: str = "Nodeflow"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    workflows_dir: Path = PROJECT_ROOT / "data" / "workflows"
    memory_backend: Literal["memory", "file"] = "memory"
    memory_file: Path = PROJECT_ROOT / "data" / "memory.json"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = {"env_prefix": "NODEFLOW_"}


settings = Settings()
settings.workflows_dir.mkdir(parents=True, exist_ok=True)
