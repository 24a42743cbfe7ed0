from pathlib import Path

from pydantic_settings import BaseSettings

_PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Storage
    workspace_dir: str = "./workspace"  # per-session working artifacts
    config_dir: str = "./.filesmith"  # persisted preferences (settings.json, trust.json)

    # Session defaults
    output_folder: str = ""  # empty -> export next to the original file
    naming_pattern: str = "{name}_{skill}.{ext}"
    default_mode: str = "batch"

    # Execution
    max_parallel: int = 4
    preview_max_width: int = 520
    cli_timeout_seconds: float = 120.0
    cli_allowed_commands: list[str] = ["ffmpeg", "magick", "convert", "identify"]

    # Skills
    skills_core_dir: str = str(_PACKAGE_DIR / "skills" / "catalog")
    skills_community_dir: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
