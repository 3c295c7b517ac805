"""Runtime settings read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from classroom_app.constants.ai_constants import DEFAULT_MODEL_NAME
from classroom_app.constants.classroom_constants import DEFAULT_DATA_DIR
from classroom_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT


@dataclass(slots=True, frozen=True)
class Settings:
    google_api_key: str | None
    data_dir: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    model_name: str = DEFAULT_MODEL_NAME

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> Settings:
        if load_env_file:
            load_dotenv()
        port = os.getenv("CLASSROOM_PORT", str(DEFAULT_PORT))
        try:
            parsed_port = int(port)
        except ValueError as exc:
            raise ValueError(f"CLASSROOM_PORT must be an integer, got {port!r}.") from exc
        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            data_dir=Path(os.getenv("CLASSROOM_DATA_DIR", DEFAULT_DATA_DIR)),
            host=os.getenv("CLASSROOM_HOST", DEFAULT_HOST),
            port=parsed_port,
            model_name=os.getenv("CLASSROOM_MODEL", DEFAULT_MODEL_NAME),
        )
