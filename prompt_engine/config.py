"""
Engine configuration from environment variables.

Load order (highest priority first):
1. Process environment
2. .env.local (local development)
3. .env (shared defaults)

Config (env vars):
    EMBEDDER_TYPE: "hash" | "local" (default: hash)
    EMBEDDER_MODEL: sentence-transformers model id (used when EMBEDDER_TYPE=local)
    EMBEDDER_TIMEOUT_SECONDS: max wait for the neural backend before falling back
    HASH_EMBEDDING_DIMENSIONS: vector length for hash embeddings (default: 128)
    LOG_LEVEL: console log level (default: INFO)
    LOG_FILE: base path of the rotating log file
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDER_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
EMBEDDER_TYPES = ("hash", "local")


def load_environment(base_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Load .env.local or .env from base_dir (default: current directory).

    Existing process variables are never overridden.

    Returns:
        Path of the file that was loaded, or None if neither exists
    """
    base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    for name in (".env.local", ".env"):
        env_path = base_dir / name
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.info(f"Loaded environment from: {env_path}")
            return env_path

    logger.debug(f"No .env.local or .env in {base_dir} - using process environment only")
    return None


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class EngineSettings:
    """Resolved engine configuration"""
    embedder_type: str = "hash"
    embedder_model: str = DEFAULT_EMBEDDER_MODEL
    embedder_timeout_seconds: float = 30.0
    hash_dimensions: int = 128
    log_level: str = "INFO"
    log_file: str = "logs/prompt-engine.log"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read from (default: os.environ)

        Raises:
            ValueError: If a variable is present but malformed
        """
        env = os.environ if env is None else env

        embedder_type = (env.get("EMBEDDER_TYPE") or "hash").strip().lower()
        if embedder_type not in EMBEDDER_TYPES:
            raise ValueError(
                f"Unknown EMBEDDER_TYPE: {embedder_type}. "
                f"Valid options: {', '.join(EMBEDDER_TYPES)}"
            )

        return cls(
            embedder_type=embedder_type,
            embedder_model=env.get("EMBEDDER_MODEL") or DEFAULT_EMBEDDER_MODEL,
            embedder_timeout_seconds=_read_float(env, "EMBEDDER_TIMEOUT_SECONDS", 30.0),
            hash_dimensions=_read_int(env, "HASH_EMBEDDING_DIMENSIONS", 128),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            log_file=env.get("LOG_FILE") or "logs/prompt-engine.log",
        )

    @property
    def console_log_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)
