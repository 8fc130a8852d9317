# ballot_ledger/settings.py
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

# -------------------------
# Pydantic models (typed)
# -------------------------


class ServerConf(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class LoggingConf(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class BallotConf(BaseModel):
    option_count: int = Field(default=4, ge=1)


class AttesterConf(BaseModel):
    # Hex Ed25519 public key of the trusted input attester. Without it the
    # service rejects every vote with invalid_proof.
    public_key_hex: Optional[str] = None


class Settings(BaseModel):
    server: ServerConf = ServerConf()
    logging: LoggingConf = LoggingConf()
    ballot: BallotConf = BallotConf()
    attester: AttesterConf = AttesterConf()

    def finalize(self) -> "Settings":
        if self.attester.public_key_hex is not None:
            self.attester.public_key_hex = self.attester.public_key_hex.strip() or None

        # allow comma list for CORS
        cors_env = os.getenv("BALLOT_CORS_ORIGINS")
        if cors_env:
            self.server.cors_origins = [x.strip() for x in cors_env.split(",") if x.strip()]
        return self


# -------------------------
# YAML load + env overlay
# -------------------------


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_env_overrides(cfg: dict) -> dict:
    def set_in(keys: List[str], value: Any):
        d = cfg
        for k in keys[:-1]:
            d = d.setdefault(k, {})
        d[keys[-1]] = value

    if os.getenv("BALLOT_HOST"):
        set_in(["server", "host"], os.getenv("BALLOT_HOST"))
    if os.getenv("BALLOT_PORT"):
        set_in(["server", "port"], int(os.getenv("BALLOT_PORT")))

    if os.getenv("BALLOT_LOG_LEVEL"):
        set_in(["logging", "level"], os.getenv("BALLOT_LOG_LEVEL").upper())

    if os.getenv("BALLOT_OPTION_COUNT"):
        set_in(["ballot", "option_count"], int(os.getenv("BALLOT_OPTION_COUNT")))

    if os.getenv("BALLOT_ATTESTER_PUBKEY"):
        set_in(["attester", "public_key_hex"], os.getenv("BALLOT_ATTESTER_PUBKEY"))

    return cfg


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Loads the YAML config (BALLOT_CONFIG, or ballot_config.yaml next to the
    package), then applies BALLOT_* environment overrides.
    """
    base = Path(__file__).resolve().parent.parent
    yaml_path = Path(path or os.getenv("BALLOT_CONFIG") or (base / "ballot_config.yaml"))
    cfg = _load_yaml(yaml_path)
    cfg = _apply_env_overrides(cfg)
    return Settings(**cfg).finalize()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.logging.level, format=settings.logging.format)
