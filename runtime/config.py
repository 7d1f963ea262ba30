"""
Session configuration dataclasses and YAML loader.

Construct directly in tests, or load from YAML with `load_config()`:

    game:
      seed: 7
      max_selected: 4
      catalog_path: catalog.yaml
    service:
      base_url: https://findfalcone.geektrust.in
      timeout_s: 5.0
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from engine.model import MAX_SELECTED

CONFIG_ENV_VAR = "FALCONE_CONFIG"


@dataclass(frozen=True)
class GameConfig:
    """Rules and randomness of a single game session."""

    seed: int = 42
    max_selected: int = MAX_SELECTED
    catalog_path: str | None = None  # None -> built-in catalog
    catalog_from_service: bool = False  # fetch /planets and /vehicles from service.base_url


@dataclass(frozen=True)
class ServiceConfig:
    """Remote token/search service. With no base_url every search uses the local fallback."""

    base_url: str | None = None
    timeout_s: float = 5.0


@dataclass(frozen=True)
class AppConfig:
    game: GameConfig = field(default_factory=GameConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)


def load_config(path: str | Path) -> AppConfig:
    """Load an AppConfig from a YAML file; missing sections keep their defaults."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return AppConfig(
        game=GameConfig(**raw.get("game", {})),
        service=ServiceConfig(**raw.get("service", {})),
    )


def config_from_env() -> AppConfig:
    """Load the config named by FALCONE_CONFIG, or defaults when unset."""
    path = os.environ.get(CONFIG_ENV_VAR)
    if path:
        return load_config(path)
    return AppConfig()
