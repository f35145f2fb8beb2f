"""Config loader: YAML to dataclasses."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class DeckConfig:
    brightness: int = 80


@dataclass
class StorageConfig:
    backend: str = "file"  # "file" | "memory"
    path: str = "~/.mindgym/stats.json"
    key: str = "mindgym_v1"


@dataclass
class StroopConfig:
    duration: int = 45          # seconds per session
    rounds_per_level: int = 6
    max_difficulty: int = 5


@dataclass
class NBackConfig:
    end_index: int = 40
    max_sequence: int = 50
    advances_per_level: int = 10
    max_difficulty: int = 7
    base_interval_ms: int = 1400
    interval_step_ms: int = 150
    min_interval_ms: int = 650


@dataclass
class SoundConfig:
    enabled: bool = True
    volume: float = 0.3


@dataclass
class AppConfig:
    deck: DeckConfig = field(default_factory=DeckConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    stroop: StroopConfig = field(default_factory=StroopConfig)
    nback: NBackConfig = field(default_factory=NBackConfig)
    sound: SoundConfig = field(default_factory=SoundConfig)


def load_config(path: Path) -> AppConfig:
    """Load config from YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    deck = DeckConfig(**{k: v for k, v in (raw.get("deck") or {}).items()})
    storage = StorageConfig(**{k: v for k, v in (raw.get("storage") or {}).items()})
    stroop = StroopConfig(**{k: v for k, v in (raw.get("stroop") or {}).items()})
    nback = NBackConfig(**{k: v for k, v in (raw.get("nback") or {}).items()})
    sound = SoundConfig(**{k: v for k, v in (raw.get("sound") or {}).items()})

    return AppConfig(deck=deck, storage=storage, stroop=stroop, nback=nback, sound=sound)
