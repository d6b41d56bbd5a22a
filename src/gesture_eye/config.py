"""gesture-eye configuration: YAML file plus GESTURE_EYE_* environment overrides."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

import yaml

from gesture_eye.calibration import DEFAULT_CALIBRATION_FRAMES
from gesture_eye.watchdog import DEFAULT_FACE_TIMEOUT

ENV_PREFIX = "GESTURE_EYE_"


@dataclass
class EngineConfig:
    profile: str = "normal"
    calibration_frames: int = DEFAULT_CALIBRATION_FRAMES
    face_timeout: float = DEFAULT_FACE_TIMEOUT
    host: str = "127.0.0.1"
    port: int = 8765
    camera_index: int = 0
    camera_fps: int = 15
    actions_file: Optional[str] = None
    profiles_file: Optional[str] = None
    log_level: str = "info"

    @classmethod
    def from_dict(cls, data: Mapping) -> EngineConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        config = cls()
        for f in fields(cls):
            if f.name in data and data[f.name] is not None:
                setattr(config, f.name, _coerce(f.name, data[f.name]))
        return config

    def to_dict(self) -> dict:
        return asdict(self)


_TYPES = {
    "calibration_frames": int,
    "face_timeout": float,
    "port": int,
    "camera_index": int,
    "camera_fps": int,
}


def _coerce(name: str, value):
    converter = _TYPES.get(name, str)
    try:
        return converter(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: {value!r}") from None


def load_config(
    path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EngineConfig:
    """Load configuration from an optional YAML file, then apply env overrides.

    Environment variables are named GESTURE_EYE_<FIELD>, e.g.
    GESTURE_EYE_PROFILE=relaxed.
    """
    data: dict = {}
    if path is not None:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        data.update(loaded)

    env = os.environ if environ is None else environ
    for f in fields(EngineConfig):
        key = ENV_PREFIX + f.name.upper()
        if key in env:
            data[f.name] = env[key]

    config = EngineConfig.from_dict(data)
    if config.calibration_frames < 1:
        raise ValueError("calibration_frames must be at least 1")
    if config.face_timeout <= 0:
        raise ValueError("face_timeout must be positive")
    return config


def save_config(config: EngineConfig, path: str | Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
