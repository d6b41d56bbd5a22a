"""Sensitivity profiles: named bundles of classifier timing and ratio thresholds."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, Optional

import yaml

# Open threshold is fixed at 70% of baseline; the closed ratio must sit
# below it or the dead zone inverts.
MAX_CLOSED_RATIO = 0.70


@dataclass(frozen=True)
class SensitivityProfile:
    """Timing windows (seconds) and the closed-eye ratio for one strictness level.

    Attributes:
        wink_min: Shortest single-eye closure that counts as a wink.
        wink_max: Longest single-eye closure that counts as a wink.
        blink_min: Shortest both-eye closure that counts as a blink.
        cooldown: Minimum gap between any two emitted gestures.
        closed_ratio: Fraction of the calibrated baseline EAR below which
            an eye is considered closed.
    """

    name: str
    wink_min: float
    wink_max: float
    blink_min: float
    cooldown: float
    closed_ratio: float

    def __post_init__(self):
        for field_name in ("wink_min", "wink_max", "blink_min", "cooldown"):
            if getattr(self, field_name) <= 0:
                raise ValueError(f"{self.name}: {field_name} must be positive")
        if self.wink_min > self.wink_max:
            raise ValueError(f"{self.name}: wink_min exceeds wink_max")
        if not 0 < self.closed_ratio < MAX_CLOSED_RATIO:
            raise ValueError(
                f"{self.name}: closed_ratio must be in (0, {MAX_CLOSED_RATIO})"
            )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SensitivityProfile:
        return cls(
            name=str(data["name"]),
            wink_min=float(data["wink_min"]),
            wink_max=float(data["wink_max"]),
            blink_min=float(data["blink_min"]),
            cooldown=float(data["cooldown"]),
            closed_ratio=float(data["closed_ratio"]),
        )


SENSITIVE = SensitivityProfile(
    name="sensitive",
    wink_min=0.08, wink_max=1.00, blink_min=0.20, cooldown=1.0, closed_ratio=0.60,
)
NORMAL = SensitivityProfile(
    name="normal",
    wink_min=0.12, wink_max=0.80, blink_min=0.30, cooldown=1.5, closed_ratio=0.55,
)
RELAXED = SensitivityProfile(
    name="relaxed",
    wink_min=0.20, wink_max=0.60, blink_min=0.50, cooldown=2.0, closed_ratio=0.50,
)

PROFILES: dict[str, SensitivityProfile] = {
    p.name: p for p in (SENSITIVE, NORMAL, RELAXED)
}


def get_profile(name: str) -> SensitivityProfile:
    """Look up a built-in profile by name (case-insensitive)."""
    try:
        return PROFILES[name.lower()]
    except KeyError:
        raise KeyError(
            f"Unknown sensitivity profile '{name}'. Known: {', '.join(PROFILES)}"
        ) from None


class ProfileRegistry:
    """Built-in profiles plus any custom ones loaded from YAML."""

    def __init__(self):
        self._profiles: dict[str, SensitivityProfile] = {}

    def register(self, profile: SensitivityProfile):
        self._profiles[profile.name.lower()] = profile

    def get(self, name: str) -> SensitivityProfile:
        try:
            return self._profiles[name.lower()]
        except KeyError:
            raise KeyError(
                f"Unknown sensitivity profile '{name}'. Known: {', '.join(self.names)}"
            ) from None

    def find(self, name: str) -> Optional[SensitivityProfile]:
        return self._profiles.get(name.lower())

    @property
    def names(self) -> list[str]:
        return list(self._profiles.keys())

    def load_from_file(self, path: str | Path) -> int:
        """Register every profile listed under `profiles:` in a YAML file.

        Returns the number of profiles loaded.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("profiles", [])
        for entry in entries:
            self.register(SensitivityProfile.from_dict(entry))
        return len(entries)

    def save_to_file(self, path: str | Path):
        data = {"profiles": [p.to_dict() for p in self._profiles.values()]}
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def with_defaults(cls) -> ProfileRegistry:
        registry = cls()
        for profile in PROFILES.values():
            registry.register(profile)
        return registry

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[SensitivityProfile]:
        return iter(self._profiles.values())
