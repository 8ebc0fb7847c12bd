"""Loaders for the bundled channel alias, calibration and vehicle preset tables."""

from __future__ import annotations

import functools
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DATA_ROOT = Path(__file__).resolve().parent / "data"

CHANNEL_ALIASES_FILE = "channel_aliases.toml"
CALIBRATION_FILE = "calibration.toml"
VEHICLE_PRESETS_FILE = "vehicle_presets.toml"

PathLike = Union[str, Path]


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as buffer:
        return tomllib.load(buffer)


def _resolve(path: Optional[PathLike], default_name: str) -> Path:
    candidate = DATA_ROOT / default_name if path is None else Path(path)
    return candidate.expanduser().resolve(strict=False)


# ---------------------------------------------------------------------------
# Channel aliases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChannelAliasTable:
    """Ordered alias lists per canonical channel, plus per-platform overlays."""

    channels: Mapping[str, Tuple[str, ...]]
    platforms: Mapping[str, Mapping[str, Tuple[str, ...]]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def aliases_for(self, channel: str, platform: Optional[str] = None) -> Tuple[str, ...]:
        """Return the alias list for *channel*, preferring the platform overlay."""
        if platform:
            overlay = self.platforms.get(platform.lower(), {})
            if channel in overlay:
                return overlay[channel]
        return self.channels.get(channel, ())


def _freeze_aliases(section: Mapping[str, Any]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({
        str(name): tuple(str(alias).lower() for alias in aliases)
        for name, aliases in section.items()
        if isinstance(aliases, list)
    })


@functools.lru_cache(maxsize=None)
def _load_channel_aliases(path: Path) -> ChannelAliasTable:
    payload = _read_toml(path)
    channels = _freeze_aliases(payload.get("channels", {}))
    platforms = MappingProxyType({
        str(name).lower(): _freeze_aliases(section)
        for name, section in payload.get("platforms", {}).items()
        if isinstance(section, Mapping)
    })
    logger.debug("Loaded %d channel alias lists from %s", len(channels), path)
    return ChannelAliasTable(channels=channels, platforms=platforms)


def load_channel_aliases(path: Optional[PathLike] = None) -> ChannelAliasTable:
    """Load the channel alias table (bundled copy unless *path* is given)."""
    return _load_channel_aliases(_resolve(path, CHANNEL_ALIASES_FILE))


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CalibrationTable:
    """Per-vehicle, per-method calibration factors."""

    default: Mapping[str, float]
    vehicles: Mapping[str, Mapping[str, float]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def factor(self, vehicle_key: Optional[str], method: str) -> float:
        """Return the factor for *vehicle_key* and *method*, falling back to the default row."""
        row = self.vehicles.get((vehicle_key or "").lower(), {})
        if method in row:
            return row[method]
        if method in self.default:
            return self.default[method]
        # Unknown method names calibrate like MAF
        return self.default.get("MAF", 1.0)


def _freeze_factors(section: Mapping[str, Any]) -> Mapping[str, float]:
    return MappingProxyType({str(k): float(v) for k, v in section.items()})


@functools.lru_cache(maxsize=None)
def _load_calibration(path: Path) -> CalibrationTable:
    payload = _read_toml(path)
    vehicles = MappingProxyType({
        str(key).lower(): _freeze_factors(section)
        for key, section in payload.get("vehicles", {}).items()
    })
    return CalibrationTable(default=_freeze_factors(payload.get("default", {})), vehicles=vehicles)


def load_calibration(path: Optional[PathLike] = None) -> CalibrationTable:
    """Load the calibration table (bundled copy unless *path* is given)."""
    return _load_calibration(_resolve(path, CALIBRATION_FILE))


# ---------------------------------------------------------------------------
# Vehicle presets
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _load_vehicle_presets(path: Path) -> Mapping[str, Mapping[str, Any]]:
    payload = _read_toml(path)
    return MappingProxyType({
        str(key).lower(): MappingProxyType(dict(section))
        for key, section in payload.items()
        if isinstance(section, Mapping)
    })


def load_vehicle_presets(path: Optional[PathLike] = None) -> Mapping[str, Mapping[str, Any]]:
    """Load the raw vehicle preset records keyed by calibration key."""
    return _load_vehicle_presets(_resolve(path, VEHICLE_PRESETS_FILE))
