"""
Vehicle profile and calculation settings for power estimation
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from .config import load_vehicle_presets


class DriveType(str, Enum):
    """Driven wheels, used for drivetrain loss correction"""
    FWD = 'FWD'
    AWD = 'AWD'
    RWD = 'RWD'


@dataclass(frozen=True)
class VehicleProfile:
    """Vehicle description supplied by the vehicle configuration store"""
    weight_lb: int
    displacement_l: float
    drive_type: DriveType = DriveType.FWD
    gear_ratios: Dict[int, float] = field(default_factory=dict)
    calibration_key: str = ''
    name: str = ''
    final_drive: Optional[float] = None
    forced_induction: bool = False
    platform: Optional[str] = None
    advance_multiplier_knock: bool = False  # Subaru-style DAM knock feedback

    def __post_init__(self):
        if not isinstance(self.drive_type, DriveType):
            object.__setattr__(self, 'drive_type', DriveType(str(self.drive_type).upper()))
        object.__setattr__(self, 'gear_ratios',
                           {int(gear): float(ratio) for gear, ratio in self.gear_ratios.items()})

    @classmethod
    def from_preset(cls, key: str, weight_lb: Optional[int] = None,
                    presets_path: Optional[str] = None) -> 'VehicleProfile':
        """
        Build a profile from a bundled vehicle preset

        Args:
            key: Preset key, e.g. 'mazdaspeed3'
            weight_lb: Optional weight override (loaded weight, modifications)
            presets_path: Optional alternative presets TOML file

        Returns:
            VehicleProfile for the preset
        """
        presets = load_vehicle_presets(presets_path)
        preset = presets.get(key.lower())
        if preset is None:
            raise ValueError(f"Unknown vehicle preset '{key}'. Available: {', '.join(sorted(presets))}")

        return cls(
            weight_lb=int(weight_lb if weight_lb and weight_lb > 0 else preset['weight_lb']),
            displacement_l=float(preset['displacement_l']),
            drive_type=DriveType(preset.get('drive_type', 'FWD')),
            gear_ratios=dict(preset.get('gear_ratios', {})),
            calibration_key=key.lower(),
            name=preset.get('name', key),
            final_drive=preset.get('final_drive'),
            forced_induction=bool(preset.get('forced_induction', False)),
            platform=preset.get('platform'),
            advance_multiplier_knock=bool(preset.get('advance_multiplier_knock', False)),
        )


def available_presets(presets_path: Optional[str] = None) -> Dict[str, str]:
    """Return preset key -> display name"""
    presets = load_vehicle_presets(presets_path)
    return {key: preset.get('name', key) for key, preset in presets.items()}


@dataclass(frozen=True)
class CalculationSettings:
    """Correction toggles and calibration override for one estimation call"""
    use_afr_correction: bool = True
    use_knock_correction: bool = True
    use_atmospheric_correction: bool = True
    use_volumetric_efficiency: bool = True
    use_boost_correction: bool = True
    calibration_override: Optional[float] = None
