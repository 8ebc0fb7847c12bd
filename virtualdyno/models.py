"""
Value objects passed between the pipeline stages
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Tuple


class CalculationMethod(str, Enum):
    """Base power method chosen for a sample"""
    MAF = 'MAF'
    MAP = 'MAP'
    LOAD = 'Load'


@dataclass(frozen=True)
class DatalogTable:
    """Decoded datalog: one header row and data rows of raw cell values"""
    headers: Tuple[str, ...]
    rows: Iterable[Sequence]

    def __post_init__(self):
        object.__setattr__(self, 'headers', tuple(str(h) for h in self.headers))


@dataclass(frozen=True)
class CanonicalSample:
    """One accepted datalog row in canonical units"""
    rpm: int
    mass_airflow: float  # g/s, 0 = unavailable
    load: float  # fraction 0..1
    boost: float  # psi gauge
    afr: float = 0.0  # 0 = unavailable
    intake_air_temp: float = 0.0  # °F, 0 = unavailable
    knock_retard: float = 0.0  # degrees
    throttle_position: float = 0.0
    is_forced_induction: bool = False


@dataclass(frozen=True)
class CurvePoint:
    """One point of a dyno curve"""
    rpm: int
    horsepower: float
    torque: float
    boost: float = 0.0
    mass_airflow: float = 0.0
    load: float = 0.0


@dataclass(frozen=True)
class PeakSummary:
    """Peak values reported alongside a curve"""
    max_horsepower: float = 0.0
    max_horsepower_rpm: int = 0
    max_torque: float = 0.0
    max_torque_rpm: int = 0
    max_boost: float = 0.0
    power_to_weight_ratio: float = 0.0


@dataclass
class IngestionStats:
    """Row accounting for one ingestion pass"""
    rows_read: int = 0
    rows_skipped: int = 0
    rows_filtered: int = 0
    samples_accepted: int = 0


@dataclass(frozen=True)
class DynoResult:
    """Output of one estimation call"""
    curve: Tuple[CurvePoint, ...]
    raw_curve: Tuple[CurvePoint, ...]
    peaks: PeakSummary
    method_used: CalculationMethod
    method_counts: Dict[CalculationMethod, int] = field(default_factory=dict)
    stats: IngestionStats = field(default_factory=IngestionStats)
    smoothing_level: int = 0
    channel_map: Optional[Dict[str, Optional[str]]] = None

    @property
    def rows_skipped(self) -> int:
        """Malformed rows dropped during ingestion"""
        return self.stats.rows_skipped
