"""
Peak horsepower, torque and boost extraction
"""

from typing import Callable, Optional, Sequence

from .constants import AnalysisConstants
from .models import CurvePoint, PeakSummary


def _max_point(curve: Sequence[CurvePoint], key: Callable[[CurvePoint], float],
               min_rpm: Optional[int] = None, max_rpm: Optional[int] = None) -> CurvePoint:
    """Maximum point inside the rpm guard, or the global maximum if none qualifies"""
    guarded = [p for p in curve
               if (min_rpm is None or p.rpm >= min_rpm) and (max_rpm is None or p.rpm <= max_rpm)]
    return max(guarded or curve, key=key)


def extract_peaks(curve: Sequence[CurvePoint], weight_lb: float) -> PeakSummary:
    """
    Locate plausible peaks on a raw or smoothed curve

    Horsepower peaks are only looked for from 4000 rpm up and torque peaks
    between 2500 and 5500 rpm, so a transient boost spike low in the pull is
    not reported as the peak.

    Args:
        curve: Curve points, ascending rpm
        weight_lb: Vehicle weight for the power-to-weight ratio

    Returns:
        PeakSummary rounded to one decimal (all zero for an empty curve)
    """
    if not curve:
        return PeakSummary()

    decimals = AnalysisConstants.OUTPUT_DECIMALS
    hp_point = _max_point(curve, lambda p: p.horsepower, min_rpm=AnalysisConstants.HP_PEAK_MIN_RPM)
    torque_point = _max_point(curve, lambda p: p.torque,
                              min_rpm=AnalysisConstants.TORQUE_PEAK_MIN_RPM,
                              max_rpm=AnalysisConstants.TORQUE_PEAK_MAX_RPM)
    max_boost = max(p.boost for p in curve)

    power_to_weight = hp_point.horsepower / (weight_lb / 1000.0) if weight_lb > 0 else 0.0

    return PeakSummary(
        max_horsepower=round(hp_point.horsepower, decimals),
        max_horsepower_rpm=hp_point.rpm,
        max_torque=round(torque_point.torque, decimals),
        max_torque_rpm=torque_point.rpm,
        max_boost=round(max_boost, decimals),
        power_to_weight_ratio=round(power_to_weight, decimals),
    )
