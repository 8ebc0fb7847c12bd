"""
Peak-preserving smoothing of dyno curves
"""

import dataclasses
import logging
from typing import List, Sequence, Set

import numpy as np

from .constants import AnalysisConstants, SmoothingConstants
from .models import CurvePoint

logger = logging.getLogger(__name__)

SMOOTHED_FIELDS = ('horsepower', 'torque', 'boost')


# Lazy imports for heavy dependencies
def _import_scipy():
    from scipy import signal
    return signal


class CurveSmoother:
    """
    Gaussian smoothing that leaves genuine peaks untouched

    A naive moving average flattens the peak horsepower and torque readings,
    which are the numbers users report. Indices that are both a clear local
    maximum and the regional maximum keep their original value; every other
    index is replaced by a Gaussian-weighted average of its neighbours.
    """

    def __init__(self,
                 neighbor_margin: float = SmoothingConstants.NEIGHBOR_MARGIN,
                 regional_tolerance: float = SmoothingConstants.REGIONAL_TOLERANCE,
                 regional_window: int = SmoothingConstants.REGIONAL_WINDOW,
                 max_half_width: int = SmoothingConstants.MAX_HALF_WIDTH):
        self.neighbor_margin = neighbor_margin
        self.regional_tolerance = regional_tolerance
        self.regional_window = regional_window
        self.max_half_width = max_half_width

    def identify_genuine_peaks(self, values: Sequence[float]) -> Set[int]:
        """
        Indices that rise above both neighbours by the margin and are the
        regional maximum within the tolerance. Endpoints never qualify.
        """
        values = np.asarray(values, dtype=float)
        if len(values) < 3:
            return set()

        signal = _import_scipy()
        candidates, _ = signal.find_peaks(values, threshold=self.neighbor_margin)

        peaks = set()
        for i in candidates:
            current = values[i]
            # find_peaks accepts equality at the threshold; the margin is strict
            if not (current > values[i - 1] + self.neighbor_margin and current > values[i + 1] + self.neighbor_margin):
                continue
            start = max(0, i - self.regional_window)
            end = min(len(values) - 1, i + self.regional_window)
            if abs(current - values[start:end + 1].max()) < self.regional_tolerance:
                peaks.add(int(i))
        return peaks

    def smooth_values(self, values: Sequence[float], level: int) -> np.ndarray:
        """Gaussian-weighted average at every index, window clamped at the ends"""
        values = np.asarray(values, dtype=float)
        half_width = min(level, self.max_half_width)
        smoothed = np.empty_like(values)

        for i in range(len(values)):
            start = max(0, i - half_width)
            end = min(len(values) - 1, i + half_width)
            distance = np.arange(start, end + 1) - i
            weights = np.exp(-(distance ** 2) / (2.0 * level * level))
            smoothed[i] = np.dot(values[start:end + 1], weights) / weights.sum()

        return np.round(smoothed, AnalysisConstants.OUTPUT_DECIMALS)

    def smooth_channel(self, values: Sequence[float], level: int) -> np.ndarray:
        """Smooth one channel, restoring genuine peaks to their original value"""
        original = np.asarray(values, dtype=float)
        result = self.smooth_values(original, level)
        for i in self.identify_genuine_peaks(original):
            result[i] = original[i]
        return result

    def smooth(self, curve: Sequence[CurvePoint], level: int) -> List[CurvePoint]:
        """
        Smooth horsepower, torque and boost of a curve

        Args:
            curve: Aggregated curve (not modified)
            level: Smoothing level; 0 or less returns the curve unchanged

        Returns:
            New curve with the same length and rpm order
        """
        if level <= 0 or not curve:
            return list(curve)

        channels = {
            name: self.smooth_channel([getattr(p, name) for p in curve], level)
            for name in SMOOTHED_FIELDS
        }

        smoothed = [
            dataclasses.replace(point, **{name: float(channels[name][i]) for name in SMOOTHED_FIELDS})
            for i, point in enumerate(curve)
        ]

        self._log_smoothing_effect(curve, smoothed, level)
        return smoothed

    @staticmethod
    def _log_smoothing_effect(before: Sequence[CurvePoint], after: Sequence[CurvePoint], level: int):
        if not logger.isEnabledFor(logging.INFO):
            return
        hp_before = max(p.horsepower for p in before)
        hp_after = max(p.horsepower for p in after)
        tq_before = max(p.torque for p in before)
        tq_after = max(p.torque for p in after)
        logger.info("Smoothing effects (level %d): peak HP %.1f -> %.1f (%+.1f), peak torque %.1f -> %.1f (%+.1f)",
                    level, hp_before, hp_after, hp_after - hp_before,
                    tq_before, tq_after, tq_after - tq_before)


def smooth_curve(curve: Sequence[CurvePoint], level: int) -> List[CurvePoint]:
    """Peak-preserving smoothing with the default detection constants"""
    return CurveSmoother().smooth(curve, level)
