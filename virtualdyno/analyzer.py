"""
Main DynoAnalyzer class that orchestrates the estimation pipeline
"""

import dataclasses
import logging
from collections import Counter
from typing import List, Optional, Sequence, Union

from .channels import ChannelResolver
from .config import CalibrationTable
from .constants import AnalysisConstants
from .curve_aggregator import aggregate_curve
from .data_processing import SampleIngestor
from .errors import EmptyResultError
from .models import CurvePoint, DatalogTable, DynoResult, PeakSummary
from .peak_extractor import extract_peaks as _extract_peaks
from .power_calculator import PowerCalculator
from .smoothing import CurveSmoother
from .vehicle_specs import CalculationSettings, VehicleProfile

logger = logging.getLogger(__name__)


class DynoAnalyzer:
    """Estimates a dyno curve from a datalog for one vehicle"""

    def __init__(self, profile: VehicleProfile,
                 settings: Optional[CalculationSettings] = None,
                 calibration: Optional[CalibrationTable] = None,
                 smoother: Optional[CurveSmoother] = None):
        self.profile = profile
        self.settings = settings or CalculationSettings()
        self.power_calculator = PowerCalculator(profile, self.settings, calibration)
        self.smoother = smoother or CurveSmoother()

    def estimate(self, table: DatalogTable, gear: int = AnalysisConstants.DEFAULT_GEAR,
                 smoothing_level: int = 0) -> DynoResult:
        """
        Run the full pipeline on a decoded datalog

        Args:
            table: Header row and data rows
            gear: Gear the pull was logged in
            smoothing_level: Display smoothing level (0 = raw aggregated curve)

        Returns:
            DynoResult with the display curve, the raw aggregated curve and peaks

        Raises:
            ConfigurationError: Required channels could not be mapped
            EmptyResultError: No row passed the validity filter
        """
        if gear not in AnalysisConstants.GEAR_CORRECTIONS:
            logger.warning("No gear correction for gear %s, using 4th gear baseline", gear)

        channel_map = ChannelResolver(table.headers, self.profile.platform).resolve()
        ingestor = SampleIngestor(table.headers, channel_map, self.profile)

        points = []
        method_counts = Counter()
        for sample in ingestor.samples(table.rows):
            power = self.power_calculator.estimate(sample, gear)
            method_counts[power.method] += 1
            points.append((sample.rpm, power.horsepower, power.torque,
                           sample.boost, sample.mass_airflow, sample.load))

        stats = ingestor.stats
        if not points:
            raise EmptyResultError(
                "No valid dyno data found in the datalog. "
                f"Read {stats.rows_read} rows ({stats.rows_skipped} malformed, {stats.rows_filtered} filtered). "
                "Ensure the log contains a wide-open-throttle pull with RPM and Load data and either MAF "
                f"or Boost/MAP sensors. Valid samples need RPM > {AnalysisConstants.MIN_VALID_RPM}, "
                f"Load > {AnalysisConstants.MIN_VALID_LOAD:.0%}, and MAF > {AnalysisConstants.MIN_VALID_MAF:g} g/s "
                f"(or boost > {AnalysisConstants.MIN_VALID_BOOST:g} psi when no MAF is logged).",
                stats=stats,
            )

        method_used = method_counts.most_common(1)[0][0]
        raw_curve = tuple(aggregate_curve(points))
        curve = tuple(self.smoother.smooth(raw_curve, smoothing_level))
        peaks = _extract_peaks(curve, self.profile.weight_lb)

        logger.info("Created dyno curve with %d points using %s. Peak HP: %.1f @ %d RPM, Peak Torque: %.1f @ %d RPM",
                    len(curve), method_used.value, peaks.max_horsepower, peaks.max_horsepower_rpm,
                    peaks.max_torque, peaks.max_torque_rpm)

        return DynoResult(
            curve=curve,
            raw_curve=raw_curve,
            peaks=peaks,
            method_used=method_used,
            method_counts=dict(method_counts),
            stats=stats,
            smoothing_level=max(smoothing_level, 0),
            channel_map=dict(channel_map),
        )

    def resmooth(self, source: Union[DynoResult, Sequence[CurvePoint]],
                 level: int) -> Union[DynoResult, List[CurvePoint]]:
        """
        Re-smooth a stored curve without re-reading the datalog

        Args:
            source: A DynoResult (its raw curve is used) or an aggregated curve
            level: Smoothing level

        Returns:
            A new DynoResult with recomputed peaks, or the smoothed curve
        """
        if isinstance(source, DynoResult):
            curve = tuple(self.smoother.smooth(source.raw_curve, level))
            return dataclasses.replace(
                source,
                curve=curve,
                peaks=_extract_peaks(curve, self.profile.weight_lb),
                smoothing_level=max(level, 0),
            )
        return self.smoother.smooth(source, level)

    def extract_peaks(self, curve: Sequence[CurvePoint]) -> PeakSummary:
        """Peak summary for a curve using this vehicle's weight"""
        return _extract_peaks(curve, self.profile.weight_lb)

    def generate_report(self, result: DynoResult) -> str:
        """Generate a text report of the estimation"""
        profile = self.profile
        peaks = result.peaks
        stats = result.stats

        report = ["Virtual Dyno Report", "=" * 40, ""]

        report.extend([
            "Vehicle:",
            f"  {profile.name or profile.calibration_key or 'Custom vehicle'}",
            f"  Weight: {profile.weight_lb} lb",
            f"  Engine: {profile.displacement_l:.1f}L {'turbocharged' if profile.forced_induction else 'naturally aspirated'}",
            f"  Drivetrain: {profile.drive_type.value}",
            "",
        ])

        methods = ", ".join(f"{method.value}: {count}" for method, count in
                            sorted(result.method_counts.items(), key=lambda item: -item[1]))
        report.extend([
            "Datalog:",
            f"  Rows read: {stats.rows_read} ({stats.samples_accepted} valid, "
            f"{stats.rows_filtered} filtered, {stats.rows_skipped} malformed)",
            f"  Calculation method: {result.method_used.value} ({methods})",
            f"  Smoothing level: {result.smoothing_level}",
            f"  Curve points: {len(result.curve)} ({result.curve[0].rpm} - {result.curve[-1].rpm} RPM)"
            if result.curve else "  Curve points: 0",
            "",
        ])

        report.extend([
            "Peaks:",
            f"  Max Power: {peaks.max_horsepower:.1f} HP @ {peaks.max_horsepower_rpm} RPM",
            f"  Max Torque: {peaks.max_torque:.1f} lb-ft @ {peaks.max_torque_rpm} RPM",
            f"  Max Boost: {peaks.max_boost:.1f} psi",
            f"  Power to Weight: {peaks.power_to_weight_ratio:.1f} HP per 1000 lb",
        ])

        return "\n".join(report)

    def generate_curve_table(self, curve: Sequence[CurvePoint], rpm_increment: int = 250) -> str:
        """
        Tabular curve output, one row per rpm increment

        Args:
            curve: Curve to print
            rpm_increment: Minimum rpm step between printed rows

        Returns:
            Formatted table
        """
        lines = [f"{'RPM':>6} | {'Power (HP)':>10} | {'Torque (lb-ft)':>14} | {'Boost (psi)':>11}", "-" * 52]
        next_rpm = None
        for point in curve:
            if next_rpm is not None and point.rpm < next_rpm:
                continue
            lines.append(f"{point.rpm:>6} | {point.horsepower:>10.1f} | {point.torque:>14.1f} | {point.boost:>11.1f}")
            next_rpm = point.rpm + rpm_increment
        return "\n".join(lines)


def estimate(table: DatalogTable, profile: VehicleProfile, gear: int = AnalysisConstants.DEFAULT_GEAR,
             settings: Optional[CalculationSettings] = None, smoothing_level: int = 0) -> DynoResult:
    """Estimate a dyno curve; see DynoAnalyzer.estimate"""
    return DynoAnalyzer(profile, settings).estimate(table, gear, smoothing_level)


def resmooth(curve: Sequence[CurvePoint], level: int) -> List[CurvePoint]:
    """Peak-preserving re-smoothing of an aggregated curve"""
    return CurveSmoother().smooth(curve, level)


def extract_peaks(curve: Sequence[CurvePoint], weight_lb: float) -> PeakSummary:
    """Peak summary for a curve and vehicle weight"""
    return _extract_peaks(curve, weight_lb)
