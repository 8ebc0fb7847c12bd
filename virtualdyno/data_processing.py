"""
Datalog row parsing, derived channels and sample validity filtering
"""

import logging
import math
from typing import Iterable, Iterator, Optional, Sequence

from .channels import ChannelMap
from .constants import AnalysisConstants
from .models import CanonicalSample, IngestionStats
from .vehicle_specs import VehicleProfile

logger = logging.getLogger(__name__)

# Value used for a channel that is absent or unreadable
UNAVAILABLE_DEFAULTS = {'dam': 1.0}

CELSIUS_MARKERS = ('(c)', '°c', 'degc', '(°c)')


def _to_float(value) -> float:
    """Parse a datalog cell; raises ValueError on blanks and non-numeric text"""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("empty cell")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"non-finite value {value!r}")
    return result


class SampleIngestor:
    """Turns raw datalog rows into canonical samples for one vehicle"""

    def __init__(self, headers: Sequence[str], channel_map: ChannelMap, profile: VehicleProfile):
        self.headers = tuple(headers)
        self.channel_map = channel_map
        self.profile = profile
        self.stats = IngestionStats()

        self._index = {header: i for i, header in enumerate(self.headers)}
        self._load_is_percent = self._header_has(channel_map.get('load'), ('%',))
        self._afr_is_lambda = self._header_has(channel_map.get('afr'), ('lambda',))
        self._iat_is_celsius = self._header_has(channel_map.get('intake_temp'), CELSIUS_MARKERS)

    @staticmethod
    def _header_has(header: Optional[str], markers: Sequence[str]) -> bool:
        if header is None:
            return False
        lowered = header.lower()
        return any(marker in lowered for marker in markers)

    def samples(self, rows: Iterable[Sequence]) -> Iterator[CanonicalSample]:
        """
        Lazily yield valid samples from datalog rows

        Malformed rows are logged and counted in ``self.stats.rows_skipped``;
        rows failing the validity filter are counted in ``rows_filtered``.
        The generator is single-pass.

        Args:
            rows: Data rows aligned with the header row

        Yields:
            CanonicalSample for every accepted row
        """
        for row in rows:
            self.stats.rows_read += 1
            try:
                sample = self._parse_row(row)
            except (ValueError, TypeError, IndexError) as e:
                self.stats.rows_skipped += 1
                logger.warning("Error processing row %d: %s", self.stats.rows_read, e)
                continue

            if sample is None:
                self.stats.rows_filtered += 1
                continue

            self.stats.samples_accepted += 1
            yield sample

        logger.info("Processed %d rows, %d valid samples (%d malformed, %d filtered)",
                    self.stats.rows_read, self.stats.samples_accepted,
                    self.stats.rows_skipped, self.stats.rows_filtered)

    def _required(self, row: Sequence, channel: str) -> float:
        return _to_float(row[self._index[self.channel_map[channel]]])

    def _reading(self, row: Sequence, channel: str) -> Optional[float]:
        """Parsed cell value, or None when the channel is absent or the cell unreadable"""
        header = self.channel_map.get(channel)
        if header is None:
            return None
        try:
            return _to_float(row[self._index[header]])
        except (ValueError, TypeError, IndexError):
            return None

    def _optional(self, row: Sequence, channel: str) -> float:
        value = self._reading(row, channel)
        return UNAVAILABLE_DEFAULTS.get(channel, 0.0) if value is None else value

    def _parse_row(self, row: Sequence) -> Optional[CanonicalSample]:
        """Parse one row; returns None when the row fails the validity filter"""
        rpm = int(round(self._required(row, 'rpm')))
        load = self._required(row, 'load')
        if self._load_is_percent:
            load /= 100.0
        load = min(max(load, 0.0), 1.0)

        maf = self._optional(row, 'maf')
        boost = self._optional(row, 'boost')
        if boost == 0 and self.channel_map.has('map_kpa'):
            # An unreadable MAP cell reads as 0 kPa, i.e. full vacuum, and fails the filter
            map_kpa = self._optional(row, 'map_kpa')
            boost = (map_kpa - AnalysisConstants.ATMOSPHERIC_KPA) * AnalysisConstants.KPA_TO_PSI

        if not self.is_valid(rpm, load, maf, boost):
            return None

        afr = self._optional(row, 'afr')
        if self._afr_is_lambda and afr > 0:
            afr *= AnalysisConstants.STOICH_AFR

        intake_temp = self._reading(row, 'intake_temp')
        if intake_temp is None:
            intake_temp = 0.0
        elif self._iat_is_celsius:
            intake_temp = intake_temp * 9.0 / 5.0 + 32.0

        return CanonicalSample(
            rpm=rpm,
            mass_airflow=max(maf, 0.0),
            load=load,
            boost=boost,
            afr=max(afr, 0.0),
            intake_air_temp=intake_temp,
            knock_retard=max(self._knock_retard(row), 0.0),
            throttle_position=self._optional(row, 'throttle'),
            is_forced_induction=self.profile.forced_induction,
        )

    def is_valid(self, rpm: int, load: float, maf: float, boost: float) -> bool:
        """Validity filter; the sensor threshold depends on which sensors the log has"""
        valid = rpm > AnalysisConstants.MIN_VALID_RPM and load > AnalysisConstants.MIN_VALID_LOAD
        if self.channel_map.has_airflow:
            valid = valid and maf > AnalysisConstants.MIN_VALID_MAF
        elif self.channel_map.has_pressure:
            valid = valid and boost > AnalysisConstants.MIN_VALID_BOOST
        return valid

    def _knock_retard(self, row: Sequence) -> float:
        """Knock retard in degrees, blending DAM and fuel trims on DAM platforms"""
        knock = self._optional(row, 'knock')
        if not self.profile.advance_multiplier_knock:
            return knock

        return knock + blended_knock_penalty(
            dam=self._optional(row, 'dam'),
            af_learn=self._optional(row, 'af_learn'),
            af_correction=self._optional(row, 'af_correction'),
        )


def blended_knock_penalty(dam: float = 1.0, af_learn: float = 0.0, af_correction: float = 0.0) -> float:
    """
    Equivalent timing retard from advance-multiplier knock feedback

    A DAM below 1.0 converts at 10 degrees per unit lost; large long and
    short term fuel trims add a small penalty beyond their thresholds.
    """
    penalty = 0.0
    if dam < 1.0:
        penalty += (1.0 - dam) * AnalysisConstants.DAM_RETARD_SCALE
    if abs(af_learn) > AnalysisConstants.LTFT_THRESHOLD:
        penalty += abs(af_learn) * AnalysisConstants.LTFT_SCALE
    if abs(af_correction) > AnalysisConstants.STFT_THRESHOLD:
        penalty += abs(af_correction) * AnalysisConstants.STFT_SCALE
    return penalty
