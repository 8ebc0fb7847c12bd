"""
Power and torque estimation from engine sensor samples
"""

import math
from typing import NamedTuple, Optional

from .config import CalibrationTable, load_calibration
from .constants import AnalysisConstants
from .models import CalculationMethod, CanonicalSample
from .vehicle_specs import CalculationSettings, VehicleProfile


class PowerEstimate(NamedTuple):
    """Horsepower/torque for one sample and the method that produced it"""
    horsepower: float
    torque: float
    method: CalculationMethod


def calculate_torque(horsepower: float, rpm: int) -> float:
    """Torque in lb-ft from horsepower; 0 at rpm <= 0"""
    if rpm <= 0:
        return 0.0
    return horsepower * AnalysisConstants.HP_TORQUE_CROSSOVER_RPM / rpm


def afr_correction(afr: float, is_forced_induction: bool) -> float:
    """
    Power factor for running rich or lean of the optimum AFR

    Readings outside the plausible range are treated as bad data and get a
    flat penalty instead of a deviation-based one.
    """
    optimal_afr = AnalysisConstants.OPTIMAL_AFR_FORCED if is_forced_induction else AnalysisConstants.OPTIMAL_AFR_NATURAL

    if afr < AnalysisConstants.MIN_PLAUSIBLE_AFR or afr > AnalysisConstants.MAX_PLAUSIBLE_AFR:
        return AnalysisConstants.BAD_AFR_FACTOR

    deviation = abs(afr - optimal_afr)
    if deviation <= AnalysisConstants.AFR_TOLERANCE:
        return 1.0
    if deviation <= AnalysisConstants.AFR_GENTLE_LIMIT:
        return 1.0 - (deviation - AnalysisConstants.AFR_TOLERANCE) * AnalysisConstants.AFR_GENTLE_PENALTY

    return 1.0 - AnalysisConstants.AFR_STEEP_OFFSET - (deviation - AnalysisConstants.AFR_GENTLE_LIMIT) * AnalysisConstants.AFR_STEEP_PENALTY


def knock_correction(knock_retard: float) -> float:
    """About 1.8% power loss per degree of retard"""
    return 1.0 - knock_retard * AnalysisConstants.KNOCK_LOSS_PER_DEGREE


def atmospheric_correction(intake_temp_f: float) -> float:
    """SAE-style intake temperature density correction, clamped to +/-5%"""
    if intake_temp_f <= 0:
        return 1.0
    correction = math.sqrt(AnalysisConstants.STANDARD_TEMP_RANKINE / (intake_temp_f + AnalysisConstants.RANKINE_OFFSET))
    return max(min(correction, AnalysisConstants.MAX_ATMOSPHERIC_FACTOR), AnalysisConstants.MIN_ATMOSPHERIC_FACTOR)


def volumetric_efficiency(rpm: int) -> float:
    """Engine breathing multiplier by rpm band"""
    if rpm < AnalysisConstants.VE_RAMP_START_RPM:
        return AnalysisConstants.VE_LOW_RPM

    first_band_rpm = AnalysisConstants.VE_BANDS[0][0]
    if rpm < first_band_rpm:
        return AnalysisConstants.VE_LOW_RPM + (rpm - AnalysisConstants.VE_RAMP_START_RPM) * AnalysisConstants.VE_RAMP_PER_RPM

    ve = AnalysisConstants.VE_BANDS[0][1]
    for band_start, band_ve in AnalysisConstants.VE_BANDS:
        if rpm >= band_start:
            ve = band_ve
    return ve


def map_base_ve(rpm: int) -> float:
    """Baseline VE for speed-density airflow estimation"""
    for upper_rpm, ve in AnalysisConstants.MAP_BASE_VE_BANDS:
        if rpm < upper_rpm:
            return ve
    return AnalysisConstants.MAP_BASE_VE_HIGH_RPM


class PowerCalculator:
    """Estimates crank horsepower for individual samples of one vehicle"""

    def __init__(self, profile: VehicleProfile, settings: Optional[CalculationSettings] = None,
                 calibration: Optional[CalibrationTable] = None):
        self.profile = profile
        self.settings = settings or CalculationSettings()
        self.calibration = calibration or load_calibration()

    def select_method(self, sample: CanonicalSample) -> CalculationMethod:
        """MAF when airflow reads valid, then MAP when pressure and temperature exist, else Load"""
        if sample.mass_airflow > AnalysisConstants.MIN_VALID_MAF:
            return CalculationMethod.MAF
        if sample.boost > AnalysisConstants.MIN_VALID_BOOST and sample.intake_air_temp > 0:
            return CalculationMethod.MAP
        return CalculationMethod.LOAD

    def calculate_from_maf(self, sample: CanonicalSample) -> float:
        """Airflow method: horsepower scales with measured air mass"""
        load_factor = min(sample.load * AnalysisConstants.MAF_LOAD_SCALE, AnalysisConstants.MAX_LOAD_FACTOR)
        displacement_factor = 1.0 + ((self.profile.displacement_l - AnalysisConstants.DISPLACEMENT_BASELINE_L)
                                     * AnalysisConstants.MAF_DISPLACEMENT_SCALE)
        return sample.mass_airflow * AnalysisConstants.AIRFLOW_TO_HP * load_factor * displacement_factor

    def calculate_from_map(self, sample: CanonicalSample) -> float:
        """Speed-density method: theoretical airflow from displacement, rpm and charge density"""
        absolute_pressure = abs(sample.boost) + AnalysisConstants.ATMOSPHERIC_PSI
        pressure_ratio = absolute_pressure / AnalysisConstants.ATMOSPHERIC_PSI
        temperature_ratio = AnalysisConstants.STANDARD_TEMP_RANKINE / (sample.intake_air_temp + AnalysisConstants.RANKINE_OFFSET)
        density_ratio = pressure_ratio * temperature_ratio

        theoretical_airflow = (self.profile.displacement_l * sample.rpm * map_base_ve(sample.rpm)
                               * AnalysisConstants.MAP_AIRFLOW_SCALE)
        actual_airflow = theoretical_airflow * density_ratio

        load_factor = min(sample.load * AnalysisConstants.MAP_LOAD_SCALE, AnalysisConstants.MAX_LOAD_FACTOR)
        return actual_airflow * AnalysisConstants.AIRFLOW_TO_HP * load_factor

    def calculate_from_load(self, sample: CanonicalSample) -> float:
        """Fallback method: empirical scaling of calculated load"""
        base_hp = sample.load * sample.rpm * AnalysisConstants.LOAD_HP_SCALE
        base_hp *= (self.profile.displacement_l / AnalysisConstants.DISPLACEMENT_BASELINE_L) ** AnalysisConstants.LOAD_DISPLACEMENT_EXPONENT

        if self.settings.use_boost_correction and sample.boost > 0:
            base_hp *= 1.0 + sample.boost * AnalysisConstants.LOAD_BOOST_SCALE
        return base_hp

    def gear_correction(self, gear: int) -> float:
        return AnalysisConstants.GEAR_CORRECTIONS.get(gear, 1.0)

    def drivetrain_correction(self) -> float:
        return AnalysisConstants.DRIVETRAIN_CORRECTIONS.get(self.profile.drive_type.value, 1.0)

    def calibration_factor(self, method: CalculationMethod) -> float:
        if self.settings.calibration_override is not None:
            return self.settings.calibration_override
        return self.calibration.factor(self.profile.calibration_key, method.value)

    def estimate(self, sample: CanonicalSample, gear: int) -> PowerEstimate:
        """
        Estimate horsepower and torque for a single sample

        Args:
            sample: Validated canonical sample
            gear: Gear the pull was logged in (3, 4 or 5)

        Returns:
            PowerEstimate with non-negative horsepower and torque
        """
        method = self.select_method(sample)
        if method is CalculationMethod.MAF:
            horsepower = self.calculate_from_maf(sample)
        elif method is CalculationMethod.MAP:
            horsepower = self.calculate_from_map(sample)
        else:
            horsepower = self.calculate_from_load(sample)

        # Correction order matters for the calibration tables
        settings = self.settings
        if settings.use_afr_correction and sample.afr > 0:
            horsepower *= afr_correction(sample.afr, sample.is_forced_induction)

        if settings.use_knock_correction and sample.knock_retard > 0:
            horsepower *= knock_correction(sample.knock_retard)

        if settings.use_atmospheric_correction and sample.intake_air_temp > 0:
            horsepower *= atmospheric_correction(sample.intake_air_temp)

        if settings.use_volumetric_efficiency:
            horsepower *= volumetric_efficiency(sample.rpm)

        horsepower *= self.gear_correction(gear)
        horsepower *= self.drivetrain_correction()
        horsepower *= self.calibration_factor(method)

        horsepower = max(horsepower, 0.0)
        return PowerEstimate(horsepower, calculate_torque(horsepower, sample.rpm), method)

    def calculate_horsepower(self, sample: CanonicalSample, gear: int) -> float:
        """Horsepower only; see estimate()"""
        return self.estimate(sample, gear).horsepower
