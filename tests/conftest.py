"""
tests/conftest.py

Shared fixtures: vehicle profiles, settings and small synthetic datalogs.
"""

import matplotlib
import pytest

from virtualdyno.models import CurvePoint, DatalogTable
from virtualdyno.vehicle_specs import CalculationSettings, DriveType, VehicleProfile


matplotlib.use("Agg")

SCENARIO_RPMS = [3000, 3500, 4000, 4500, 5000]


# ── Profiles and settings ─────────────────────────────────────────────────────

@pytest.fixture
def fwd_profile() -> VehicleProfile:
    """Plain 2.0L FWD turbo car with no calibration key."""
    return VehicleProfile(weight_lb=3000, displacement_l=2.0, drive_type=DriveType.FWD,
                          forced_induction=True)


@pytest.fixture
def subaru_profile() -> VehicleProfile:
    return VehicleProfile(weight_lb=3300, displacement_l=2.5, drive_type=DriveType.AWD,
                          calibration_key='sti', forced_induction=True, platform='subaru',
                          advance_multiplier_knock=True)


@pytest.fixture
def no_corrections() -> CalculationSettings:
    """Every correction off, calibration pinned to 1.0."""
    return CalculationSettings(
        use_afr_correction=False,
        use_knock_correction=False,
        use_atmospheric_correction=False,
        use_volumetric_efficiency=False,
        use_boost_correction=False,
        calibration_override=1.0,
    )


@pytest.fixture
def ve_only() -> CalculationSettings:
    return CalculationSettings(
        use_afr_correction=False,
        use_knock_correction=False,
        use_atmospheric_correction=False,
        use_volumetric_efficiency=True,
        use_boost_correction=False,
        calibration_override=1.0,
    )


# ── Datalogs ──────────────────────────────────────────────────────────────────

@pytest.fixture
def scenario_table() -> DatalogTable:
    """10 rows, two per rpm, constant load 0.5 and MAF 20 g/s."""
    rows = [[str(rpm), '0.5', '20'] for rpm in SCENARIO_RPMS for _ in range(2)]
    return DatalogTable(headers=('RPM', 'Calculated Load', 'MAF (g/s)'), rows=rows)


@pytest.fixture
def realistic_table() -> DatalogTable:
    """Full-featured pull with AFR, IAT, knock and boost."""
    headers = ('Time (s)', 'RPM', 'Calculated Load', 'Mass Airflow (g/s)', 'Boost (psi)',
               'Actual AFR', 'Intake Air Temp (F)', 'Knock Retard', 'Throttle Position (%)')
    rows = []
    for i, rpm in enumerate(range(2500, 6750, 250)):
        maf = 60 + (rpm - 2500) * 0.045
        boost = min(4 + (rpm - 2500) * 0.006, 16)
        knock = '1.4' if rpm == 4500 else '0'
        rows.append([f'{i * 0.1:.1f}', str(rpm), '0.82', f'{maf:.1f}', f'{boost:.1f}',
                     '11.6', '95', knock, '100'])
    return DatalogTable(headers=headers, rows=rows)


def make_curve(horsepower, start_rpm=3000, step=250, boost=None):
    """Curve with torque derived from horsepower."""
    curve = []
    for i, hp in enumerate(horsepower):
        rpm = start_rpm + i * step
        curve.append(CurvePoint(rpm=rpm, horsepower=hp, torque=round(hp * 5252 / rpm, 1),
                                boost=boost[i] if boost else 0.0))
    return curve
