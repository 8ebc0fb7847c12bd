"""
tests/test_analyzer.py

End-to-end estimation through DynoAnalyzer.

Coverage:
  - Constant airflow log with corrections off, then with the VE curve on
  - Header-only log and a log without an rpm column
  - Logs mixing MAP and Load samples
  - Curve ordering, non-negative output and the torque identity
  - Resmoothing a stored result and the text report
"""

import pytest

from virtualdyno.analyzer import DynoAnalyzer, estimate
from virtualdyno.errors import ConfigurationError, EmptyResultError
from virtualdyno.models import CalculationMethod, DatalogTable
from virtualdyno.vehicle_specs import VehicleProfile

from conftest import SCENARIO_RPMS


def assert_curve_properties(curve):
    rpms = [p.rpm for p in curve]
    assert rpms == sorted(set(rpms))
    for point in curve:
        assert point.horsepower >= 0
        assert point.torque >= 0


# ── Constant airflow log ──────────────────────────────────────────────────────

class TestConstantAirflowLog:
    def test_corrections_off_gives_flat_power(self, scenario_table, fwd_profile, no_corrections):
        result = estimate(scenario_table, fwd_profile, gear=4, settings=no_corrections)
        assert [p.rpm for p in result.curve] == SCENARIO_RPMS
        assert [p.horsepower for p in result.curve] == [12.4] * 5
        assert result.method_used is CalculationMethod.MAF
        assert result.method_counts == {CalculationMethod.MAF: 10}
        assert result.rows_skipped == 0

    def test_ve_curve_bands(self, scenario_table, fwd_profile, ve_only):
        result = estimate(scenario_table, fwd_profile, gear=4, settings=ve_only)
        horsepower = {p.rpm: p.horsepower for p in result.curve}
        assert horsepower == {3000: 13.0, 3500: 13.4, 4000: 13.9, 4500: 13.5, 5000: 13.2}

    def test_peaks(self, scenario_table, fwd_profile, no_corrections):
        peaks = estimate(scenario_table, fwd_profile, settings=no_corrections).peaks
        assert (peaks.max_horsepower, peaks.max_horsepower_rpm) == (12.4, 4000)
        assert (peaks.max_torque, peaks.max_torque_rpm) == (21.7, 3000)
        assert peaks.power_to_weight_ratio == 4.1

    def test_gear_and_drivetrain(self, scenario_table, no_corrections):
        profile = VehicleProfile(weight_lb=3300, displacement_l=2.0, drive_type='AWD')
        result = estimate(scenario_table, profile, gear=3, settings=no_corrections)
        assert result.curve[0].horsepower == round(12.42 * 0.975 * 0.955, 1)

    def test_unknown_gear_uses_baseline(self, scenario_table, fwd_profile, no_corrections, caplog):
        result = estimate(scenario_table, fwd_profile, gear=6, settings=no_corrections)
        assert result.curve[0].horsepower == 12.4
        assert "gear 6" in caplog.text


# ── Failure paths ─────────────────────────────────────────────────────────────

class TestFailures:
    def test_header_only_log(self, fwd_profile):
        table = DatalogTable(headers=('RPM', 'Calculated Load', 'MAF (g/s)'), rows=[])
        with pytest.raises(EmptyResultError) as exc_info:
            estimate(table, fwd_profile)
        assert "RPM > 2000" in str(exc_info.value)
        assert exc_info.value.stats.rows_read == 0

    def test_all_rows_filtered(self, fwd_profile):
        table = DatalogTable(headers=('RPM', 'Load', 'MAF'), rows=[['1500', '0.5', '20'], ['x', '0.5', '20']])
        with pytest.raises(EmptyResultError) as exc_info:
            estimate(table, fwd_profile)
        assert exc_info.value.stats.rows_filtered == 1
        assert exc_info.value.stats.rows_skipped == 1

    def test_missing_rpm_column(self, fwd_profile):
        table = DatalogTable(headers=('Time', 'Calculated Load', 'MAF'), rows=[['0.1', '0.5', '20']])
        with pytest.raises(ConfigurationError) as exc_info:
            estimate(table, fwd_profile)
        assert exc_info.value.channel == 'rpm'
        assert 'rpm' in str(exc_info.value)


# ── Mixed calculation methods ─────────────────────────────────────────────────

class TestMixedMethods:
    HEADERS = ('RPM', 'Engine Load', 'Boost (psi)', 'IAT (C)')

    def test_most_common_method_reported(self, fwd_profile):
        rows = [
            ['4000', '0.8', '12', '30'],
            ['4500', '0.8', '13', '30'],
            ['5000', '0.8', '14', '30'],
            ['5500', '0.8', '14', ''],
            ['6000', '0.8', '13', ''],
        ]
        result = estimate(DatalogTable(self.HEADERS, rows), fwd_profile)
        assert result.method_counts == {CalculationMethod.MAP: 3, CalculationMethod.LOAD: 2}
        assert result.method_used is CalculationMethod.MAP
        assert "Calculation method: MAP (MAP: 3, Load: 2)" in DynoAnalyzer(fwd_profile).generate_report(result)

    def test_freezing_intake_temps_stay_on_map(self, fwd_profile):
        rows = [['4000', '0.8', '12', '1'], ['4500', '0.8', '12', '0'], ['5000', '0.8', '12', '-1']]
        result = estimate(DatalogTable(self.HEADERS, rows), fwd_profile)
        assert result.method_counts == {CalculationMethod.MAP: 3}


# ── Curve properties ──────────────────────────────────────────────────────────

class TestCurveProperties:
    def test_raw_curve(self, realistic_table, fwd_profile):
        result = estimate(realistic_table, fwd_profile)
        assert len(result.curve) == 17
        assert_curve_properties(result.curve)
        for point in result.curve:
            assert abs(point.torque - point.horsepower * 5252 / point.rpm) < 0.1

    @pytest.mark.parametrize("level", [1, 2, 5])
    def test_smoothed_curve(self, realistic_table, fwd_profile, level):
        result = estimate(realistic_table, fwd_profile, smoothing_level=level)
        assert len(result.curve) == len(result.raw_curve)
        assert_curve_properties(result.curve)
        assert result.smoothing_level == level

    def test_knock_lowers_power(self, realistic_table, fwd_profile):
        result = estimate(realistic_table, fwd_profile)
        analyzer = DynoAnalyzer(fwd_profile)
        clean = DatalogTable(realistic_table.headers,
                             [row[:7] + ['0'] + row[8:] for row in realistic_table.rows])
        clean_result = analyzer.estimate(clean)
        knocked = {p.rpm: p.horsepower for p in result.curve}
        unknocked = {p.rpm: p.horsepower for p in clean_result.curve}
        assert knocked[4500] < unknocked[4500]
        assert knocked[4250] == unknocked[4250]

    def test_subaru_preset(self, realistic_table):
        profile = VehicleProfile.from_preset('wrx')
        result = DynoAnalyzer(profile).estimate(realistic_table)
        assert result.peaks.max_horsepower > 0
        assert result.channel_map['knock'] == 'Knock Retard'


# ── Resmoothing and reporting ─────────────────────────────────────────────────

class TestResmooth:
    def test_level_zero_restores_raw_curve(self, realistic_table, fwd_profile):
        analyzer = DynoAnalyzer(fwd_profile)
        smoothed = analyzer.estimate(realistic_table, smoothing_level=3)
        restored = analyzer.resmooth(smoothed, 0)
        assert restored.curve == smoothed.raw_curve
        assert restored.smoothing_level == 0
        assert restored.peaks == analyzer.extract_peaks(smoothed.raw_curve)

    def test_resmooth_matches_direct_estimate(self, realistic_table, fwd_profile):
        analyzer = DynoAnalyzer(fwd_profile)
        direct = analyzer.estimate(realistic_table, smoothing_level=2)
        resmoothed = analyzer.resmooth(analyzer.estimate(realistic_table), 2)
        assert resmoothed.curve == direct.curve
        assert resmoothed.peaks == direct.peaks

    def test_resmooth_plain_curve(self, realistic_table, fwd_profile):
        analyzer = DynoAnalyzer(fwd_profile)
        result = analyzer.estimate(realistic_table)
        curve = analyzer.resmooth(result.raw_curve, 2)
        assert isinstance(curve, list)
        assert len(curve) == len(result.raw_curve)


class TestReport:
    def test_report_contents(self, realistic_table):
        profile = VehicleProfile.from_preset('mazdaspeed3')
        analyzer = DynoAnalyzer(profile)
        result = analyzer.estimate(realistic_table, smoothing_level=1)
        report = analyzer.generate_report(result)
        assert "Mazdaspeed3" in report
        assert f"Max Power: {result.peaks.max_horsepower:.1f} HP @ {result.peaks.max_horsepower_rpm} RPM" in report
        assert "Calculation method: MAF" in report
        assert "Smoothing level: 1" in report

    def test_curve_table(self, scenario_table, fwd_profile, no_corrections):
        analyzer = DynoAnalyzer(fwd_profile, no_corrections)
        result = analyzer.estimate(scenario_table)
        table = analyzer.generate_curve_table(result.curve, rpm_increment=1000)
        lines = table.splitlines()
        assert len(lines) == 2 + 3
        assert lines[2].split('|')[0].strip() == '3000'
        assert lines[3].split('|')[0].strip() == '4000'
