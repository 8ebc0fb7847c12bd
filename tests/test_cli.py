"""
tests/test_cli.py

virtual-dyno command line front end.
"""

import pytest

from virtualdyno.models import CurvePoint, PeakSummary
from virtualdyno.plotting import Plotter
from virtualdyno.virtual_dyno import main
from virtualdyno.vehicle_specs import VehicleProfile


def write_log(path, rows=None):
    if rows is None:
        rows = [f"{rpm},0.8,{60 + (rpm - 2500) * 0.045:.1f},{min(4 + (rpm - 2500) * 0.006, 16):.1f}"
                for rpm in range(2500, 6750, 250)]
    path.write_text("Engine RPM,Calculated Load,MAF (g/s),Boost (psi)\n" + "\n".join(rows) + "\n")
    return str(path)


class TestMain:
    def test_report_and_table(self, tmp_path, capsys):
        log = write_log(tmp_path / "pull.csv")
        assert main([log, '--vehicle', 'mazdaspeed3', '--no-plot', '--table']) == 0
        out = capsys.readouterr().out
        assert "Max Power:" in out
        assert "Torque (lb-ft)" in out

    def test_custom_vehicle_and_toggles(self, tmp_path, capsys):
        log = write_log(tmp_path / "pull.csv")
        argv = [log, '--weight', '2900', '--displacement', '1.8', '--drive-type', 'RWD',
                '--smoothing', '0', '--calibration', '1.0', '--no-afr-correction', '--no-ve-correction',
                '--no-plot']
        assert main(argv) == 0
        out = capsys.readouterr().out
        assert "Weight: 2900 lb" in out
        assert "1.8L turbocharged" in out

    @pytest.mark.parametrize("vehicle", [[], ['--vehicle', 'wrx']])
    def test_naturally_aspirated(self, tmp_path, capsys, vehicle):
        log = write_log(tmp_path / "pull.csv")
        assert main([log, *vehicle, '--naturally-aspirated', '--no-plot']) == 0
        assert "L naturally aspirated" in capsys.readouterr().out

    def test_saves_plot(self, tmp_path):
        log = write_log(tmp_path / "pull.csv")
        out = tmp_path / "dyno.png"
        assert main([log, '--vehicle', 'wrx', '--out', str(out), '--title', 'WRX pull']) == 0
        assert out.exists()

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.csv"), '--no-plot']) == 1
        assert "Error" in capsys.readouterr().out

    def test_no_valid_rows(self, tmp_path, capsys):
        log = write_log(tmp_path / "idle.csv", rows=["900,0.2,4,-12", "950,0.2,4,-12"])
        assert main([log, '--no-plot']) == 1
        assert "No valid dyno data" in capsys.readouterr().out

    def test_missing_rpm_column(self, tmp_path, capsys):
        path = tmp_path / "log.csv"
        path.write_text("Load,MAF\n0.5,20\n")
        assert main([str(path), '--no-plot']) == 1
        assert "'rpm'" in capsys.readouterr().out

    def test_unknown_vehicle(self, tmp_path):
        assert main([write_log(tmp_path / "pull.csv"), '--vehicle', 'miata', '--no-plot']) == 1

    @pytest.mark.parametrize("level", ['-1', '6'])
    def test_smoothing_out_of_range(self, tmp_path, level):
        with pytest.raises(SystemExit) as exc_info:
            main([write_log(tmp_path / "pull.csv"), '--smoothing', level])
        assert exc_info.value.code == 2


class TestPlotter:
    def test_plot_saved(self, tmp_path, fwd_profile):
        curve = [CurvePoint(rpm=rpm, horsepower=hp, torque=round(hp * 5252 / rpm, 1))
                 for rpm, hp in [(4000, 180.0), (5000, 220.0), (6000, 210.0)]]
        peaks = PeakSummary(max_horsepower=220.0, max_horsepower_rpm=5000, max_torque=236.3, max_torque_rpm=4000)
        out = tmp_path / "curve.png"
        fig = Plotter(fwd_profile).plot_dyno_curve(curve, peaks, save_path=str(out))
        assert out.exists()
        assert fig.axes[0].get_title() == "Virtual Dyno - 2.0L Engine"

    def test_empty_curve_rejected(self, fwd_profile):
        with pytest.raises(ValueError):
            Plotter(fwd_profile).plot_dyno_curve([], PeakSummary())

    def test_named_vehicle_title(self, tmp_path):
        profile = VehicleProfile.from_preset('evo')
        curve = [CurvePoint(rpm=5000, horsepower=250.0, torque=262.6)]
        fig = Plotter(profile).plot_dyno_curve(curve, PeakSummary(), save_path=str(tmp_path / "evo.png"))
        assert "Mitsubishi Evo" in fig.axes[0].get_title()
