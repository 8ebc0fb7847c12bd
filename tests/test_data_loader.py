"""
tests/test_data_loader.py

CSV datalog decoding.
"""

import pytest

from virtualdyno.data_loader import DataLoader


class TestDataLoader:
    def test_plain_csv(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("RPM,Calculated Load,MAF (g/s)\n3000,0.5,20\n3500,0.55,\n")
        table = DataLoader().load_table(str(path))
        assert table.headers == ("RPM", "Calculated Load", "MAF (g/s)")
        assert [list(row) for row in table.rows] == [["3000", "0.5", "20"], ["3500", "0.55", ""]]

    def test_header_row_and_units_row(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text(
            'Logged with AccessPort\n'
            '"Engine Speed", "Calculated Load", "MAF"\n'
            'rpm,g/rev,g/s\n'
            '4000,0.8,150\n'
        )
        table = DataLoader(header_row=1, units_row=True).load_table(str(path))
        assert table.headers == ("Engine Speed", "Calculated Load", "MAF")
        assert [list(row) for row in table.rows] == [["4000", "0.8", "150"]]

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_bytes("RPM,IAT (°C),MAF\n3000,25,20\n".encode('latin-1'))
        table = DataLoader().load_table(str(path))
        assert table.headers[1] == "IAT (°C)"

    def test_utf8_bom(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_bytes("RPM,Load,MAF\n3000,0.5,20\n".encode('utf-8-sig'))
        table = DataLoader().load_table(str(path))
        assert table.headers[0] == "RPM"

    def test_header_only(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("RPM,Load,MAF\n")
        table = DataLoader().load_table(str(path))
        assert list(table.rows) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="Error loading CSV data"):
            DataLoader().load_table(str(tmp_path / "missing.csv"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_text("")
        with pytest.raises(ValueError, match="Error loading CSV data"):
            DataLoader().load_table(str(path))
