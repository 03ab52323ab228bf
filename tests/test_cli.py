"""
Tests for the main.py command-line interface.
"""

import json

import pytest

from main import main

REFERENCE_ARGS = [
    "--p1", "-2.6836", "1.6822", "14.6413",
    "--p2", "-0.5745", "3.1184", "14.8241",
    "--p3", "2.3582", "2.1072", "14.8742",
]


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every CLI test without picking up a real .coreorient.json."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestMeasureCommand:

    def test_text_output(self, capsys):
        code = main(["measure", *REFERENCE_ARGS, "--azimuth", "60", "--dip", "-60",
                     "--depth", "515", "--collar", "350000", "6500000", "2000"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Dip / dip direction:" in out
        assert "BOH1" in out
        assert "Position: E:" in out

    def test_no_position_without_depth(self, capsys):
        assert main(["measure", *REFERENCE_ARGS]) == 0
        assert "Position:" not in capsys.readouterr().out

    def test_json_output(self, capsys):
        code = main(["measure", *REFERENCE_ARGS, "--label", "S-515", "--depth", "515", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["label"] == "S-515"
        assert data["boh_line"] == 1
        assert 0.0 <= data["real"]["dip"] <= 90.0

    def test_invalid_hole_dip(self, capsys):
        code = main(["measure", *REFERENCE_ARGS, "--dip", "10"])
        assert code == 1
        assert "Measurement error" in capsys.readouterr().err

    def test_collinear_points(self, capsys):
        code = main(["measure",
                     "--p1", "3.175", "0", "1",
                     "--p2", "3.175", "0", "2",
                     "--p3", "3.175", "0", "3"])
        assert code == 1
        assert "Measurement error" in capsys.readouterr().err


class TestTrajectoryCommand:

    def test_station_lines(self, capsys):
        code = main(["trajectory", "5000", "--interval", "1000", "--azimuth", "60", "--dip", "-60"])

        lines = capsys.readouterr().out.strip().splitlines()
        assert code == 0
        assert len(lines) == 6
        assert "E: 0.00, N: 0.00, Z: 0.00" in lines[0]

    def test_vertical_hole_from_config(self, capsys, isolated_cwd):
        (isolated_cwd / ".coreorient.json").write_text(json.dumps({
            "drill_hole": {"utm_east": 100.0, "utm_north": 200.0, "elevation": 50.0},
        }))

        assert main(["trajectory", "10", "--interval", "10"]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert "E: 100.00, N: 200.00, Z: 40.00" in lines[-1]

    def test_invalid_interval(self, capsys):
        assert main(["trajectory", "100", "--interval", "0"]) == 1
        assert "Invalid input" in capsys.readouterr().err


class TestInitConfigCommand:

    def test_writes_sample(self, capsys, isolated_cwd):
        assert main(["init-config"]) == 0

        path = isolated_cwd / ".coreorient.json"
        assert path.exists()
        assert "_comment" in json.loads(path.read_text(encoding="utf-8"))
