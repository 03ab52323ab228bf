"""
Unit tests for core_orient.project_config module.

Tests:
- Configuration dataclasses
- JSON serialization/deserialization
- Config file discovery and loading
- Config merging
"""

import json
from pathlib import Path

import pytest

from core_orient.project_config import (
    BOHConfig,
    CONFIG_FILENAME,
    CylinderConfig,
    DetectorConfig,
    DrillHoleConfig,
    ProjectConfig,
    create_sample_config,
    find_config_file,
    load_config,
    merge_configs,
)


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Empty cwd and home so no real config is picked up."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    return work, home


class TestSectionDefaults:
    """Tests for section dataclasses."""

    def test_cylinder_defaults(self):
        config = CylinderConfig()
        assert config.radius_cm == 3.175
        assert config.scene_height_cm == 30.0
        assert config.surface_tolerance_cm == 0.25

    def test_boh_defaults(self):
        config = BOHConfig()
        assert (config.line1_base, config.line2_base) == (0.0, 90.0)
        assert config.displacement_range == 20.0
        assert config.split_depth_cm == 15.0

    def test_detector_defaults(self):
        config = DetectorConfig()
        assert config.target_distance_cm == 26.0
        assert config.distance_tolerance_cm == 3.0
        assert config.interval_ms == 300
        assert config.gradient_threshold == 50.0
        assert (config.frame_width, config.frame_height) == (640, 480)

    def test_drill_hole_defaults_vertical(self):
        config = DrillHoleConfig()
        assert (config.azimuth, config.dip) == (0.0, -90.0)


class TestProjectConfig:
    """Tests for ProjectConfig dataclass."""

    def test_to_dict(self):
        d = ProjectConfig().to_dict()
        assert set(d) == {'cylinder', 'boh', 'detector', 'drill_hole'}
        assert d['detector']['target_distance_cm'] == 26.0

    def test_to_json(self):
        data = json.loads(ProjectConfig().to_json())
        assert data['boh']['line2_base'] == 90.0

    def test_from_dict(self):
        config = ProjectConfig.from_dict({
            'drill_hole': {'name': 'DDH-AOC-001', 'azimuth': 60.0, 'dip': -60.0},
            'cylinder': {'radius_cm': 2.4},
        })
        assert config.drill_hole.name == 'DDH-AOC-001'
        assert config.drill_hole.azimuth == 60.0
        assert config.cylinder.radius_cm == 2.4
        assert config.boh.line1_base == 0.0

    def test_unknown_keys_ignored(self, caplog):
        config = ProjectConfig.from_dict({
            'detector': {'bogus': 1, '_comment': 'ignored silently'},
            'unknown_section': {'x': 1},
        })
        assert not hasattr(config.detector, 'bogus')
        messages = [r.getMessage() for r in caplog.records]
        assert any("detector.bogus" in m for m in messages)
        assert not any("_comment" in m for m in messages)

    def test_from_json(self):
        config = ProjectConfig.from_json('{"boh": {"displacement_range": 15.0}}')
        assert config.boh.displacement_range == 15.0

    def test_save_and_load(self, tmp_path):
        config = ProjectConfig()
        config.drill_hole.utm_east = 350000.0
        config.detector.interval_ms = 150
        path = tmp_path / "hole.json"

        config.save(path)
        loaded = ProjectConfig.load(path)

        assert loaded.drill_hole.utm_east == 350000.0
        assert loaded.detector.interval_ms == 150
        assert loaded == config


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_explicit_config_found(self, tmp_path):
        path = tmp_path / "explicit.json"
        path.write_text('{}')
        assert find_config_file(explicit_config=path) == path

    def test_explicit_missing_falls_back(self, isolated_dirs):
        assert find_config_file(explicit_config='/nonexistent/path.json') is None

    def test_cwd_before_home(self, isolated_dirs):
        work, home = isolated_dirs
        (home / CONFIG_FILENAME).write_text('{}')
        assert find_config_file() == home / CONFIG_FILENAME

        (work / CONFIG_FILENAME).write_text('{}')
        assert find_config_file() == Path.cwd() / CONFIG_FILENAME


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_when_no_file(self, isolated_dirs):
        assert load_config() == ProjectConfig()

    def test_load_from_explicit_file(self, tmp_path):
        path = tmp_path / "hole.json"
        path.write_text(json.dumps({'drill_hole': {'dip': -45.0}}))
        assert load_config(explicit_config=path).drill_hole.dip == -45.0

    def test_invalid_json_returns_defaults(self, tmp_path, caplog):
        path = tmp_path / "broken.json"
        path.write_text('not valid json {{{')

        config = load_config(explicit_config=path)

        assert config == ProjectConfig()
        assert any("Failed to load config" in r.getMessage() for r in caplog.records)


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_override_non_default_values(self):
        override = ProjectConfig()
        override.drill_hole.azimuth = 60.0
        merged = merge_configs(ProjectConfig(), override)
        assert merged.drill_hole.azimuth == 60.0

    def test_default_values_not_overridden(self):
        base = ProjectConfig()
        base.detector.target_distance_cm = 30.0
        merged = merge_configs(base, ProjectConfig())
        assert merged.detector.target_distance_cm == 30.0

    def test_base_not_mutated(self):
        base = ProjectConfig()
        override = ProjectConfig()
        override.boh.split_depth_cm = 10.0
        merge_configs(base, override)
        assert base.boh.split_depth_cm == 15.0


class TestCreateSampleConfig:
    """Tests for create_sample_config function."""

    def test_sample_loads_back(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        create_sample_config(path)

        data = json.loads(path.read_text(encoding='utf-8'))
        assert '_comment' in data
        assert '_comment' in data['drill_hole']
        assert ProjectConfig.load(path) == ProjectConfig()
