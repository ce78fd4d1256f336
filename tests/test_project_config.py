"""
Unit tests for autodim.project_config module.

Tests:
- Configuration dataclasses
- Conversion to immutable DimensionSettings
- JSON serialization/deserialization
- Config file loading
- Config merging
"""

import dataclasses
import json
import tempfile
from pathlib import Path

import pytest

from autodim import config as cfg
from autodim.items import ReferenceType, ToleranceClass
from autodim.project_config import (
    CONFIG_FILENAME,
    DimensionSettings,
    FeaturesConfig,
    PlacementConfig,
    ProjectConfig,
    TolerancesConfig,
    create_sample_config,
    find_config_file,
    load_config,
    merge_configs,
)


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Working directory and home without any config file."""
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return work, home


class TestSectionDefaults:
    """Tests for configuration section dataclasses."""

    def test_tolerance_defaults(self):
        config = TolerancesConfig()
        assert config.parallel_tolerance == cfg.PARALLEL_TOLERANCE
        assert config.grid_tolerance == cfg.GRID_TOLERANCE
        assert config.grid_tolerance < config.collinearity_tolerance < config.structural_tolerance

    def test_features_all_enabled(self):
        config = FeaturesConfig()
        assert config.include_grids
        assert config.include_levels
        assert config.include_structural
        assert config.include_curtain_walls
        assert config.include_mullions
        assert config.reference_type == "centerline"

    def test_placement_defaults(self):
        config = PlacementConfig()
        assert config.default_offset == cfg.DEFAULT_OFFSET
        assert config.nudge_chains


class TestDimensionSettings:
    """Tests for the immutable settings record."""

    def test_frozen(self):
        settings = DimensionSettings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.default_offset = 5.0

    def test_tolerance_for(self):
        settings = DimensionSettings()
        assert settings.tolerance_for(ToleranceClass.STRUCTURAL) == cfg.STRUCTURAL_TOLERANCE
        assert settings.tolerance_for(ToleranceClass.GRID) == cfg.GRID_TOLERANCE
        assert settings.tolerance_for(ToleranceClass.CURTAIN_WALL) == cfg.CURTAIN_WALL_TOLERANCE
        assert settings.tolerance_for(ToleranceClass.DEFAULT) == cfg.COLLINEARITY_TOLERANCE

    def test_describe(self):
        described = DimensionSettings(reference_type=ReferenceType.EXTERIOR_FACE,
                                      include_mullions=False).describe()
        assert described["Reference Type"].startswith("Exterior Face")
        assert described["Include Mullions"] == "No"
        assert described["Include Curtain Walls"] == "Yes"


class TestProjectConfig:
    """Tests for ProjectConfig class."""

    def test_default_config(self):
        """Test default project config."""
        config = ProjectConfig()
        assert config.tolerances.parallel_tolerance == cfg.PARALLEL_TOLERANCE
        assert config.output.svg_dir == ""

    def test_to_settings_defaults(self):
        assert ProjectConfig().to_settings() == DimensionSettings()

    def test_to_settings_values(self):
        config = ProjectConfig()
        config.features.reference_type = "Exterior Face"
        config.features.include_levels = False
        config.placement.default_offset = 4
        config.tolerances.grid_tolerance = 0.01

        settings = config.to_settings()

        assert settings.reference_type is ReferenceType.EXTERIOR_FACE
        assert not settings.include_levels
        assert settings.default_offset == 4.0
        assert isinstance(settings.default_offset, float)
        assert settings.grid_tolerance == 0.01

    def test_to_settings_invalid_reference(self):
        config = ProjectConfig()
        config.features.reference_type = "diagonal"
        with pytest.raises(ValueError):
            config.to_settings()

    def test_to_dict(self):
        """Test conversion to dictionary."""
        d = ProjectConfig().to_dict()
        assert set(d) == {'tolerances', 'features', 'placement', 'output'}
        assert d['features']['reference_type'] == 'centerline'

    def test_from_dict(self):
        """Test creation from dictionary."""
        config = ProjectConfig.from_dict({
            'tolerances': {'parallel_tolerance': 0.05},
            'features': {'include_grids': False},
            'placement': {'default_offset': 2.5},
        })
        assert config.tolerances.parallel_tolerance == 0.05
        assert not config.features.include_grids
        assert config.placement.default_offset == 2.5
        assert config.tolerances.grid_tolerance == cfg.GRID_TOLERANCE

    def test_unknown_keys_ignored(self):
        """Test that unknown keys and sections don't break loading."""
        config = ProjectConfig.from_dict({
            'features': {'include_furniture': True, '_comment': 'x'},
            'drawing': {'format': 'A3'},
        })
        assert not hasattr(config.features, 'include_furniture')

    def test_from_json(self):
        config = ProjectConfig.from_json('{"output": {"dxf_file": "out.dxf"}}')
        assert config.output.dxf_file == "out.dxf"

    def test_save_and_load(self):
        """Test saving and loading config."""
        config = ProjectConfig()
        config.features.reference_type = "interior_face"
        config.placement.nudge_chains = False

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / CONFIG_FILENAME
            config.save(path)
            loaded = ProjectConfig.load(path)

        assert loaded.features.reference_type == "interior_face"
        assert not loaded.placement.nudge_chains


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_explicit_config_found(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text('{}', encoding='utf-8')
        assert find_config_file(explicit_config=path) == path

    def test_explicit_config_not_found(self, isolated_dirs):
        """Missing explicit config falls through to the search hierarchy."""
        assert find_config_file(explicit_config='/nonexistent/path.json') is None

    def test_next_to_scene(self, tmp_path, isolated_dirs):
        scene_dir = tmp_path / "project"
        scene_dir.mkdir()
        (scene_dir / CONFIG_FILENAME).write_text('{}', encoding='utf-8')
        found = find_config_file(scene_path=scene_dir / "scene.json")
        assert found == scene_dir / CONFIG_FILENAME

    def test_current_directory(self, isolated_dirs):
        work, _ = isolated_dirs
        (work / CONFIG_FILENAME).write_text('{}', encoding='utf-8')
        assert find_config_file() == work / CONFIG_FILENAME

    def test_home_directory(self, isolated_dirs):
        _, home = isolated_dirs
        (home / CONFIG_FILENAME).write_text('{}', encoding='utf-8')
        assert find_config_file() == home / CONFIG_FILENAME

    def test_no_config_returns_none(self, isolated_dirs):
        assert find_config_file() is None


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_returns_defaults_when_no_file(self, isolated_dirs):
        config = load_config()
        assert isinstance(config, ProjectConfig)
        assert config.to_settings() == DimensionSettings()

    def test_load_from_explicit_file(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({'features': {'include_levels': False}}), encoding='utf-8')
        config = load_config(explicit_config=path)
        assert not config.features.include_levels

    def test_load_invalid_json_returns_defaults(self, tmp_path):
        """Test that invalid JSON returns defaults with an error logged."""
        path = tmp_path / "broken.json"
        path.write_text('not valid json {{{', encoding='utf-8')
        config = load_config(explicit_config=path)
        assert config.features.reference_type == 'centerline'


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_override_applied(self):
        merged = merge_configs(ProjectConfig(), {'placement': {'default_offset': 6.0}})
        assert merged.placement.default_offset == 6.0

    def test_absent_keys_keep_base(self):
        base = ProjectConfig()
        base.features.include_grids = False
        merged = merge_configs(base, {'features': {'include_levels': False}})
        assert not merged.features.include_grids
        assert not merged.features.include_levels

    def test_default_value_overrides_file_value(self):
        """An explicit override equal to the built-in default still wins."""
        base = ProjectConfig.from_dict({
            'features': {'reference_type': 'exterior_face'},
            'placement': {'default_offset': 2.0},
        })
        merged = merge_configs(base, {
            'features': {'reference_type': 'centerline'},
            'placement': {'default_offset': cfg.DEFAULT_OFFSET},
        })
        assert merged.features.reference_type == 'centerline'
        assert merged.placement.default_offset == cfg.DEFAULT_OFFSET

    def test_unknown_keys_ignored(self):
        merged = merge_configs(ProjectConfig(), {'features': {'include_furniture': True},
                                                 'drawing': {'format': 'A3'}})
        assert merged.to_dict() == ProjectConfig().to_dict()

    def test_base_not_mutated(self):
        base = ProjectConfig()
        merge_configs(base, {'output': {'svg_dir': 'previews'}})
        assert base.output.svg_dir == ""


class TestCreateSampleConfig:
    """Tests for create_sample_config function."""

    def test_creates_valid_json(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        create_sample_config(path)
        data = json.loads(path.read_text(encoding='utf-8'))
        assert {'tolerances', 'features', 'placement', 'output'} <= set(data)
        assert '_comment' in data
        assert '_comment' in data['features']

    def test_sample_loads_as_defaults(self, tmp_path):
        """Comment keys are ignored when the sample is loaded back."""
        path = tmp_path / CONFIG_FILENAME
        create_sample_config(path)
        assert ProjectConfig.load(path).to_settings() == DimensionSettings()
