"""
JSON-based project configuration for autodim.

Allows overriding default tolerances and feature toggles through:
1. .autodim.json file next to the scene snapshot
2. .autodim.json file in the current directory
3. ~/.autodim.json in the user's home directory
4. Explicit config file path via CLI

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (config.py)
2. User config (~/.autodim.json)
3. Project config (./.autodim.json)
4. CLI arguments

The loaded ProjectConfig is converted once per invocation into an
immutable DimensionSettings record which is passed explicitly into every
pipeline stage.

Example .autodim.json:
{
    "tolerances": {
        "parallel_tolerance": 0.05,
        "grid_tolerance": 0.005
    },
    "features": {
        "include_levels": false,
        "reference_type": "exterior_face"
    },
    "placement": {
        "default_offset": 2.0,
        "nudge_chains": true
    },
    "output": {
        "svg_dir": "previews",
        "dxf_file": "chains.dxf"
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from autodim import config as cfg
from autodim.items import ReferenceType, ToleranceClass

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".autodim.json"


@dataclass
class TolerancesConfig:
    """Grouping tolerances (length units of the model, feet by default)."""
    parallel_tolerance: float = cfg.PARALLEL_TOLERANCE
    perpendicular_tolerance: float = cfg.PERPENDICULAR_TOLERANCE
    collinearity_tolerance: float = cfg.COLLINEARITY_TOLERANCE
    structural_tolerance: float = cfg.STRUCTURAL_TOLERANCE
    grid_tolerance: float = cfg.GRID_TOLERANCE
    curtain_wall_tolerance: float = cfg.CURTAIN_WALL_TOLERANCE


@dataclass
class FeaturesConfig:
    """Which element families take part in chains."""
    include_grids: bool = True
    include_levels: bool = True
    include_structural: bool = True
    include_curtain_walls: bool = True
    include_mullions: bool = True
    reference_type: str = "centerline"  # centerline, exterior_face, interior_face, auto


@dataclass
class PlacementConfig:
    """Dimension line placement."""
    default_offset: float = cfg.DEFAULT_OFFSET
    nudge_chains: bool = True
    nudge_distance: float = cfg.NUDGE_DISTANCE


@dataclass
class OutputConfig:
    """Output file configuration."""
    svg_dir: str = ""
    dxf_file: str = ""
    json_report: str = ""


@dataclass(frozen=True)
class DimensionSettings:
    """Immutable settings record consumed by every pipeline stage."""
    parallel_tolerance: float = cfg.PARALLEL_TOLERANCE
    perpendicular_tolerance: float = cfg.PERPENDICULAR_TOLERANCE
    default_offset: float = cfg.DEFAULT_OFFSET
    collinearity_tolerance: float = cfg.COLLINEARITY_TOLERANCE
    structural_tolerance: float = cfg.STRUCTURAL_TOLERANCE
    grid_tolerance: float = cfg.GRID_TOLERANCE
    curtain_wall_tolerance: float = cfg.CURTAIN_WALL_TOLERANCE
    include_grids: bool = True
    include_levels: bool = True
    include_structural: bool = True
    include_curtain_walls: bool = True
    include_mullions: bool = True
    reference_type: ReferenceType = ReferenceType.CENTERLINE
    nudge_chains: bool = True
    nudge_distance: float = cfg.NUDGE_DISTANCE

    def tolerance_for(self, tolerance_class: ToleranceClass) -> float:
        """Collinearity tolerance for a tolerance class."""
        if tolerance_class is ToleranceClass.STRUCTURAL:
            return self.structural_tolerance
        if tolerance_class is ToleranceClass.GRID:
            return self.grid_tolerance
        if tolerance_class is ToleranceClass.CURTAIN_WALL:
            return self.curtain_wall_tolerance
        return self.collinearity_tolerance

    def describe(self) -> Dict[str, str]:
        """Short human-readable view of the settings used (for summaries)."""
        return {
            "Reference Type": self.reference_type.describe(),
            "Include Curtain Walls": "Yes" if self.include_curtain_walls else "No",
            "Include Mullions": "Yes" if self.include_mullions else "No",
        }


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    tolerances: TolerancesConfig = field(default_factory=TolerancesConfig)
    features: FeaturesConfig = field(default_factory=FeaturesConfig)
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    _SECTIONS = ('tolerances', 'features', 'placement', 'output')

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    def to_settings(self) -> DimensionSettings:
        """Freeze the configuration into the record passed to the pipeline.

        Raises:
            ValueError: If reference_type is not a known reference type.
        """
        t = self.tolerances
        fe = self.features
        pl = self.placement
        return DimensionSettings(
            parallel_tolerance=float(t.parallel_tolerance),
            perpendicular_tolerance=float(t.perpendicular_tolerance),
            default_offset=float(pl.default_offset),
            collinearity_tolerance=float(t.collinearity_tolerance),
            structural_tolerance=float(t.structural_tolerance),
            grid_tolerance=float(t.grid_tolerance),
            curtain_wall_tolerance=float(t.curtain_wall_tolerance),
            include_grids=bool(fe.include_grids),
            include_levels=bool(fe.include_levels),
            include_structural=bool(fe.include_structural),
            include_curtain_walls=bool(fe.include_curtain_walls),
            include_mullions=bool(fe.include_mullions),
            reference_type=ReferenceType.parse(fe.reference_type),
            nudge_chains=bool(pl.nudge_chains),
            nudge_distance=float(pl.nudge_distance),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary; unknown keys are ignored."""
        config = cls()
        for section in cls._SECTIONS:
            if section not in data:
                continue
            target = getattr(config, section)
            for key, value in data[section].items():
                if hasattr(target, key):
                    setattr(target, key, value)
                elif not key.startswith('_'):
                    logger.debug("Unknown config key %s.%s ignored", section, key)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    scene_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find configuration file using the search hierarchy.

    Search order:
    1. Explicit config path (if provided)
    2. .autodim.json in the scene snapshot's directory
    3. .autodim.json in current working directory
    4. ~/.autodim.json in user's home directory
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    if scene_path:
        scene_config = Path(scene_path).parent / CONFIG_FILENAME
        if scene_config.exists():
            return scene_config

    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.exists():
        return home_config

    return None


def load_config(
    scene_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration with fallback to defaults."""
    config_path = find_config_file(scene_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, overrides: Dict[str, Dict[str, Any]]) -> ProjectConfig:
    """Apply sparse overrides ({section: {key: value}}) on top of a config.

    Every key present in ``overrides`` wins, even when its value equals the
    built-in default; keys that are absent keep the base value.
    """
    merged = ProjectConfig.from_dict(base.to_dict())

    for section, values in overrides.items():
        if section not in ProjectConfig._SECTIONS:
            logger.debug("Unknown override section %s ignored", section)
            continue
        target = getattr(merged, section)
        for key, value in values.items():
            if not hasattr(target, key):
                logger.debug("Unknown override key %s.%s ignored", section, key)
                continue
            setattr(target, key, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Create a sample configuration file with documentation."""
    sample = {
        "_comment": "Automatic dimension chain configuration",
        "_version": "1.0",
        "tolerances": {
            "_comment": "Lengths in model units (feet); parallel is a cross-product threshold",
            **asdict(TolerancesConfig()),
        },
        "features": {
            "_comment": "reference_type: centerline, exterior_face, interior_face, auto",
            **asdict(FeaturesConfig()),
        },
        "placement": {
            "_comment": "Dimension line offset and cosmetic nudge",
            **asdict(PlacementConfig()),
        },
        "output": {
            "_comment": "Optional output files",
            **asdict(OutputConfig()),
        },
    }

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
