"""
JSON-based project configuration for core_orient.

Allows overriding default values through:
1. An explicit config file path (CLI --config)
2. .coreorient.json in the current directory
3. .coreorient.json in the user's home directory

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (dataclasses below)
2. User config (~/.coreorient.json)
3. Project config (./.coreorient.json)
4. CLI arguments

Example .coreorient.json:
{
    "cylinder": {"radius_cm": 3.175, "surface_tolerance_cm": 0.25},
    "boh": {"line1_base": 0.0, "line2_base": 90.0, "displacement_range": 20.0},
    "detector": {"target_distance_cm": 26.0, "interval_ms": 300},
    "drill_hole": {
        "name": "DDH-001",
        "azimuth": 60.0,
        "dip": -60.0,
        "utm_east": 350000.0,
        "utm_north": 6500000.0,
        "elevation": 2000.0
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".coreorient.json"


@dataclass
class CylinderConfig:
    """Physical core and virtual scene geometry (cm)."""
    radius_cm: float = 3.175
    scene_height_cm: float = 30.0
    surface_tolerance_cm: float = 0.25


@dataclass
class BOHConfig:
    """BOH reference line settings (degrees, cm)."""
    line1_base: float = 0.0
    line2_base: float = 90.0
    displacement_range: float = 20.0
    split_depth_cm: float = 15.0  # line1 covers [0, split), line2 the rest
    min_ac: float = 50.0
    max_ac: float = 130.0


@dataclass
class DetectorConfig:
    """Auto-capture edge detector settings."""
    target_distance_cm: float = 26.0
    distance_tolerance_cm: float = 3.0
    interval_ms: int = 300
    gradient_threshold: float = 50.0
    reference_width_fraction: float = 0.4  # apparent core width at target distance
    min_width_fraction: float = 0.2
    ready_confidence: float = 0.6
    frame_width: int = 640  # scratch buffer size until the first frame arrives
    frame_height: int = 480


@dataclass
class DrillHoleConfig:
    """Default borehole survey and collar used by the CLI."""
    name: str = ""
    azimuth: float = 0.0
    dip: float = -90.0
    utm_east: float = 0.0
    utm_north: float = 0.0
    elevation: float = 0.0


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    cylinder: CylinderConfig = field(default_factory=CylinderConfig)
    boh: BOHConfig = field(default_factory=BOHConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    drill_hole: DrillHoleConfig = field(default_factory=DrillHoleConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file.

        Args:
            path: Output file path
        """
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary.

        Unknown sections and keys are ignored.

        Args:
            data: Configuration dictionary

        Returns:
            ProjectConfig instance
        """
        config = cls()

        for section in fields(cls):
            values = data.get(section.name)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section.name)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)
                elif not key.startswith('_'):
                    logger.warning("Unknown config key: %s.%s", section.name, key)

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


def find_config_file(explicit_config: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Find configuration file using search hierarchy.

    Search order:
    1. Explicit config path (if provided)
    2. .coreorient.json in current working directory
    3. ~/.coreorient.json in user's home directory

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.exists():
        return home_config

    return None


def load_config(explicit_config: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """Load configuration with fallback to defaults.

    A file that cannot be read or parsed is logged and replaced by defaults.
    """
    config_path = find_config_file(explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations, with override taking precedence.

    Only values of `override` that differ from the built-in defaults are
    applied.
    """
    merged = ProjectConfig.from_dict(base.to_dict())
    defaults = ProjectConfig()

    for section in fields(ProjectConfig):
        override_section = getattr(override, section.name)
        default_section = getattr(defaults, section.name)
        merged_section = getattr(merged, section.name)
        for key, value in asdict(override_section).items():
            if value != getattr(default_section, key):
                setattr(merged_section, key, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Create a sample configuration file with documentation.

    Args:
        path: Output file path (default: .coreorient.json)
    """
    sample: Dict[str, Any] = {
        "_comment": "Drill-core structure orientation configuration",
        "_version": "1.0",
    }
    comments = {
        "cylinder": "Core radius and virtual scene height, cm",
        "boh": "BOH line bases and displacement band, degrees",
        "detector": "Auto-capture distance and edge thresholds",
        "drill_hole": "Borehole survey (azimuth from North, dip negative down) and collar",
    }
    for name, section in ProjectConfig().to_dict().items():
        sample[name] = {"_comment": comments[name], **section}

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
