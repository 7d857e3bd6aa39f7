"""
JSON-based project configuration for auto_orient.

Allows overriding default orientation parameters through:
1. .orient.json file in the STL file's directory
2. .orient.json file in the current directory
3. ~/.orient.json in the user's home directory
4. Explicit config file path via CLI (searched first)

Example .orient.json:
{
    "orientation": {
        "overhang_angle": 50.0,
        "first_lay_h": 0.25,
        "min_volume": true
    },
    "batch": {
        "pattern": "*.stl",
        "recursive": false,
        "parallel": true,
        "max_workers": 4
    },
    "output": {
        "prefix": "",
        "suffix": "_oriented",
        "output_dir": "oriented",
        "write_report": true
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from auto_orient.orientation.params import OrientParams

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILENAME = ".orient.json"


@dataclass
class BatchConfig:
    """Folder batch settings.

    ``parallel`` and ``max_workers`` left as None keep the values of the
    orientation section.
    """
    pattern: str = "*.stl"
    recursive: bool = False
    parallel: Optional[bool] = None
    max_workers: Optional[int] = None


@dataclass
class OutputConfig:
    """Output file configuration."""
    prefix: str = ""
    suffix: str = "_oriented"
    output_dir: str = ""
    write_report: bool = True


def _update_section(section: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if key in {f.name for f in fields(section)}:
            setattr(section, key, value)


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    orientation: OrientParams = field(default_factory=OrientParams)
    batch: BatchConfig = field(default_factory=BatchConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

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

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary.

        Unknown keys (including ``_comment`` entries) are ignored.

        Raises:
            ValueError: if the orientation section holds invalid values
        """
        config = cls()

        if 'orientation' in data:
            config.orientation = OrientParams.from_dict(data['orientation'])

        if 'batch' in data:
            _update_section(config.batch, data['batch'])

        if 'output' in data:
            _update_section(config.output, data['output'])

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
            ValueError: If orientation parameters are invalid
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)

    def orient_params(self) -> OrientParams:
        """Orientation parameters with the batch pool settings applied.

        Raises:
            ValueError: if the batch pool settings are invalid
        """
        pool = {
            key: value for key, value in (
                ("parallel", self.batch.parallel),
                ("max_workers", self.batch.max_workers),
            ) if value is not None
        }
        return self.orientation.with_overrides(**pool) if pool else self.orientation


def find_config_file(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find configuration file using search hierarchy.

    Search order:
    1. Explicit config path (if provided)
    2. .orient.json in STL file's directory
    3. .orient.json in current working directory
    4. ~/.orient.json in user's home directory

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if stl_path:
        candidates.append(Path(stl_path).parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration with fallback to defaults.

    Unreadable or malformed files are logged and replaced by defaults;
    invalid parameter values raise ValueError.
    """
    config_path = find_config_file(stl_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations, with override taking precedence.

    Only non-default values from override are applied.
    """
    merged = ProjectConfig.from_dict(base.to_dict())

    defaults = OrientParams()
    changes = {
        key: value for key, value in override.orientation.to_dict().items()
        if value != getattr(defaults, key)
    }
    if changes:
        merged.orientation = merged.orientation.with_overrides(**changes)

    for name, default in (('batch', BatchConfig()), ('output', OutputConfig())):
        for key, value in asdict(getattr(override, name)).items():
            if value != getattr(default, key):
                setattr(getattr(merged, name), key, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> Path:
    """Create a sample configuration file with documentation."""
    sample = {
        "_comment": "Auto-orientation configuration",
        "_version": "1.0",
        "orientation": {
            "_comment": "Overhang threshold, layer height and cost-model weights",
            **OrientParams().to_dict(),
        },
        "batch": {
            "_comment": "Folder batch settings; parallel and max_workers here override the orientation section",
            **asdict(BatchConfig()),
        },
        "output": {
            "_comment": "Output file settings",
            **asdict(OutputConfig()),
        },
    }
    # Unset pool overrides fall back to the orientation section
    del sample["batch"]["parallel"]
    del sample["batch"]["max_workers"]

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
    return path
