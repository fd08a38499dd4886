"""
Config Loader - Caricamento file YAML di configurazione.
"""

import yaml
from pathlib import Path
from typing import Dict, Any


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        config_path: Path to the YAML file

    Returns:
        Dictionary with the configuration (empty for an empty file)

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the file is not valid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML file {config_path}: {e}")

    return config or {}


def load_all_configs(config_dir: str = "config") -> Dict[str, Dict[str, Any]]:
    """
    Load every configuration file of the config/ directory.

    Args:
        config_dir: Directory containing the configuration files

    Returns:
        Dictionary with all configurations:
        {
            'fusion_params': {...},
            'calibration': {...}
        }
    """
    config_path = Path(config_dir)

    configs = {}
    config_files = {
        'fusion_params': 'fusion_params.yaml',
        'calibration': 'calibration.yaml',
    }

    for key, filename in config_files.items():
        file_path = config_path / filename
        if file_path.exists():
            configs[key] = load_config(str(file_path))
        else:
            print(f"Warning: configuration file {filename} not found – using defaults")
            configs[key] = {}

    return configs


def get_nested_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from a dictionary using a dot-notation path.

    Args:
        config: Configuration dictionary
        key_path: Dot-notation path (e.g. "clustering.shrink_factor")
        default: Value returned if the key does not exist

    Returns:
        Found value or default

    Example:
        >>> config = {'clustering': {'shrink_factor': 0.1}}
        >>> get_nested_value(config, 'clustering.shrink_factor')
        0.1
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value
