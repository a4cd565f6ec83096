import yaml
from pathlib import Path

from .errors import SivError

DEFAULT_CONFIG = {
    "directory": None,
    "snapshot": None,
    "report": None,
    "algorithm": "sha1",
    "log": "siv_log.jsonl",
    "exclude": []
}

def load_config(path: Path) -> dict:
    # If config file missing → return defaults
    if not path.exists():
        return DEFAULT_CONFIG.copy()

    # Load YAML
    with path.open("r", encoding="utf-8") as f:
        try:
            user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SivError(f"Invalid config file {path}: {e}") from e

    if not isinstance(user_config, dict):
        raise SivError(f"Config file {path} must contain a mapping")

    unknown = set(user_config) - set(DEFAULT_CONFIG)
    if unknown:
        raise SivError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")

    # Merge defaults with user config
    final_config = DEFAULT_CONFIG.copy()
    final_config.update(user_config)

    return final_config
