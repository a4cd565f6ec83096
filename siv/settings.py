from pathlib import Path
from typing import Any, Dict, List, Optional
from .config import DEFAULT_CONFIG, load_config

DEFAULT_CONFIG_FILE = "siv.yml"

def _to_list_arg(value: Optional[List[str]]) -> Optional[List[str]]:
    """
    Normalize CLI exclude arg handling.
    argparse may give None, a list of single string, or multiple entries.
    We want either None or a flat list.
    """
    if value is None:
        return None
    # if user passed multiple --exclude arguments, flatten them
    flat = []
    for v in value:
        if isinstance(v, list):
            flat.extend(v)
        else:
            flat.append(v)
    return flat

def build_settings(args: Any, config_path: Optional[str]) -> Dict[str, Any]:
    """
    Build final settings using priority:
      DEFAULTS <- config file <- CLI args (non-None)
    Args:
      args: argparse.Namespace (CLI arguments)
      config_path: explicit config file path (string) or None
    Returns:
      dict with keys: directory, snapshot, report, algorithm, log, exclude
    """
    # 1) Load defaults and config file
    cfg_path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_FILE)
    final = DEFAULT_CONFIG.copy()
    final.update(load_config(cfg_path))  # config overrides defaults

    # 2) CLI overrides (only if provided / not None)
    for key in ("directory", "snapshot", "report", "algorithm", "log"):
        value = getattr(args, key, None)
        if value:
            final[key] = value

    # normalize exclude
    cli_excludes = None
    if hasattr(args, "exclude"):
        cli_excludes = _to_list_arg(args.exclude)

    if cli_excludes is not None:
        final["exclude"] = cli_excludes

    # ensure types: enforce exclude is a list
    final["exclude"] = list(final.get("exclude") or [])

    return final
