import json
from datetime import datetime, timezone
from pathlib import Path


def append_log(path: Path, event: dict):
    """Append one run event as a JSON line, stamped with the UTC time."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    event["timestamp"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, sort_keys=True) + "\n")
