"""Run artifact helpers."""

from __future__ import annotations

import json
import platform
import time
from pathlib import Path
from typing import Mapping


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset: Mapping[str, object],
    accuracy: float | None = None,
) -> str:
    """Write a manifest JSON file describing a training run."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset),
        "accuracy": accuracy,
        "environment": {"python": platform.python_version()},
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)
