import json
from pathlib import Path

from digitnet.training import pipelines


def test_pipeline_produces_artifacts(tmp_path):
    config = {
        "data": {"fixture": {"count": 20, "rows": 3, "cols": 3, "seed": 4}},
        "model": {"hidden": [5], "activation": "leaky_relu"},
        "train": {
            "epochs": 3,
            "batch_size": 4,
            "learning_rate": 0.001,
            "seed": 11,
            "run_dir": str(tmp_path / "run"),
        },
    }

    result = pipelines.run_pipeline(config)
    assert Path(result.metrics_path).exists()
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 11
    assert manifest["dataset"]["samples"] == 20
    assert Path(manifest["dataset"]["images"]).parent == tmp_path / "run" / "fixture"
    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2, 3]
    assert all(r["seed"] == 11 for r in records)
