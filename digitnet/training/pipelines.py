"""Pipeline assembly: config -> dataset -> network -> training -> artifacts."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping

from ..core.activations import Activation
from ..core.errors import ShapeMismatchError
from ..core.network import Network
from ..core.types import RunResult
from ..data.fixtures import build_fixture
from ..data.idx import NUM_CLASSES, IdxDataset
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from ..reporting.plots import PlotAdapter
from ..reporting.progress import ConsoleProgress

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist-default": {
        "data": {"images": None, "labels": None, "max_items": 100000},
        "model": {"hidden": [100], "activation": "sigmoid", "input_model": None},
        "train": {
            "epochs": 10000,
            "batch_size": 5,
            "learning_rate": 1.0,
            "seed": None,
            "report_every": 100,
            "output_model": None,
            "run_dir": None,
            "enable_plots": False,
        },
    },
    "fixture-smoke": {
        "data": {"fixture": {"count": 50, "rows": 8, "cols": 8, "seed": 0}, "max_items": None},
        "model": {"hidden": [16], "activation": "sigmoid", "input_model": None},
        "train": {
            "epochs": 20,
            "batch_size": 10,
            "learning_rate": 0.5,
            "seed": 0,
            "report_every": 10,
            "output_model": None,
            "run_dir": "runs/fixture-smoke",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Load a JSON or YAML mapping from ``path``."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    text = path.read_text()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into a copy of ``base``."""

    merged = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                base_name = str(data.get("extends", "mnist-default"))
                if base_name not in _PRESETS:
                    raise KeyError(f"Preset {file.name} extends unknown preset {base_name!r}")
                body = {k: v for k, v in data.items() if k != "extends"}
                found[file.stem] = merge_config(_PRESETS[base_name], body)
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> dict:
    available = presets()
    try:
        return dict(available[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def resolve_dataset(data_cfg: Mapping[str, object], run_dir: Path | None) -> IdxDataset:
    fixture = data_cfg.get("fixture")
    if fixture:
        options = dict(fixture) if isinstance(fixture, Mapping) else {}
        directory = Path(options.pop("directory", (run_dir or Path("runs")) / "fixture"))
        images, labels = build_fixture(directory, **options)
        return IdxDataset(images, labels)
    images, labels = data_cfg.get("images"), data_cfg.get("labels")
    if not images or not labels:
        raise ValueError("data.images and data.labels are required unless data.fixture is set")
    return IdxDataset(str(images), str(labels))


def build_network(
    model_cfg: Mapping[str, object],
    train_cfg: Mapping[str, object],
    input_size: int,
    callbacks: List[object],
) -> Network:
    activation = Activation.from_name(str(model_cfg.get("activation") or "sigmoid"))
    learning_rate = float(train_cfg.get("learning_rate", 1.0))
    input_model = model_cfg.get("input_model")
    if input_model:
        print(f"Loading model from: {input_model}...")
        network = Network.load_from_file(
            str(input_model), learning_rate, activation, callbacks=callbacks
        )
        if network.sizes[0] != input_size:
            raise ShapeMismatchError("load", (input_size,), (network.sizes[0],))
        return network
    sizes = [input_size] + [int(h) for h in model_cfg.get("hidden", [])] + [NUM_CLASSES]
    seed = train_cfg.get("seed")
    return Network(
        sizes,
        learning_rate,
        activation,
        seed=int(seed) if seed is not None else None,
        callbacks=callbacks,
    )


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config.get("data", {}))
    model_cfg = dict(config.get("model", {}))
    train_cfg = dict(config.get("train", {}))

    run_dir = Path(train_cfg["run_dir"]) if train_cfg.get("run_dir") else None
    dataset = resolve_dataset(data_cfg, run_dir)
    _print_dataset_summary(dataset)

    max_items = data_cfg.get("max_items")
    print("Loading the training data...")
    inputs, targets = dataset.load(int(max_items) if max_items is not None else None)

    progress = ConsoleProgress(every=int(train_cfg.get("report_every", 100)))
    capture = MetricsCapture()
    callbacks: List[object] = [progress, capture]
    jsonl: JsonlSink | None = None
    plots: PlotAdapter | None = None
    if run_dir is not None:
        seed = train_cfg.get("seed")
        jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
        plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
        callbacks.extend([jsonl, CsvSink(run_dir / "metrics.csv"), plots])

    network = build_network(model_cfg, train_cfg, dataset.header.pixels_per_image, callbacks)
    epochs = int(train_cfg.get("epochs", 1))
    batch_size = train_cfg.get("batch_size")
    _print_startup_summary(network, epochs, batch_size)

    print("Starting the learning process...")
    if batch_size:
        network.train_with_batch(inputs, targets, epochs, int(batch_size))
    else:
        network.train(inputs, targets, epochs)

    accuracy = network.test_accuracy(inputs, targets)
    progress.summary()
    if plots is not None:
        plots.close()

    model_path = ""
    output_model = train_cfg.get("output_model")
    if output_model:
        model_path = str(network.save(str(output_model)))
        print(f"File saved at location: {model_path}")

    manifest_path = ""
    if run_dir is not None:
        manifest_path = write_manifest(
            run_dir / "manifest.json",
            config=json.loads(json.dumps(config, default=str)),
            dataset={
                "images": str(dataset.images_path),
                "labels": str(dataset.labels_path),
                **dataset.header.as_dict(),
                "samples": len(inputs),
            },
            accuracy=accuracy,
        )

    return RunResult(
        epochs=len(capture.history),
        accuracy=accuracy,
        model_path=model_path,
        metrics_path=str(jsonl.path) if jsonl is not None else "",
        manifest_path=manifest_path,
    )


def _print_dataset_summary(dataset: IdxDataset) -> None:
    header = dataset.header
    print(
        "Images:\n"
        f"  Magic number: {header.image_magic_number} | Count: {header.image_count} | "
        f"Size: {header.cols_count}x{header.rows_count}"
    )
    print(f"Labels:\n  Magic number: {header.label_magic_number} | Count: {header.label_count}")


def _print_startup_summary(network: Network, epochs: int, batch_size: object) -> None:
    print("=== DigitNet run ===")
    print(f"Layers        : {network.sizes}")
    print(f"Activation    : {network.activation.value}")
    print(f"Learning rate : {network.learning_rate}")
    print(f"Epochs        : {epochs}")
    print(f"Batch size    : {batch_size or 'full'}")
    print("====================")


__all__ = [
    "run_pipeline",
    "load_preset",
    "presets",
    "merge_config",
    "read_config_file",
    "resolve_dataset",
    "build_network",
]
