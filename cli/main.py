"""Command line entry point for DigitNet.

Usage::

    python -m cli.main train path/to/images path/to/labels
    python -m cli.main path/to/image
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Callable, Iterable

from digitnet.core.errors import DigitNetError
from digitnet.training import pipelines

USAGE = (
    "Invalid command :\n"
    "  python -m cli.main train path/to/images_dataset path/to/labels_dataset\n"
    "  python -m cli.main path/to/image"
)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description="Train and evaluate a digit classifier")
    parser.add_argument(
        "command",
        nargs="*",
        help="`train <images> <labels>` or a single image path",
    )
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mnist-default",
        help="Preset configuration to start from",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--epochs", type=int, help="Number of epochs (one batch each)")
    parser.add_argument("--batch-size", type=int, help="Samples per batch")
    parser.add_argument(
        "--full-batch",
        action="store_true",
        help="Use the whole dataset as a single batch every epoch",
    )
    parser.add_argument("--learning-rate", type=float, help="Gradient descent step size")
    parser.add_argument("--hidden", help="Comma separated hidden layer sizes, e.g. 100,50")
    parser.add_argument("--activation", choices=["sigmoid", "leaky_relu"])
    parser.add_argument("--max-items", type=int, help="Read at most this many samples")
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation")
    parser.add_argument("--input-model", help="Model file to start from")
    parser.add_argument("--output-model", help="Where to save the trained model")
    parser.add_argument("--run-dir", help="Directory for metrics and the run manifest")
    parser.add_argument("--enable-plots", action="store_true", help="Save a cost curve")
    parser.add_argument(
        "--no-prompt",
        action="store_true",
        help="Do not ask for model paths interactively",
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def ask_question(question: str, reader: Callable[[str], str] = input) -> str:
    print(question)
    return reader("").rstrip("\r\n").strip()


def ask_model_in_out(reader: Callable[[str], str] = input) -> tuple[str, str]:
    input_path = ask_question("Input model path (enter if new one): ", reader)
    output_path = ask_question("Output model path (enter if no output): ", reader)
    return input_path, output_path


def build_config(args: argparse.Namespace, images: str, labels: str) -> dict:
    config = pipelines.load_preset(args.preset)
    if args.config:
        config = pipelines.merge_config(config, pipelines.read_config_file(args.config))

    data_cfg = config.setdefault("data", {})
    model_cfg = config.setdefault("model", {})
    train_cfg = config.setdefault("train", {})
    data_cfg.pop("fixture", None)
    data_cfg["images"] = images
    data_cfg["labels"] = labels

    if args.max_items is not None:
        data_cfg["max_items"] = args.max_items
    if args.hidden is not None:
        model_cfg["hidden"] = [int(h) for h in args.hidden.split(",") if h.strip()]
    if args.activation is not None:
        model_cfg["activation"] = args.activation
    if args.input_model is not None:
        model_cfg["input_model"] = args.input_model
    if args.epochs is not None:
        train_cfg["epochs"] = args.epochs
    if args.batch_size is not None:
        train_cfg["batch_size"] = args.batch_size
    if args.full_batch:
        train_cfg["batch_size"] = None
    if args.learning_rate is not None:
        train_cfg["learning_rate"] = args.learning_rate
    if args.seed is not None:
        train_cfg["seed"] = args.seed
    if args.output_model is not None:
        train_cfg["output_model"] = args.output_model
    if args.run_dir is not None:
        train_cfg["run_dir"] = args.run_dir
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    return config


def run_train(
    args: argparse.Namespace,
    images: str,
    labels: str,
    reader: Callable[[str], str] = input,
):
    print("Opening the training set...")
    config = build_config(args, images, labels)
    if not args.no_prompt and args.input_model is None and args.output_model is None:
        input_model, output_model = ask_model_in_out(reader)
        config["model"]["input_model"] = input_model or None
        config["train"]["output_model"] = output_model or None

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    print("Getting the dataset meta...")
    try:
        result = pipelines.run_pipeline(config)
    except (DigitNetError, OSError, ValueError) as exc:
        raise SystemExit(f"error: {exc}") from exc
    print(
        json.dumps(
            {
                "accuracy": result.accuracy,
                "epochs": result.epochs,
                "model": result.model_path,
                "metrics": result.metrics_path,
                "manifest": result.manifest_path,
            },
            sort_keys=True,
        )
    )
    return result


def main(argv: Iterable[str] | None = None, reader: Callable[[str], str] = input) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    command = list(args.command)
    if len(command) == 3 and command[0] == "train":
        run_train(args, command[1], command[2], reader)
    elif len(command) == 1:
        # Single-image recognition is not wired up yet; only the entry point exists.
        print("Opening the image...")
    else:
        print(USAGE)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
