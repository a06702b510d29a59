"""Console progress reporting."""

from __future__ import annotations

import sys
from typing import Mapping, TextIO


class ConsoleProgress:
    """Print a line every ``every`` epochs and the running accuracy while scoring."""

    def __init__(self, every: int = 100, stream: TextIO | None = None) -> None:
        self.every = max(1, int(every))
        self.stream = stream or sys.stdout
        self._last_accuracy: float | None = None

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        total = int(metrics.get("total_epochs", 0))
        if epoch % self.every and epoch != total:
            return
        cost = float(metrics.get("cost", 0.0))
        print(f"epoch {epoch}/{total} cost={cost:.6f}", file=self.stream)

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        if "accuracy" in metrics:
            self._last_accuracy = float(metrics["accuracy"])

    def summary(self) -> None:
        if self._last_accuracy is not None:
            print(f"acc: {self._last_accuracy * 100.0:.2f}%", file=self.stream)


__all__ = ["ConsoleProgress"]
