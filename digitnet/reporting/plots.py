"""Training curves rendered with a headless matplotlib backend."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Tuple

_AXIS_LABELS = {"cost": ("Epoch", "Mean squared error"), "accuracy": ("Scored samples", "Accuracy")}


class PlotAdapter:
    """Record one metric per epoch and one per scoring step, then draw both.

    ``epoch_metric`` is read from ``on_epoch`` payloads (the batch cost by
    default) and ``step_metric`` from ``on_step`` payloads (the running
    accuracy emitted by :meth:`Network.test_accuracy`). Each non-empty curve
    gets its own panel in ``run_dir / filename``.
    """

    def __init__(
        self,
        run_dir: str | Path,
        enable_plots: bool = False,
        *,
        epoch_metric: str = "cost",
        step_metric: str | None = "accuracy",
        filename: str = "cost.png",
    ) -> None:
        self.enable_plots = enable_plots
        self.path = Path(run_dir) / filename
        self.epoch_metric = epoch_metric
        self.step_metric = step_metric
        self.curves: Dict[str, List[Tuple[int, float]]] = {epoch_metric: []}
        if step_metric:
            self.curves[step_metric] = []

    def _record(self, key: str | None, x: int, metrics: Mapping[str, float]) -> None:
        if self.enable_plots and key and key in metrics:
            self.curves[key].append((int(x), float(metrics[key])))

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._record(self.epoch_metric, epoch, metrics)

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        self._record(self.step_metric, step, metrics)

    def close(self) -> Path | None:
        """Write the figure and return its path, or ``None`` when nothing was drawn."""

        drawn = {name: points for name, points in self.curves.items() if points}
        if not self.enable_plots or not drawn:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        fig, axes = plt.subplots(1, len(drawn), figsize=(5 * len(drawn), 4), squeeze=False)
        for ax, (name, points) in zip(axes[0], drawn.items()):
            xs, ys = zip(*points)
            xlabel, ylabel = _AXIS_LABELS.get(name, ("Step", name))
            ax.plot(xs, ys)
            ax.set_xlabel(xlabel)
            ax.set_ylabel(ylabel)
            ax.set_title(name)
        fig.tight_layout()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(self.path)
        plt.close(fig)
        return self.path


__all__ = ["PlotAdapter"]
