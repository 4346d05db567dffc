"""In-process monitoring sink."""

from collections import deque
from typing import Deque, List, Optional

from rich.console import Console

from ..models import PipelineMetrics
from .base import MonitoringSink

console = Console()


class InMemoryMonitoringSink(MonitoringSink):
    """Keeps the most recent run metrics in memory."""

    def __init__(self, max_history: int = 100, verbose: bool = False) -> None:
        self.history: Deque[PipelineMetrics] = deque(maxlen=max_history)
        self.verbose = verbose

    def record(self, metrics: PipelineMetrics) -> None:
        """Store metrics for one run."""
        self.history.append(metrics)
        if self.verbose:
            console.print(
                f"[dim]Metrics: {metrics.articles_processed} articles in {metrics.response_time:.2f}s, "
                f"error rate {metrics.error_rate:.2f}[/dim]"
            )

    def latest(self) -> Optional[PipelineMetrics]:
        """Most recently recorded metrics."""
        return self.history[-1] if self.history else None

    def all(self) -> List[PipelineMetrics]:
        return list(self.history)
