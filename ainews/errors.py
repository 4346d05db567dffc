"""Exception types raised inside the pipeline."""

from typing import List, Optional


class AINewsError(Exception):
    """Base class for pipeline errors."""


class StageTimeoutError(AINewsError):
    """A task did not finish before the stage deadline."""

    def __init__(self, stage: str, budget: float) -> None:
        super().__init__(f"{stage} timeout after {budget:.1f}s")
        self.stage = stage
        self.budget = budget


class ModelsExhaustedError(AINewsError):
    """Every model candidate failed."""

    def __init__(self, models: List[str], last_error: Optional[BaseException] = None) -> None:
        super().__init__(f"All models failed ({', '.join(models)}): {last_error}")
        self.models = models
        self.last_error = last_error
