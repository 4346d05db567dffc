"""Time-bounded fan-out of per-item stage work."""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

from rich.console import Console

from ..errors import StageTimeoutError
from .models import Fallback, PipelineError, StageName, Success

console = Console()

T = TypeVar("T")
ItemT = TypeVar("ItemT")

Outcome = Union[Success, Fallback]


class Deadline:
    """Shared time budget for one stage."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.seconds = seconds
        self.clock = clock
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.expires_at - self.clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0


class StageExecutor:
    """Runs coroutine factories in batches against a per-stage deadline."""

    def __init__(
        self,
        batch_size: int = 10,
        max_processing_time: float = 30.0,
        parallel: bool = True,
        trace: bool = False,
    ) -> None:
        """
        Initialize stage executor.

        Args:
            batch_size: Tasks started together in parallel mode
            max_processing_time: Budget in seconds shared by every task of a stage
            parallel: Run batches concurrently, otherwise one task at a time
            trace: Print per-task lines
        """
        self.batch_size = max(1, batch_size)
        self.max_processing_time = max_processing_time
        self.parallel = parallel
        self.trace = trace

    async def run(
        self,
        factories: Sequence[Callable[[], Awaitable[T]]],
        stage: StageName,
    ) -> List[T]:
        """
        Run tasks and return the results that completed successfully.

        Failed or unfinished tasks are dropped, never retried. Results keep
        the order of the factories they came from.
        """
        deadline = Deadline(self.max_processing_time)
        if self.parallel:
            return await self._run_batches(factories, stage, deadline)
        return await self._run_sequential(factories, stage, deadline)

    async def _run_batches(
        self,
        factories: Sequence[Callable[[], Awaitable[T]]],
        stage: StageName,
        deadline: Deadline,
    ) -> List[T]:
        results: List[T] = []

        for start in range(0, len(factories), self.batch_size):
            if deadline.expired:
                console.print(
                    f"[yellow]{stage.value}: budget exhausted, "
                    f"skipping {len(factories) - start} remaining tasks[/yellow]"
                )
                break

            batch = [asyncio.ensure_future(factory()) for factory in factories[start:start + self.batch_size]]
            done, pending = await asyncio.wait(batch, timeout=deadline.remaining())

            if pending:
                # The whole batch is discarded, including tasks that already finished
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                for task in done:
                    task.exception()
                console.print(
                    f"[yellow]{stage.value}: batch timed out after {self.max_processing_time:.1f}s, "
                    f"discarding {len(batch)} results[/yellow]"
                )
                break

            for task in batch:
                error = task.exception()
                if error is not None:
                    console.print(f"[yellow]{stage.value}: task failed: {error}[/yellow]")
                    continue
                results.append(task.result())

            if self.trace:
                console.print(f"[dim]{stage.value}: batch of {len(batch)} done[/dim]")

        return results

    async def _run_sequential(
        self,
        factories: Sequence[Callable[[], Awaitable[T]]],
        stage: StageName,
        deadline: Deadline,
    ) -> List[T]:
        results: List[T] = []

        for i, factory in enumerate(factories):
            if deadline.expired:
                console.print(
                    f"[yellow]{stage.value}: budget exhausted, "
                    f"skipping {len(factories) - i} remaining tasks[/yellow]"
                )
                break
            try:
                results.append(await asyncio.wait_for(factory(), timeout=deadline.remaining()))
            except asyncio.TimeoutError:
                console.print(f"[yellow]{stage.value}: task {i} timed out[/yellow]")
            except Exception as e:
                console.print(f"[yellow]{stage.value}: task {i} failed: {e}[/yellow]")

        return results

    async def map_with_fallback(
        self,
        items: Sequence[ItemT],
        stage_fn: Callable[[ItemT], Awaitable[T]],
        fallback_fn: Callable[[ItemT, Exception], T],
        stage: StageName,
        errors: List[PipelineError],
        key: Optional[Callable[[ItemT], Optional[str]]] = None,
    ) -> List[Outcome]:
        """
        Apply stage_fn to every item, substituting fallback_fn on failure.

        Each failure appends a recoverable PipelineError to errors. Items
        dropped by a timeout get one StageTimeoutError each and no outcome.

        Returns:
            Success/Fallback outcomes sorted by input index
        """
        key = key or (lambda item: getattr(item, "id", None))
        failed = set()

        def make_task(index: int, item: ItemT) -> Callable[[], Awaitable[Outcome]]:
            async def task() -> Outcome:
                try:
                    return Success(index=index, value=await stage_fn(item))
                except Exception as e:
                    failed.add(index)
                    error = PipelineError(stage=stage, cause=e, article_id=key(item), recoverable=True)
                    errors.append(error)
                    if self.trace:
                        console.print(f"[dim]{stage.value}: fallback for {key(item)}: {e}[/dim]")
                    return Fallback(index=index, value=fallback_fn(item, e), error=error)

            return task

        outcomes = await self.run([make_task(i, item) for i, item in enumerate(items)], stage)

        finished = {outcome.index for outcome in outcomes}
        for index, item in enumerate(items):
            if index not in finished and index not in failed:
                errors.append(
                    PipelineError(
                        stage=stage,
                        cause=StageTimeoutError(stage.value, self.max_processing_time),
                        article_id=key(item),
                        recoverable=True,
                    )
                )

        return sorted(outcomes, key=lambda outcome: outcome.index)
