"""
Batch orchestrator.

Applies an async per-item operation across an ordered worklist:

- items are partitioned into fixed-size batches, order preserved
- batches and the items inside them run strictly one at a time
- a short pause separates items of a batch, a longer one separates batches
- one item's failure is recorded and the run moves on
- ``cancel()`` stops new items from starting; an item already running
  finishes (or times out) on its own
- progress is reported at most once per interval, plus once at the end
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, TypeVar

import structlog

from ai_tagger.models.batch_models import BatchItemError, BatchOptions, BatchOutcome
from ai_tagger.monitoring.metrics import batch_items_total


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ProgressNotifier(Protocol):
    """Fire-and-forget progress sink supplied by the host."""

    def notify(self, message: str) -> None: ...


class LogProgressNotifier:
    """Notifier that writes progress messages to the structured log."""

    def notify(self, message: str) -> None:
        logger.info("Batch progress", message=message)


def progress_message(processed: int, total: int) -> str:
    return f"Progress: {processed}/{total} items processed"


class BatchOrchestrator:
    """
    Sequential, paced batch runner.

    One orchestrator serves one run: once cancelled it stays cancelled.
    """

    def __init__(
        self,
        options: Optional[BatchOptions] = None,
        notifier: Optional[ProgressNotifier] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            options: Pacing and reporting options (defaults when omitted)
            notifier: Progress sink; no notifications when omitted
            clock: Monotonic clock in seconds (injectable for tests)
            sleep: Async sleep used for pacing delays (injectable for tests)
        """
        self.options = options or BatchOptions()
        self.notifier = notifier
        self._clock = clock
        self._sleep = sleep
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop starting new items. Takes effect at the next item boundary."""
        if not self._cancelled:
            logger.info("Batch cancellation requested")
        self._cancelled = True

    async def run(
        self,
        items: Sequence[T],
        processor: Callable[[T], Awaitable[Any]],
    ) -> BatchOutcome:
        """
        Run ``processor`` over ``items``.

        An item succeeds when ``processor`` returns without raising.

        Args:
            items: Ordered worklist (item references)
            processor: Async operation applied to each item

        Returns:
            BatchOutcome with counts, per-item errors and the cancelled flag
        """
        options = self.options
        total = len(items)
        batches = [
            items[start:start + options.batch_size]
            for start in range(0, total, options.batch_size)
        ]

        processed = 0
        succeeded = 0
        errors: list[BatchItemError] = []
        last_notified = self._clock()

        logger.info(
            "Batch run started",
            total_items=total,
            batches=len(batches),
            batch_size=options.batch_size,
        )

        for batch_index, batch in enumerate(batches):
            for item_index, item in enumerate(batch):
                if self._cancelled:
                    break

                try:
                    await processor(item)
                except Exception as e:
                    message = str(e) or type(e).__name__
                    errors.append(BatchItemError(item=item, message=message))
                    batch_items_total.labels(outcome="failed").inc()
                    logger.warning(
                        "Batch item failed",
                        item=str(item),
                        error_type=type(e).__name__,
                        error=message,
                    )
                else:
                    succeeded += 1
                    batch_items_total.labels(outcome="succeeded").inc()
                processed += 1

                now = self._clock()
                is_final = processed == total
                if not options.silent and self.notifier is not None and (
                    is_final or (now - last_notified) * 1000 >= options.progress_interval_ms
                ):
                    self.notifier.notify(progress_message(processed, total))
                    last_notified = now

                if self._cancelled:
                    break
                if item_index < len(batch) - 1 and options.item_delay_ms:
                    await self._sleep(options.item_delay_ms / 1000)

            if self._cancelled:
                break
            if batch_index < len(batches) - 1 and options.batch_delay_ms:
                await self._sleep(options.batch_delay_ms / 1000)

        skipped = total - processed
        if skipped:
            batch_items_total.labels(outcome="skipped").inc(skipped)

        outcome = BatchOutcome(
            processed_count=processed,
            success_count=succeeded,
            errors=errors,
            cancelled=self._cancelled and processed < total,
        )
        logger.info(
            "Batch run finished",
            processed=processed,
            succeeded=succeeded,
            failed=len(errors),
            skipped=skipped,
            cancelled=outcome.cancelled,
        )
        return outcome
