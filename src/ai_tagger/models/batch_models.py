"""
Batch job options and outcome.

Frozen dataclasses: options are fixed per invocation and the outcome is
returned once and never mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class BatchOptions:
    """
    Pacing and reporting options for one batch run.
    
    Attributes:
        batch_size: Items per batch (batches run strictly one after another)
        item_delay_ms: Pause between items of the same batch
        batch_delay_ms: Pause between batches
        progress_interval_ms: Minimum spacing between progress notifications
        silent: Suppress progress notifications entirely
    """

    batch_size: int = 5
    item_delay_ms: int = 200
    batch_delay_ms: int = 1000
    progress_interval_ms: int = 15000
    silent: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        for name in ("item_delay_ms", "batch_delay_ms", "progress_interval_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


@dataclass(frozen=True)
class BatchItemError:
    """One failed item: the caller's reference and the failure message."""

    item: Any
    message: str


@dataclass(frozen=True)
class BatchOutcome:
    """
    Summary of a batch run.
    
    ``processed_count`` counts attempted items (successes and failures).
    It is lower than the number of items only when the run was cancelled.
    """

    processed_count: int
    success_count: int
    errors: list[BatchItemError] = field(default_factory=list)
    cancelled: bool = False

    def __post_init__(self) -> None:
        if self.success_count + len(self.errors) != self.processed_count:
            raise ValueError("success_count + len(errors) must equal processed_count")

    @property
    def success(self) -> bool:
        return not self.errors
