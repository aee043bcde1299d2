"""Multi-item writes that report partial failure instead of aborting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Sequence, TypeVar

from .errors import CashflowError, ValidationError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BatchResult(Generic[T]):
    """Counts plus the per-item error strings of a batch."""

    total: int
    noun: str = "items"
    results: List[Any] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return len(self.results)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        text = f"Updated {self.updated} of {self.total} {self.noun}"
        if self.errors:
            text += f"; {len(self.errors)} failed"
        return text


def run_batch(
    items: Sequence[T],
    action: Callable[[T], Any],
    *,
    name_of: Callable[[T], str],
    noun: str = "items",
) -> BatchResult[T]:
    """Apply ``action`` to every item, collecting failures as ``"<name>: <reason>"``."""

    if not items:
        raise ValidationError("items", "at least one item is required")

    outcome: BatchResult[T] = BatchResult(total=len(items), noun=noun)
    for item in items:
        try:
            outcome.results.append(action(item))
        except CashflowError as exc:
            LOGGER.warning("Batch item %s failed: %s", name_of(item), exc)
            outcome.errors.append(f"{name_of(item)}: {exc}")
    return outcome
