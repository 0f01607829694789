from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Generic, Iterator, List, Sequence, TypeVar

from tqdm import tqdm

from common.config import yaml_config

T = TypeVar("T")


@dataclass
class Batch(Generic[T]):
    index: int
    start: int  # offset of the first item in the original sequence
    items: List[T]


@dataclass
class BatchScheduler(Generic[T]):
    """
    Bounded-batch runner: queue the work as fixed-size batches, run one, then
    hand control back through `pause(delay)` before the next.
    """

    batch_size: int = field(default_factory=lambda: yaml_config.ingestion.batch_size)
    delay: float = field(default_factory=lambda: yaml_config.ingestion.batch_delay)
    pause: Callable[[float], None] = time.sleep
    show_progress: bool = False

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    def plan(self, items: Sequence[T]) -> Deque[Batch[T]]:
        return deque(
            Batch(index=n, start=i, items=list(items[i : i + self.batch_size]))
            for n, i in enumerate(range(0, len(items), self.batch_size))
        )

    def batches(self, items: Sequence[T]) -> Iterator[Batch[T]]:
        """Yield queued batches, pausing between them (not after the last)."""
        queue = self.plan(items)
        while queue:
            yield queue.popleft()
            if queue:
                self.pause(self.delay)

    def run(self, items: Sequence[T], handler: Callable[[Batch[T]], None], desc: str = "Batches") -> int:
        """Run `handler` over every batch. Returns the number of batches run."""
        done = 0
        with tqdm(total=len(items), desc=desc, disable=not self.show_progress) as bar:
            for batch in self.batches(items):
                handler(batch)
                done += 1
                bar.update(len(batch.items))
        return done
