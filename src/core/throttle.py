"""Fixed-delay pacing between bulk mutations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.models.config import Config


@dataclass(frozen=True)
class Throttle:
    """Cooperative pacing policy for the bulk processor.

    pause_item() runs between two items of the same micro-batch and
    pause_batch() between two micro-batches. There is no adaptive backoff:
    the delays are constant for the lifetime of the policy.
    """

    item_delay_seconds: float = 0.05
    batch_delay_seconds: float = 0.1
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    @classmethod
    def from_config(cls, config: Config) -> Throttle:
        return cls(
            item_delay_seconds=config.item_delay_ms / 1000,
            batch_delay_seconds=config.batch_delay_ms / 1000,
        )

    @classmethod
    def disabled(cls) -> Throttle:
        """A throttle that never sleeps."""
        return cls(item_delay_seconds=0.0, batch_delay_seconds=0.0)

    def pause_item(self) -> None:
        if self.item_delay_seconds > 0:
            self.sleep(self.item_delay_seconds)

    def pause_batch(self) -> None:
        if self.batch_delay_seconds > 0:
            self.sleep(self.batch_delay_seconds)
