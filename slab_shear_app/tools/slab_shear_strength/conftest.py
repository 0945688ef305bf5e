from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import pytest


@dataclass
class SequentialProvider:
    """Record ids "calc-1", "calc-2", ... stamped with a fixed clock."""

    clock: Callable[[], datetime]
    prefix: str = "calc"
    _counter: int = field(default=0, init=False, repr=False)

    def new_id(self) -> str:
        self._counter += 1
        return f"{self.prefix}-{self._counter}"

    def now(self) -> datetime:
        return self.clock()


@pytest.fixture
def clock() -> datetime:
    return datetime(2024, 3, 5, 14, 30, 15)


@pytest.fixture
def provider(clock) -> SequentialProvider:
    return SequentialProvider(clock=lambda: clock)
