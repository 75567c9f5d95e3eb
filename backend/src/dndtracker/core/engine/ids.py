from __future__ import annotations

import itertools
from typing import Iterable


class IdGenerator:
    """
    Выдаёт id вида "c_1", "c_2", ...: строго по возрастанию, без повторов
    (даже после удаления записи).
    """

    def __init__(self, prefix: str = "c_", start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._last = start - 1

    def next(self) -> str:
        self._last = next(self._counter)
        return f"{self.prefix}{self._last}"

    @property
    def last(self) -> int:
        return self._last

    def advance_past(self, ids: Iterable[str]) -> None:
        """После восстановления снапшота: не выдавать id, которые уже заняты."""
        highest = self._last
        for raw in ids:
            tail = str(raw)[len(self.prefix) :]
            if str(raw).startswith(self.prefix) and tail.isdigit():
                highest = max(highest, int(tail))
        if highest > self._last:
            self._counter = itertools.count(highest + 1)
            self._last = highest


# один генератор на процесс
DEFAULT_IDS = IdGenerator()
