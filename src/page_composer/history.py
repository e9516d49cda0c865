from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .models.edit import Transform
from .models.section import PageNode, SectionNode
from .transforms import TransformEngine

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

Snapshot = tuple[SectionNode, ...]


def _freeze(sections: Iterable[SectionNode]) -> Snapshot:
    return tuple(section.model_copy(deep=True) for section in sections)


def _thaw(snapshot: Snapshot) -> list[SectionNode]:
    return [section.model_copy(deep=True) for section in snapshot]


class HistoryManager:
    """Linear undo/redo over section-list snapshots.

    ``apply`` after an ``undo`` discards the redo branch. Once ``limit``
    snapshots are held the oldest one is dropped. Snapshots are copied on
    the way in and on the way out, so callers can never reach into stored
    history.

    Not safe for concurrent use; the owning session serialises access.
    """

    def __init__(
        self,
        initial: Sequence[SectionNode] = (),
        *,
        engine: TransformEngine | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._engine = engine or TransformEngine()
        self._limit = limit
        self._entries: list[Snapshot] = [_freeze(initial)]
        self._cursor = 0

    @classmethod
    def from_page(cls, page: PageNode, **kwargs) -> "HistoryManager":
        return cls(page.sections, **kwargs)

    @property
    def cursor(self) -> int:
        return self._cursor

    def current(self) -> list[SectionNode]:
        return _thaw(self._entries[self._cursor])

    def apply(self, transforms: Transform | Iterable[Transform]) -> list[SectionNode]:
        if isinstance(transforms, Transform):
            transforms = [transforms]
        state = self._engine.apply(transforms, self._entries[self._cursor])
        self._push(_freeze(state))
        return self.current()

    def undo(self) -> list[SectionNode] | None:
        if self._cursor == 0:
            return None
        self._cursor -= 1
        return self.current()

    def redo(self) -> list[SectionNode] | None:
        if self._cursor >= len(self._entries) - 1:
            return None
        self._cursor += 1
        return self.current()

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def _push(self, snapshot: Snapshot) -> None:
        del self._entries[self._cursor + 1 :]
        self._entries.append(snapshot)
        overflow = len(self._entries) - self._limit
        if overflow > 0:
            del self._entries[:overflow]
            logger.debug("Dropped oldest history entries", extra={"dropped": overflow})
        self._cursor = len(self._entries) - 1


__all__ = ["HistoryManager", "DEFAULT_HISTORY_LIMIT"]
