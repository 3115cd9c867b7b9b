"""Execution context shared by every unit of one flow invocation."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from typing import Any


class WorkContext(MutableMapping[str, Any]):
    """Mutable key/value state threaded through a flow.

    The same instance is handed to every unit (and every nested flow) of an
    invocation. It carries no locking: units running concurrently in a
    parallel flow that write the same keys race, and must coordinate
    themselves or use :class:`LockedWorkContext`.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of the current contents."""

        return dict(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


class LockedWorkContext(WorkContext):
    """A context whose single operations are serialised by a re-entrant lock.

    Read-modify-write sequences still need ``with ctx.locked(): ...``.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        super().__init__(initial)
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[LockedWorkContext]:
        with self._lock:
            yield self

    def __getitem__(self, key: str) -> Any:
        with self._lock:
            return super().__getitem__(key)

    def __setitem__(self, key: str, value: Any) -> None:
        with self._lock:
            super().__setitem__(key, value)

    def __delitem__(self, key: str) -> None:
        with self._lock:
            super().__delitem__(key)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return super().__iter__()

    def __len__(self) -> int:
        with self._lock:
            return super().__len__()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return super().snapshot()
