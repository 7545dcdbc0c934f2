"""Per-practitioner serialisation of check-then-write sequences.

The lock only covers requests handled by this process; the partial unique
index on active slots is what protects writers in other processes.
Entries live only while some request holds a reference to them.
"""

import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock


class _PractitionerLock:
    # threading.Lock itself cannot be weakly referenced.
    __slots__ = ('lock', '__weakref__')

    def __init__(self) -> None:
        self.lock = Lock()


_registry_lock = Lock()
_practitioner_locks: 'weakref.WeakValueDictionary[str, _PractitionerLock]' = weakref.WeakValueDictionary()


def _lock_for(practitioner_id: str) -> _PractitionerLock:
    with _registry_lock:
        entry = _practitioner_locks.get(practitioner_id)
        if entry is None:
            entry = _practitioner_locks[practitioner_id] = _PractitionerLock()
        return entry


def registered_lock_count() -> int:
    with _registry_lock:
        return len(_practitioner_locks)


@contextmanager
def practitioner_lock(practitioner_id: str) -> Iterator[None]:
    entry = _lock_for(practitioner_id)
    with entry.lock:
        yield
