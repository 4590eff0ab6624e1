"""
Per-room mutex around booking creation.

The overlap check and the inserts must not interleave between two requests
for the same room. Inside one process the threads serving requests take a
lock per room here; across processes the room row is locked with
``SELECT ... FOR UPDATE`` (see ``booking_lifecycle.create_booking``) and
file-backed SQLite starts write transactions with ``BEGIN IMMEDIATE``.
"""
from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
from typing import Iterator

logger = logging.getLogger(__name__)

_ROOM_LOCKS: dict[int, threading.Lock] = {}
_REGISTRY_LOCK = threading.Lock()


def _lock_for(room_id: int) -> threading.Lock:
    with _REGISTRY_LOCK:
        lock = _ROOM_LOCKS.get(room_id)
        if lock is None:
            lock = _ROOM_LOCKS[room_id] = threading.Lock()
        return lock


@contextmanager
def room_booking_lock(room_id: int) -> Iterator[None]:
    lock = _lock_for(room_id)
    if not lock.acquire(blocking=False):
        logger.debug("Waiting for booking lock on room %s", room_id)
        lock.acquire()
    try:
        yield
    finally:
        lock.release()
