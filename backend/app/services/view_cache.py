"""
Record-view invalidation.

Every successful ingestion bumps the version of the (kind, company, workflow)
scope it wrote to and calls any subscribed listeners. Views hand the version
back to clients so they can tell a stale page from a fresh one.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewScope:
    kind: str
    company_id: str
    workflow: Optional[str] = None


Listener = Callable[[ViewScope], None]

_lock = threading.Lock()
_versions: Dict[ViewScope, int] = {}
_listeners: List[Listener] = []


def version(scope: ViewScope) -> int:
    with _lock:
        return _versions.get(scope, 0)


def subscribe(listener: Listener) -> Callable[[], None]:
    """Register a listener; returns a callable that removes it."""
    with _lock:
        _listeners.append(listener)

    def _unsubscribe() -> None:
        with _lock:
            if listener in _listeners:
                _listeners.remove(listener)

    return _unsubscribe


def notify(scope: ViewScope) -> int:
    with _lock:
        _versions[scope] = _versions.get(scope, 0) + 1
        current = _versions[scope]
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(scope)
        except Exception:
            # a broken listener must not fail an ingestion that already committed
            logger.exception("view listener failed scope=%s", scope)
    return current


def reset() -> None:
    with _lock:
        _versions.clear()
        _listeners.clear()
