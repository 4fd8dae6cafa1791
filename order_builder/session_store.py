"""
In-memory registry of active cart sessions.

Carts are working state only: nothing here survives a restart. Each session
belongs to the operator who started it and has its own lock so requests
against one cart apply strictly in arrival order. Sessions idle for longer
than the TTL are dropped, lazily on lookup and in a sweep on every create.
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional, Sequence

from .cart_engine import CartEngine
from .config import settings
from .mode import ModeContext
from .schemas import Product

logger = logging.getLogger(__name__)


@dataclass
class _CartSession:
    engine: CartEngine
    owner_id: Optional[str]
    last_access: float
    lock: threading.Lock = field(default_factory=threading.Lock)


class CartSessionStore:

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, _CartSession] = {}
        self._registry_lock = threading.Lock()

    def create(
        self,
        catalog: Sequence[Product],
        mode_context: Optional[ModeContext] = None,
        owner_id: Optional[str] = None,
    ) -> str:
        session_id = str(uuid.uuid4())
        engine = CartEngine(catalog, mode_context)
        with self._registry_lock:
            self._evict_expired()
            self._sessions[session_id] = _CartSession(
                engine=engine, owner_id=owner_id, last_access=self._clock(),
            )
        logger.info(f"Started cart session {session_id} in {engine.mode.value} mode")
        return session_id

    def _is_expired(self, session: _CartSession, now: float) -> bool:
        return self.ttl_seconds is not None and now - session.last_access > self.ttl_seconds

    def _evict_expired(self) -> None:
        """Caller holds the registry lock."""
        now = self._clock()
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Evicted {len(expired)} idle cart sessions")

    def _touch(self, session_id: str, owner_id: Optional[str]) -> _CartSession:
        """
        Look up a live session and refresh its last access time.
        Raises KeyError when it is unknown, expired or owned by someone else.
        """
        with self._registry_lock:
            session = self._sessions[session_id]
            now = self._clock()
            if self._is_expired(session, now):
                del self._sessions[session_id]
                logger.info(f"Cart session {session_id} expired")
                raise KeyError(session_id)
            if owner_id is not None and session.owner_id != owner_id:
                raise KeyError(session_id)
            session.last_access = now
            return session

    def get(self, session_id: str, owner_id: Optional[str] = None) -> CartEngine:
        """Raises KeyError for unknown, expired or foreign sessions."""
        return self._touch(session_id, owner_id).engine

    @contextmanager
    def locked(self, session_id: str, owner_id: Optional[str] = None) -> Iterator[CartEngine]:
        """Yields the session's engine with its lock held."""
        session = self._touch(session_id, owner_id)
        with session.lock:
            yield session.engine

    def discard(self, session_id: str, owner_id: Optional[str] = None) -> bool:
        with self._registry_lock:
            session = self._sessions.get(session_id)
            found = session is not None and (owner_id is None or session.owner_id == owner_id)
            if found:
                del self._sessions[session_id]
        if found:
            logger.info(f"Discarded cart session {session_id}")
        return found

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)


# Process-wide store used by the API
store = CartSessionStore(ttl_seconds=settings.CART_SESSION_TTL_MINUTES * 60)
