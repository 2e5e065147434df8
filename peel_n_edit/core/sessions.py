"""In-memory registry of editing sessions."""

import asyncio
import time
import uuid
from typing import Callable, Dict, List, Set, Tuple

from .orchestrator import EditSession
from ..utils.errors import SessionNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SESSION_TTL_SECONDS = 3600  # 1 hour default


class SessionRegistry:
    """Maps browser session ids to their :class:`EditSession`.

    Sessions live only as long as the process. A session that has not been
    looked up for ``ttl_seconds`` is closed and forgotten; browsers that
    close a tab never send the DELETE.
    """

    def __init__(
        self,
        session_factory: Callable[[], EditSession],
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_factory = session_factory
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._sessions: Dict[str, Tuple[EditSession, float]] = {}
        self._closing: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _is_expired(self, last_access: float, now: float) -> bool:
        return now - last_access > self.ttl_seconds

    async def cleanup_idle_sessions(self) -> int:
        """
        Close every session idle for longer than the TTL.

        Returns:
            Number of sessions evicted
        """
        now = self.clock()
        idle_ids: List[str] = [
            session_id
            for session_id, (_, last_access) in self._sessions.items()
            if self._is_expired(last_access, now)
        ]

        for session_id in idle_ids:
            session, _ = self._sessions.pop(session_id)
            await session.close()

        if idle_ids:
            logger.info(
                f"Evicted {len(idle_ids)} idle sessions",
                extra={"evicted": len(idle_ids), "active": len(self._sessions)}
            )

        return len(idle_ids)

    async def create(self) -> Tuple[str, EditSession]:
        await self.cleanup_idle_sessions()

        session_id = uuid.uuid4().hex
        session = self.session_factory()
        self._sessions[session_id] = (session, self.clock())
        logger.info("Session created", extra={"session": session_id, "active": len(self._sessions)})
        return session_id, session

    def get(self, session_id: str) -> EditSession:
        """Look up a session and refresh its last-access time.

        Must be called from a running event loop; an expired session is
        closed in the background.
        """
        entry = self._sessions.get(session_id)
        if entry is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")

        session, last_access = entry
        now = self.clock()

        if self._is_expired(last_access, now):
            del self._sessions[session_id]
            task = asyncio.get_running_loop().create_task(session.close())
            self._closing.add(task)
            task.add_done_callback(self._closing.discard)
            logger.info("Session expired", extra={"session": session_id, "active": len(self._sessions)})
            raise SessionNotFoundError(f"Session expired: {session_id}")

        self._sessions[session_id] = (session, now)
        return session

    async def remove(self, session_id: str):
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        await entry[0].close()
        logger.info("Session closed", extra={"session": session_id, "active": len(self._sessions)})

    async def close_all(self):
        sessions = [session for session, _ in self._sessions.values()]
        self._sessions.clear()
        for session in sessions:
            await session.close()
        if self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)
