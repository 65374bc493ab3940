import time
import secrets
import logging
import threading
from typing import Callable, Dict, List, Optional

from docquiz.errors import AuthError, SessionExpiredError

logger = logging.getLogger(__name__)


class InactivityTimer:
    """
    Idle timeout owned by a single auth session.

    Activity signals call touch(); sign-out calls cancel(). The clock is
    injectable so expiry can be driven without sleeping.
    """

    def __init__(self, timeout_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._last_activity = clock()
        self._cancelled = False

    def touch(self) -> None:
        if not self._cancelled:
            self._last_activity = self._clock()

    def remaining(self) -> float:
        if self._cancelled:
            return 0.0
        return max(0.0, self.timeout_seconds - (self._clock() - self._last_activity))

    def expired(self) -> bool:
        return self._cancelled or self._clock() - self._last_activity >= self.timeout_seconds

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AuthSession:
    def __init__(self, token: str, user_id: str, timer: InactivityTimer):
        self.token = token
        self.user_id = user_id
        self.timer = timer


class SessionManager:
    """
    Token -> session registry. Each session carries its own InactivityTimer.

    `on_end(user_id)` runs once the last live session of a user is gone,
    whether by sign-out or by expiry.
    """

    def __init__(
        self,
        timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        on_end: Optional[Callable[[str], None]] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._on_end = on_end
        self._sessions: Dict[str, AuthSession] = {}
        self._lock = threading.Lock()

    def _close(self, session: AuthSession) -> bool:
        # caller holds the lock; True when the user has no session left
        session.timer.cancel()
        self._sessions.pop(session.token, None)
        return not any(s.user_id == session.user_id for s in self._sessions.values())

    def _ended(self, user_ids: List[str]) -> None:
        if self._on_end is None:
            return
        for user_id in user_ids:
            self._on_end(user_id)

    def sweep(self) -> int:
        """Drop every expired session. Returns how many were dropped."""
        with self._lock:
            stale = [s for s in self._sessions.values() if s.timer.expired()]
            ended = [s.user_id for s in stale if self._close(s)]
        for session in stale:
            logger.info("Session for user %s expired after inactivity", session.user_id)
        self._ended(ended)
        return len(stale)

    def sign_in(self, user_id: str) -> str:
        self.sweep()
        token = secrets.token_urlsafe(32)
        timer = InactivityTimer(self.timeout_seconds, clock=self._clock)
        with self._lock:
            self._sessions[token] = AuthSession(token, user_id, timer)
        logger.info("Session opened for user %s", user_id)
        return token

    def resolve(self, token: Optional[str]) -> str:
        """Return the session's user id, counting the call as activity."""
        if not token:
            raise AuthError("User authentication required")
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise AuthError("Invalid or unknown session")
            if not session.timer.expired():
                session.timer.touch()
                return session.user_id
            last = self._close(session)
        logger.info("Session for user %s expired after inactivity", session.user_id)
        if last:
            self._ended([session.user_id])
        raise SessionExpiredError()

    def sign_out(self, token: Optional[str]) -> bool:
        with self._lock:
            session = self._sessions.get(token) if token else None
            if session is None:
                return False
            last = self._close(session)
        logger.info("Session closed for user %s", session.user_id)
        if last:
            self._ended([session.user_id])
        return True

    def __len__(self) -> int:
        return len(self._sessions)
