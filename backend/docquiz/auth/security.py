import re
import time
import threading
from typing import Callable, Dict, List, Tuple

from werkzeug.security import generate_password_hash, check_password_hash

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FULL_NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")


def validate_email(email: str) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email)) and len(email) <= 254


def validate_password(password: str) -> Tuple[bool, List[str]]:
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if len(password) > 128:
        errors.append("Password must be less than 128 characters")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    return len(errors) == 0, errors


def validate_full_name(name: str) -> bool:
    return isinstance(name, str) and 2 <= len(name) <= 100 and bool(FULL_NAME_RE.match(name))


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


class RateLimiter:
    """At most `max_attempts` per identifier; the window restarts from the last attempt."""

    def __init__(self, max_attempts: int = 5, window_seconds: float = 15 * 60, clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._attempts: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()

    def is_allowed(self, identifier: str) -> bool:
        now = self._clock()
        with self._lock:
            attempt = self._attempts.get(identifier)
            if attempt is None or now - attempt["last"] > self.window_seconds:
                self._attempts[identifier] = {"count": 1, "last": now}
                return True
            if attempt["count"] >= self.max_attempts:
                return False
            attempt["count"] += 1
            attempt["last"] = now
            return True

    def remaining_time(self, identifier: str) -> float:
        attempt = self._attempts.get(identifier)
        if attempt is None:
            return 0.0
        return max(0.0, self.window_seconds - (self._clock() - attempt["last"]))

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._attempts.pop(identifier, None)
