"""Window store interface.

The rate limiter depends on this abstraction only, so it behaves the same
whichever backend holds the counters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class WindowCounter:
    """State of a key's fixed window right after an increment.

    Attributes:
        count: Requests observed in the current window, including this one.
        expires_at: UNIX epoch seconds at which the window resets.
    """

    count: int
    expires_at: int


class WindowStore(ABC):
    """Counter bound to a key and a fixed time window."""

    #: Backend tag used in logs and health output.
    backend: str = "unknown"

    @abstractmethod
    async def increment(self, key: str, window_seconds: int) -> WindowCounter:
        """Count one request against ``key``.

        If the key is absent, or its window has expired (``now >= expires_at``),
        the count restarts at 1 with a new expiry of ``now + window_seconds``.
        Otherwise the count grows by one and the expiry is kept.

        Args:
            key: Rate limit key, e.g. ``rl:contact:203.0.113.7``.
            window_seconds: Window length in whole seconds (>= 1).

        Returns:
            WindowCounter with the post-increment count.

        Raises:
            BackendUnavailableError: If the backing store cannot be reached.
        """
        raise NotImplementedError


def validate_window(window_seconds: int) -> None:
    if window_seconds < 1:
        raise ValueError("window_seconds must be >= 1")
