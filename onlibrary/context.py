from __future__ import annotations

from dataclasses import dataclass

from .errors import DemoModeError

DEMO_OWNER_ID = "demo"


@dataclass(frozen=True)
class ReaderContext:
    """Who is acting, and whether the session is a read-only demo."""

    owner_id: str
    demo: bool = False

    def require_writable(self, action: str = "save your own books") -> None:
        if self.demo:
            raise DemoModeError(action)


def demo_context() -> ReaderContext:
    return ReaderContext(owner_id=DEMO_OWNER_ID, demo=True)
