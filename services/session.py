import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from models.user import AuthUser
from services.auth import FirebaseAuthClient

logger = logging.getLogger(__name__)


class SessionProvider:
    """
    Process-wide view of who is signed in.

    `is_loading` stays True until the auth client delivers its first
    session-change notification; there is no retry if it never does.
    """

    def __init__(self, auth_client: FirebaseAuthClient):
        self.auth_client = auth_client
        self.current_user: Optional[AuthUser] = None
        self.is_loading = True
        self.resolved = asyncio.Event()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.auth_client.on_auth_state_changed(self._on_change)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, user: Optional[AuthUser]) -> None:
        self.current_user = user
        self.is_loading = False
        self.resolved.set()
        logger.info("Session changed: %s", user.uid if user else "signed out")


class GuardState(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    REDIRECTING = "redirecting"


class RouteGuard:
    login_path = "/auth/login"

    def __init__(self, provider: SessionProvider):
        self.provider = provider

    def resolve(self) -> GuardState:
        if self.provider.is_loading:
            return GuardState.PENDING
        if self.provider.current_user is None:
            return GuardState.REDIRECTING
        return GuardState.AUTHORIZED
