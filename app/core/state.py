"""
Process-wide application state.

One AppState is created per process (see app.main) and injected into the
gateways. Callers read it; only the owning gateway and the session channel
write to it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from app.modules.auth.schemas import Principal
from app.modules.subscriptions.schemas import SubscriptionResponse

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, Any], None]


class SessionChannel:
    """Fan-out of Supabase auth events (SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, ...)"""

    def __init__(self):
        self._listeners: List[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: str, session: Any) -> None:
        logger.debug(f"Auth event {event}")
        for listener in list(self._listeners):
            listener(event, session)


class LoadingState:
    def __init__(self, loading: bool = False):
        self._loading = loading

    @property
    def loading(self) -> bool:
        return self._loading

    @contextmanager
    def busy(self) -> Iterator[None]:
        """Hold the loading flag for the duration of one operation, on every exit path."""
        self._loading = True
        try:
            yield
        finally:
            self._loading = False


class AuthState(LoadingState):
    def __init__(self):
        # True until the first bootstrap settles
        super().__init__(loading=True)
        self._user: Optional[Principal] = None
        self._change_listeners: List[Callable[[Optional[Principal]], None]] = []

    @property
    def user(self) -> Optional[Principal]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def on_principal_change(self, listener: Callable[[Optional[Principal]], None]) -> None:
        """Called with the new principal whenever the principal id changes (including to None)."""
        self._change_listeners.append(listener)

    def _assign(self, user: Optional[Principal]) -> None:
        previous_id = self._user.id if self._user is not None else None
        self._user = user
        new_id = user.id if user is not None else None
        if new_id != previous_id:
            for listener in list(self._change_listeners):
                listener(user)

    def set_user(self, user: Any) -> None:
        self._assign(Principal.from_user(user) if user is not None else None)

    def clear(self) -> None:
        self._assign(None)

    def apply_session(self, event: str, session: Any) -> None:
        """Every auth event overwrites the principal with the session's user, or None."""
        self.set_user(getattr(session, "user", None) if session is not None else None)


class SubscriptionsState(LoadingState):
    def __init__(self):
        super().__init__(loading=False)
        self._items: List[SubscriptionResponse] = []

    @property
    def subscriptions(self) -> Tuple[SubscriptionResponse, ...]:
        return tuple(self._items)

    def replace_all(self, items: Iterable[SubscriptionResponse]) -> None:
        self._items = list(items)

    def clear(self) -> None:
        self._items = []

    def append(self, item: SubscriptionResponse) -> None:
        self._items.append(item)

    def replace(self, subscription_id: str, item: SubscriptionResponse) -> bool:
        """Swap the entry with this id in place. Returns False when nothing matched."""
        for index, existing in enumerate(self._items):
            if existing.id == subscription_id:
                self._items[index] = item
                return True
        return False

    def remove(self, subscription_id: str) -> None:
        self._items = [s for s in self._items if s.id != subscription_id]

    def find(self, subscription_id: str) -> Optional[SubscriptionResponse]:
        return next((s for s in self._items if s.id == subscription_id), None)


class AppState:
    def __init__(self):
        self.auth = AuthState()
        self.subscriptions = SubscriptionsState()
        self.sessions = SessionChannel()
        self.sessions.subscribe(self.auth.apply_session)
        # The cache only ever holds the current principal's rows
        self.auth.on_principal_change(lambda user: self.subscriptions.clear())
