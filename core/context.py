# core/context.py
"""Per-browser wiring: one session store and one API client, passed to screens."""
from __future__ import annotations
import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable, MutableMapping, Optional

from core.api import ApiClient, UnauthorizedInterceptor
from core.models import Role, Session
from core.settings import Settings
from core.storage import SessionStore

logger = logging.getLogger(__name__)

CLIENT_ID_PARAM = "sid"


@dataclass
class AppContext:
    settings: Settings
    store: SessionStore
    api: ApiClient
    interceptor: Optional[UnauthorizedInterceptor] = field(default=None, repr=False)

    def session(self) -> Optional[Session]:
        return self.store.get_session()

    def role(self) -> Optional[Role]:
        s = self.session()
        return s.user.role if s else None


def build_context(
    settings: Settings,
    backend: Optional[MutableMapping[str, str]] = None,
    on_expired: Optional[Callable[[], None]] = None,
    http=None,
) -> AppContext:
    store = SessionStore(backend)
    interceptor = UnauthorizedInterceptor(store, on_expired)
    api = ApiClient(
        settings.api.base_url,
        token_provider=store.get_token,
        timeout=settings.api.timeout_seconds,
        http=http,
        on_unauthorized=interceptor,
    )
    return AppContext(settings=settings, store=store, api=api, interceptor=interceptor)


def new_client_id() -> str:
    return secrets.token_urlsafe(12)
