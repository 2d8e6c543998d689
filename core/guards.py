# core/guards.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.api import ApiClient, ApiError
from core.models import parse_envelope

logger = logging.getLogger(__name__)

SETUP_PATH = "/setup"
LOGIN_PATH = "/login"


class SetupState(str, Enum):
    CHECKING = "CHECKING"
    SETUP_REQUIRED = "SETUP_REQUIRED"
    SETUP_NOT_REQUIRED = "SETUP_NOT_REQUIRED"


@dataclass(frozen=True)
class GuardDecision:
    state: SetupState
    redirect: Optional[str] = None


def resolve_setup_redirect(setup_required: Optional[bool], path: str) -> Optional[str]:
    """Where the setup check sends the user; ``None`` means stay put."""
    if setup_required is None:
        return None
    if setup_required and path != SETUP_PATH:
        return SETUP_PATH
    if not setup_required and path == SETUP_PATH:
        return LOGIN_PATH
    return None


class SetupGuard:
    """Asks the backend whether first-run setup is pending, on every navigation."""

    def __init__(self, api: ApiClient):
        self.api = api

    def check(self, path: str) -> GuardDecision:
        try:
            result = self.api.setup.status()
        except ApiError as e:
            # Fail open so a flaky backend doesn't lock everyone out.
            logger.warning("Setup status check failed, allowing navigation: %s", e.message)
            return GuardDecision(SetupState.CHECKING)

        env = parse_envelope(result)
        if not env.success or not isinstance(env.data, dict) or "setupRequired" not in env.data:
            return GuardDecision(SetupState.CHECKING)

        required = bool(env.data["setupRequired"])
        state = SetupState.SETUP_REQUIRED if required else SetupState.SETUP_NOT_REQUIRED
        redirect = resolve_setup_redirect(required, path)
        if redirect:
            logger.info("Setup guard redirect %s -> %s", path, redirect)
        return GuardDecision(state, redirect)


def auth_redirect(store) -> Optional[str]:
    """Presence check for the signed-in shell: both token and user must be stored."""
    if not store.get_token() or store.get_user() is None:
        return LOGIN_PATH
    return None
