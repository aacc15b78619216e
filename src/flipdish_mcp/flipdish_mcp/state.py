"""Session state shared across MCP tool calls.

Holds the FlipDish chatId, the OTP auth token with its phone number, and the
last menu search (used to validate basket additions). Every mutation rewrites
a JSON snapshot so a restart does not lose an in-progress order.
"""

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from .models import MenuItem, SessionSnapshot


class SessionStore:
    """Single ordering session with best-effort JSON persistence.

    Args:
        path: Snapshot file. None keeps the session in memory only.
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else None
        self._state = self._load()

    # -- persistence ---------------------------------------------------------

    def _load(self) -> SessionSnapshot:
        if self.path is None or not self.path.exists():
            return SessionSnapshot()
        try:
            cached = json.loads(self.path.read_text(encoding="utf-8"))
            state = SessionSnapshot.model_validate(cached)
        except (OSError, ValueError, ValidationError):
            # json.JSONDecodeError is a ValueError; non-object JSON fails validation
            logger.opt(exception=True).warning(
                "Failed to load session cache {}, starting empty", self.path
            )
            return SessionSnapshot()
        logger.info("Loaded session from cache {}", self.path)
        return state

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.write_text(
                json.dumps(self.snapshot(), indent=2), encoding="utf-8"
            )
        except OSError:
            logger.opt(exception=True).warning(
                "Failed to save session cache {}", self.path
            )

    def snapshot(self) -> dict:
        """Full state in its on-disk (camelCase) form."""
        return self._state.model_dump(by_alias=True, mode="json")

    # -- session id ----------------------------------------------------------

    @property
    def session_id(self) -> str | None:
        return self._state.chat_id or None

    def set_session_id(self, session_id: str | None) -> None:
        self._state.chat_id = session_id or None
        self._save()

    # -- authentication ------------------------------------------------------

    @property
    def auth_token(self) -> str | None:
        return self._state.auth_token

    @property
    def phone_number(self) -> str | None:
        return self._state.phone_number

    @property
    def is_authenticated(self) -> bool:
        return bool(self._state.auth_token)

    def set_auth(self, token: str, phone_number: str) -> None:
        """Record a verified login. Token and phone are always stored together."""
        if not token or not phone_number:
            raise ValueError("Both token and phone number are required")
        self._state.auth_token = token
        self._state.phone_number = phone_number
        self._save()

    def clear_auth(self) -> None:
        self._state.auth_token = None
        self._state.phone_number = None
        self._save()

    # -- search cache --------------------------------------------------------

    @property
    def search_results(self) -> list[MenuItem]:
        return list(self._state.search_results)

    def set_search_results(self, items: list[MenuItem]) -> None:
        self._state.search_results = list(items)
        self._save()

    def find_search_result(self, menu_item_id: int) -> MenuItem | None:
        return next(
            (i for i in self._state.search_results if i.menu_item_id == menu_item_id),
            None,
        )
