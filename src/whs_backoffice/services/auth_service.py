from __future__ import annotations

import logging

from whs_client_sdk import ApiSession
from whs_client_sdk.exceptions import AuthError
from whs_client_sdk.models import UserResponse

from .errors import normalize_error

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def has_active_session(self) -> bool:
        return bool(self.session.token)

    def current_user(self) -> UserResponse | None:
        return self.session.user

    def login(self, email: str, password: str) -> UserResponse | None:
        logger.info("login_attempt", extra={"email": email})
        try:
            user = self.session.login(email, password)
        except AuthError as exc:
            logger.warning("login_rejected", extra={"email": email, "trace_id": exc.trace_id})
            raise normalize_error(exc, "Login failed") from exc
        except Exception as exc:
            logger.exception("login_failure", extra={"email": email})
            raise normalize_error(exc, "Login failed") from exc
        logger.info("login_success", extra={"email": email, "user_id": user.id if user else None})
        return user

    def logout(self) -> None:
        logger.info("logout")
        self.session.clear()
