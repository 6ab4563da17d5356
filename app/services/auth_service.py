from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import Settings
from app.core.exceptions import AuthorizationError
from app.services.access_tokens import InvalidTokenError, IssuedToken, sign_token, verify_token

logger = logging.getLogger(__name__)

_HTTP_BEARER = HTTPBearer(auto_error=False)


class AuthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def issue_access_token(self, email: str) -> IssuedToken:
        return sign_token(
            {"email": email.strip().lower()},
            secret_key=self.settings.auth_secret_key,
            ttl=timedelta(minutes=self.settings.auth_token_ttl_minutes),
        )

    def get_requester_email_from_token(self, access_token: str) -> str:
        try:
            claims = verify_token(access_token, secret_key=self.settings.auth_secret_key)
        except InvalidTokenError as exc:
            logger.info("Rejected access token reason=%s", exc.reason)
            raise AuthorizationError("Invalid or expired access token.") from exc

        email = claims.get("email")
        if not isinstance(email, str) or not email.strip():
            raise AuthorizationError("Invalid access token payload.")
        return email.strip().lower()


def get_requester_email(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_HTTP_BEARER),
) -> str | None:
    """Resolve the requester identity, or ``None`` for an anonymous request."""
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    service = AuthService(request.app.state.settings)
    return service.get_requester_email_from_token(credentials.credentials)
