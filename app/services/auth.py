import time
from dataclasses import dataclass

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.crypto import constant_time_equals, open_json, seal_json

session_bearer = HTTPBearer(auto_error=False)

LOGIN_REQUIRED = "Oturum açmanız gerekiyor"


@dataclass(frozen=True)
class AdminSession:
    email: str
    issued_at: int
    expires_at: int


def check_credentials(email: str, password: str) -> bool:
    # Both comparisons always run so timing does not reveal which one failed
    email_ok = constant_time_equals((email or "").strip().lower(), settings.admin_email.strip().lower())
    password_ok = constant_time_equals(password or "", settings.admin_password.get_secret_value())
    return email_ok and password_ok


def issue_session(email: str, *, now: int | None = None) -> tuple[str, AdminSession]:
    issued = now if now is not None else int(time.time())
    session = AdminSession(
        email=email.strip().lower(),
        issued_at=issued,
        expires_at=issued + settings.session_ttl_seconds,
    )
    token = seal_json({"sub": session.email, "iat": session.issued_at}, at_time=issued)
    return token, session


def read_session(token: str) -> AdminSession | None:
    data = open_json(token, ttl_seconds=settings.session_ttl_seconds)
    if not data or "sub" not in data:
        return None
    issued = int(data.get("iat") or 0)
    return AdminSession(
        email=data["sub"],
        issued_at=issued,
        expires_at=issued + settings.session_ttl_seconds,
    )


async def require_session(
    credentials: HTTPAuthorizationCredentials | None = Security(session_bearer),
) -> AdminSession:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=LOGIN_REQUIRED)

    session = read_session(credentials.credentials)
    if session is None:
        raise HTTPException(status_code=401, detail=LOGIN_REQUIRED)
    return session
