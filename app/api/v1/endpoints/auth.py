import logging

from fastapi import APIRouter, Depends, HTTPException

from app.schemas.auth import LoginIn, LoginOut, SessionOut
from app.services.auth import AdminSession, check_credentials, issue_session, require_session

log = logging.getLogger(__name__)
router = APIRouter(prefix="/auth")


@router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn) -> LoginOut:
    if not check_credentials(payload.email, payload.password):
        log.warning("admin login rejected email=%s", payload.email)
        raise HTTPException(status_code=401, detail="E-posta veya şifre hatalı")

    token, session = issue_session(payload.email)
    log.info("admin login email=%s", session.email)
    return LoginOut(
        token=token,
        email=session.email,
        issued_at=session.issued_at,
        expires_at=session.expires_at,
    )


@router.get("/session", response_model=SessionOut)
async def current_session(session: AdminSession = Depends(require_session)) -> SessionOut:
    return SessionOut(email=session.email, issued_at=session.issued_at, expires_at=session.expires_at)
