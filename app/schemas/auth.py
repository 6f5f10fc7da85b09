from pydantic import BaseModel


class LoginIn(BaseModel):
    email: str
    password: str


class SessionOut(BaseModel):
    email: str
    issued_at: int
    expires_at: int


class LoginOut(SessionOut):
    token: str
