import base64
import hashlib
import hmac
import json
import os

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from app.core.config import settings

_fernet = Fernet(settings.session_secret_key.get_secret_value().encode("utf-8"))

# scrypt cost parameters for stored agency passwords
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1


def seal_json(data: dict, *, at_time: int | None = None) -> str:
    raw = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    if at_time is not None:
        return _fernet.encrypt_at_time(raw, at_time).decode("utf-8")
    return _fernet.encrypt(raw).decode("utf-8")


def open_json(token: str, *, ttl_seconds: int | None = None) -> dict | None:
    """
    Decrypt a sealed token. Returns None when the token is malformed, tampered
    with, or older than ttl_seconds.
    """
    try:
        raw = _fernet.decrypt(token.encode("utf-8"), ttl=ttl_seconds)
    except (InvalidToken, ValueError):
        return None
    return json.loads(raw.decode("utf-8"))


def hash_password(plain: str) -> str:
    salt = os.urandom(16)
    kdf = Scrypt(salt=salt, length=32, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    digest = kdf.derive(plain.encode("utf-8"))
    return "scrypt$" + base64.b64encode(salt).decode("ascii") + "$" + base64.b64encode(digest).decode("ascii")


def verify_password(plain: str, stored: str) -> bool:
    try:
        scheme, salt_b64, digest_b64 = stored.split("$", 2)
    except ValueError:
        return False
    if scheme != "scrypt":
        return False
    salt = base64.b64decode(salt_b64)
    kdf = Scrypt(salt=salt, length=32, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    candidate = kdf.derive(plain.encode("utf-8"))
    return hmac.compare_digest(candidate, base64.b64decode(digest_b64))


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(
        hashlib.sha256(a.encode("utf-8")).digest(),
        hashlib.sha256(b.encode("utf-8")).digest(),
    )
