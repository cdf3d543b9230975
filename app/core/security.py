# app/core/security.py
import secrets

from werkzeug.security import generate_password_hash, check_password_hash

# 32 random bytes -> 64 hex chars, 256 bits of entropy
TOKEN_BYTES = 32

# Checked when no account matches so a miss costs the same as a wrong password
_DUMMY_PASSWORD_HASH = generate_password_hash(secrets.token_hex(16))


def mint_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def hash_password(password: str) -> str:
    # werkzeug generates a random salt per call
    return generate_password_hash(password)


def verify_password(password_hash: str | None, password: str) -> bool:
    if password_hash is None:
        check_password_hash(_DUMMY_PASSWORD_HASH, password)
        return False
    return check_password_hash(password_hash, password)


def token_hint(token: str | None) -> str:
    """Short prefix of a secret, for log lines."""
    if not token:
        return "<none>"
    return token[:6] + "..."
