import secrets

import bcrypt

OPAQUE_TOKEN_BYTES = 64


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt directly.

    bcrypt truncates at 72 *bytes* and current builds raise if you exceed it,
    so enforce the limit explicitly.
    """
    if not password:
        raise ValueError("Password is required")

    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        raise ValueError("Password must be 72 bytes or less")

    hashed = bcrypt.hashpw(pw_bytes, bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def generate_opaque_token(nbytes: int = OPAQUE_TOKEN_BYTES) -> str:
    """Random URL-safe token for refresh / password-reset rows."""
    return secrets.token_urlsafe(nbytes)
