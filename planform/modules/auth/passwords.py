from __future__ import annotations

import bcrypt

# bcrypt only reads the first 72 bytes
_MAX_BYTES = 72


def _secret_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_secret_bytes(password), bcrypt.gensalt()).decode("utf-8")


def compare_passwords(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(_secret_bytes(password), stored.encode("utf-8"))
    except ValueError:
        # corrupt or foreign hash
        return False
