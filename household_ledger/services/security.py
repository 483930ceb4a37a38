import base64
import hashlib

import bcrypt


def _digest(password: str) -> bytes:
    # bcrypt only reads 72 bytes and stops at NUL; pre-hash and encode
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str, rounds: int = 12) -> str:
    hashed = bcrypt.hashpw(_digest(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode()


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_digest(password), hashed_password.encode())
    except ValueError:
        # stored value is not a bcrypt hash
        return False
