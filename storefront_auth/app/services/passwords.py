"""
Password hashing (bcrypt, cost factor 12).
"""

import bcrypt

BCRYPT_ROUNDS = 12

# bcrypt only accepts this many bytes of input
MAX_PASSWORD_BYTES = 72

# Hash of a throwaway value, compared against when no account exists
_DUMMY_HASH = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(BCRYPT_ROUNDS))


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS)
    ).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        # No stored hash can match an over-long password
        burn_password_check(password)
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


def burn_password_check(password: str) -> None:
    """Spend the same time as a real check so unknown emails are not revealed."""
    bcrypt.checkpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], _DUMMY_HASH)
