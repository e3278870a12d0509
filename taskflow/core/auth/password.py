"""Password policy and bcrypt hashing."""

import re

from taskflow.extensions import bcrypt

MIN_PASSWORD_LENGTH = 8
_PASSWORD_REGEX = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).{%d,}$" % MIN_PASSWORD_LENGTH)


def check_password_strength(value: str) -> str:
    """Pydantic-friendly check: letters, digits and a minimum length."""
    if not _PASSWORD_REGEX.match(value or ""):
        raise ValueError(
            f"password must be at least {MIN_PASSWORD_LENGTH} chars and include letters and numbers"
        )
    return value


def hash_password(plain_password: str) -> str:
    return bcrypt.generate_password_hash(plain_password).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return bcrypt.check_password_hash(hashed_password, plain_password)
