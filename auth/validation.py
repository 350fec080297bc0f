"""
auth/validation.py -- Normalizers and field rules for register and login.

Normalization happens before both storage and lookup, so the credential
store's plain UNIQUE constraints enforce case-insensitive email uniqueness and
formatting-insensitive phone uniqueness.
"""

from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^[+0-9][0-9\-\s]*$")

PHONE_MIN_LENGTH = 6
PHONE_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72

_PASSWORD_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"[a-z]"), "Password must contain a lowercase letter."),
    (re.compile(r"[A-Z]"), "Password must contain an uppercase letter."),
    (re.compile(r"[0-9]"), "Password must contain a digit."),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain a special character."),
]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    return re.sub(r"[\s\-]", "", phone.strip())


def normalize_identifier(identifier: str) -> tuple[bool, str]:
    """Return (is_email, normalized). Anything containing '@' is an email."""
    trimmed = identifier.strip()
    if "@" in trimmed:
        return True, normalize_email(trimmed)
    return False, normalize_phone(trimmed)


def password_problems(password: str) -> list[str]:
    """Return every password rule the candidate breaks (empty list if none)."""
    problems: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Password must be at most {PASSWORD_MAX_BYTES} bytes.")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            problems.append(message)
    return problems


def registration_problems(email: str, phone: str, password: str) -> list[dict[str, str]]:
    """Check raw register input. Returns [{"field", "message"}, ...] for every violation."""
    problems: list[dict[str, str]] = []

    email = email.strip()
    if not email:
        problems.append({"field": "email", "message": "Email is required."})
    elif not EMAIL_PATTERN.match(email):
        problems.append({"field": "email", "message": "Invalid email format."})

    phone = phone.strip()
    if len(phone) < PHONE_MIN_LENGTH:
        problems.append({"field": "phone", "message": f"Phone must be at least {PHONE_MIN_LENGTH} characters."})
    elif len(phone) > PHONE_MAX_LENGTH:
        problems.append({"field": "phone", "message": f"Phone must be at most {PHONE_MAX_LENGTH} characters."})
    elif not PHONE_PATTERN.match(phone) or not any(c.isdigit() for c in normalize_phone(phone)):
        problems.append({"field": "phone", "message": "Invalid phone format."})

    problems.extend({"field": "password", "message": m} for m in password_problems(password))
    return problems
