"""Password strength rules shared by change-password, reset-password and user provisioning."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MIN_LENGTH = 8

COMMON_PASSWORDS = frozenset({
    "password",
    "password123",
    "123456",
    "12345678",
    "qwerty",
    "abc123",
    "monkey",
    "letmein",
    "trustno1",
    "dragon",
})


@dataclass
class PasswordStrength:
    is_valid: bool
    score: int
    errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "isValid": self.is_valid,
            "score": self.score,
            "errors": self.errors,
            "suggestions": self.suggestions,
        }


def check_password_strength(password: str) -> PasswordStrength:
    """Score a password 0..4 and list the rules it breaks.

    Length, upper, lower and digit are hard requirements; a special
    character only produces a suggestion.
    """
    password = password or ""
    errors: list[str] = []
    suggestions: list[str] = []
    score = 0

    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    else:
        score += 1
        if len(password) >= 12:
            score += 1

    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if re.search(r"[A-Z]", password) and re.search(r"[a-z]", password) and re.search(r"\d", password):
        score += 1

    if re.search(r"[^A-Za-z0-9]", password):
        score += 1
    else:
        suggestions.append("Add a special character for a stronger password")

    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common")
        score = 0

    return PasswordStrength(
        is_valid=not errors,
        score=min(score, 4),
        errors=errors,
        suggestions=suggestions,
    )
