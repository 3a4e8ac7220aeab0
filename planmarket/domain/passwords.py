"""Advisory password policy.

Reported back to the client for display only. The hosted auth service owns
the real password rules; nothing here is a security boundary.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SPECIAL_CHARACTERS = '!@#$%^&*()_+-=[]{}|;:,.?'

MIN_LENGTH = 8
GENERATED_LENGTH = 12


@dataclass(frozen=True)
class PasswordChecks:
    min_length: bool
    uppercase: bool
    lowercase: bool
    digit: bool
    special: bool

    @property
    def ok(self) -> bool:
        return all((self.min_length, self.uppercase, self.lowercase, self.digit, self.special))

    def missing(self) -> list:
        return [name for name in ('min_length', 'uppercase', 'lowercase', 'digit', 'special') if not getattr(self, name)]

    def to_dict(self) -> dict:
        return {
            'ok': self.ok,
            'min_length': self.min_length,
            'uppercase': self.uppercase,
            'lowercase': self.lowercase,
            'digit': self.digit,
            'special': self.special,
        }


def check_password(password: str) -> PasswordChecks:
    password = password or ''
    return PasswordChecks(
        min_length=len(password) >= MIN_LENGTH,
        uppercase=any(char in UPPERCASE for char in password),
        lowercase=any(char in LOWERCASE for char in password),
        digit=any(char in DIGITS for char in password),
        special=any(char in SPECIAL_CHARACTERS for char in password),
    )


def generate_password(length: int = GENERATED_LENGTH) -> str:
    """Random password containing at least one character of every class."""
    length = max(length, 4)
    rng = secrets.SystemRandom()
    chars = [
        rng.choice(UPPERCASE),
        rng.choice(LOWERCASE),
        rng.choice(DIGITS),
        rng.choice(SPECIAL_CHARACTERS),
    ]
    pool = UPPERCASE + LOWERCASE + DIGITS + SPECIAL_CHARACTERS
    chars.extend(rng.choice(pool) for _ in range(length - len(chars)))
    rng.shuffle(chars)
    return ''.join(chars)
