"""One-time verification codes and email syntax checks.

The code entry model mirrors the six-box input of the sign-up screen:
single-digit keystrokes, backspace navigation and all-or-nothing paste.
"""

from __future__ import annotations

import re
import secrets
from typing import List, Optional

CODE_LENGTH = 6
DIGITS = '0123456789'
CODE_MIN = 10 ** (CODE_LENGTH - 1)
CODE_MAX = 10 ** CODE_LENGTH - 1

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
_CODE_PATTERN = re.compile(r'^[0-9]{%d}$' % CODE_LENGTH)


def generate_code() -> str:
    """Uniformly random 6-digit code in 100000..999999."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def is_valid_code_format(code: Optional[str]) -> bool:
    return bool(code) and bool(_CODE_PATTERN.match(code))


def is_valid_email(email: Optional[str]) -> bool:
    """Exactly one ``@``, non-whitespace on both sides and a dot in the domain."""
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


class CodeEntry:
    """Six single-digit positions with a focus cursor."""

    def __init__(self, length: int = CODE_LENGTH):
        self.length = length
        self.digits: List[str] = [''] * length
        self.focus = 0

    def enter(self, index: int, value: str) -> bool:
        """Set one position. Returns False when the keystroke is rejected.

        An empty value clears the position. Anything else must be a single
        digit.
        """
        if not 0 <= index < self.length:
            return False
        if value and not (len(value) == 1 and value in DIGITS):
            return False
        self.digits[index] = value
        if value and index < self.length - 1:
            self.focus = index + 1
        else:
            self.focus = index
        return True

    def backspace(self, index: int) -> None:
        """Move focus back when backspacing over an empty position."""
        if 0 < index < self.length and not self.digits[index]:
            self.focus = index - 1

    def paste(self, text: str) -> bool:
        """Fill from pasted text, truncated to the code length.

        Rejected wholesale (nothing changes) if any kept character is not a
        digit.
        """
        pasted = (text or '')[:self.length]
        if not pasted or not all(char in DIGITS for char in pasted):
            return False
        for index, digit in enumerate(pasted):
            self.digits[index] = digit
        self.focus = min(len(pasted) - 1, self.length - 1)
        return True

    @property
    def is_complete(self) -> bool:
        return all(digit and digit in DIGITS for digit in self.digits)

    @property
    def value(self) -> str:
        return ''.join(self.digits)

    @classmethod
    def from_input(cls, code: Optional[str] = None, digits: Optional[List[str]] = None) -> 'CodeEntry':
        """Replay a submitted code through the entry rules.

        ``code`` is treated as a paste, ``digits`` as one keystroke per box.
        """
        entry = cls()
        if digits is not None:
            for index, digit in enumerate(list(digits)[:entry.length]):
                entry.enter(index, '' if digit is None else str(digit).strip())
        elif code is not None:
            entry.paste(str(code).strip())
        return entry
