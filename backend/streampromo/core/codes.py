"""Entity identifiers and shareable redemption codes.

Codes are short and easy to read out on a stream, not secret: they come from a
plain ``random.Random`` seeded from the wall clock. Uniqueness is enforced by
the unique index on ``discount_managers.code``; callers regenerate on conflict.
"""

from __future__ import annotations

import random
import string
import time
import uuid
from threading import Lock

CODE_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits + "!@#$&*"
DEFAULT_CODE_LENGTH = 8


def new_id() -> str:
    return str(uuid.uuid4())


class CodeGenerator:
    def __init__(self, seed: int | None = None, alphabet: str = CODE_ALPHABET) -> None:
        self._random = random.Random(time.time_ns() if seed is None else seed)
        self._alphabet = alphabet
        self._lock = Lock()

    @property
    def alphabet(self) -> str:
        return self._alphabet

    def new_id(self) -> str:
        return new_id()

    def new_code(self, length: int = DEFAULT_CODE_LENGTH) -> str:
        if length < 1:
            raise ValueError("code length must be positive")
        with self._lock:
            return "".join(self._random.choice(self._alphabet) for _ in range(length))
