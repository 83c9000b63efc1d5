from __future__ import annotations

import secrets
import string
import uuid

from appcenter.exceptions.exceptions import ConflictError

KEY_ALPHABET = string.ascii_letters + string.digits
APP_KEY_LENGTH = 16
DOWNLOAD_KEY_LENGTH = 8
MAX_KEY_ATTEMPTS = 5


def new_id() -> str:
    return str(uuid.uuid4())


def random_key(length: int) -> str:
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(length))


def generate_unique_key(length: int, is_taken, attempts: int = MAX_KEY_ATTEMPTS) -> str:
    """
    Draw random keys until ``is_taken`` reports a free one.

    :param length: Key length
    :param is_taken: Callable returning True when a key is already in use
    :param attempts: Upper bound on draws before giving up
    :raises ConflictError: when every draw collided
    """
    for _ in range(attempts):
        candidate = random_key(length)
        if not is_taken(candidate):
            return candidate
    raise ConflictError(f"Could not generate a unique {length}-char key after {attempts} attempts")
