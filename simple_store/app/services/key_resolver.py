import os
import re
from pathlib import Path
from typing import Optional, Union

from simple_store.logger_config import setup_logger

logger = setup_logger()

# Keys may contain only: a-z, A-Z, 0-9, dot, underscore, minus
KEY_PATTERN = re.compile(r'[A-Za-z0-9._-]+')


class StoreError(Exception):
    """Base class for per-request store errors."""


class InvalidKey(StoreError):
    """Key is missing, empty or contains disallowed characters."""


class PathEscape(StoreError):
    """Key canonicalizes to a location outside the storage root."""


def is_valid_key(key: Optional[str]) -> bool:
    """Check if the key is valid according to the allowed character set."""
    if not key:
        return False
    return KEY_PATTERN.fullmatch(key) is not None


def parse_key(raw_key: Optional[str]) -> str:
    """Strip one leading slash and validate the remaining key."""
    if raw_key and raw_key[0] == '/':
        raw_key = raw_key[1:]
    if not is_valid_key(raw_key):
        raise InvalidKey(f"Invalid key: {raw_key!r}")
    return raw_key


class KeyResolver:
    """Maps keys to files directly inside a single storage root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()
        self._prefix = os.path.join(str(self.root), '')

    def resolve(self, raw_key: Optional[str]) -> Path:
        """Return the canonical path for ``raw_key``.

        The key is checked twice: syntactically against the character
        whitelist, then by canonicalizing root + key and requiring the
        result to sit strictly below the canonical root. Nothing on disk
        is touched and the target does not need to exist.

        Raises:
            InvalidKey: the key fails the character check
            PathEscape: the canonical path is not inside the root
        """
        key = parse_key(raw_key)
        path = (self.root / key).resolve()
        if not str(path).startswith(self._prefix):
            logger.warning(f"Invalid path: key={key} ({path})")
            raise PathEscape(f"Key resolves outside storage root: {key}")
        return path


def resolve(root: Union[str, Path], raw_key: Optional[str]) -> Path:
    return KeyResolver(root).resolve(raw_key)
