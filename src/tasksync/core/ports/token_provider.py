"""
Token Provider Port - Source of the bearer credential.

Token issuance and refresh belong to the authentication collaborator;
the sync engine only reads the current value before each request.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union


TokenProvider = Callable[[], Optional[str]]


class StaticTokenProvider:
    """Returns a fixed token (or None for anonymous requests)."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def __call__(self) -> Optional[str]:
        return self._token


class FileTokenProvider:
    """
    Reads the token from a file on every call.

    The authentication layer may rewrite the file at any time; a missing
    or empty file means no credential.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.logger = logging.getLogger("FileTokenProvider")

    def __call__(self) -> Optional[str]:
        try:
            token = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning(f"Could not read token file {self.path}: {e}")
            return None
        return token or None
