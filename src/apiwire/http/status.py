"""HTTP status values that keep non-standard reason phrases verbatim."""

from __future__ import annotations

import http
from dataclasses import dataclass
from typing import Optional


def standard_reason_phrase(code: int) -> Optional[str]:
    """Return the registered reason phrase for *code*, or ``None``."""
    try:
        return http.HTTPStatus(code).phrase
    except ValueError:
        return None


@dataclass(frozen=True)
class Status:
    """A status code and its reason phrase.

    Servers may answer with codes outside the registry (``499``) or with
    custom phrases (``"Custom"``); both are preserved exactly as received.

    Attributes:
        code: Numeric status code.
        reason_phrase: Reason phrase, or ``None`` when unknown.
    """

    code: int
    reason_phrase: Optional[str] = None

    @classmethod
    def of(cls, code: int, reason: Optional[str] = None) -> Status:
        """Build a status, filling in the standard phrase only when *reason* is absent."""
        return cls(int(code), reason if reason is not None else standard_reason_phrase(int(code)))

    @property
    def is_informational(self) -> bool:
        return 100 <= self.code < 200

    @property
    def is_success(self) -> bool:
        return 200 <= self.code < 300

    @property
    def is_redirection(self) -> bool:
        return 300 <= self.code < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.code < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.code < 600

    @property
    def is_failure(self) -> bool:
        return self.is_client_error or self.is_server_error

    def __str__(self) -> str:
        return f"{self.code} {self.reason_phrase}" if self.reason_phrase else str(self.code)
