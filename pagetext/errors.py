"""Exception hierarchy for pagetext.

Every error carries an ``exit_code`` that the CLI uses as the process exit
status.  Only a missing content root is fatal to extraction; missing metadata
fields are reported as ``None`` instead.
"""

from __future__ import annotations

from typing import Sequence


class PagetextError(Exception):
    """Base class for all pagetext errors."""

    exit_code = 1


class FetchError(PagetextError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    exit_code = 3

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


class ParseError(PagetextError):
    """Raised when the HTML parser aborts entirely."""

    exit_code = 4


class InsufficientContentError(PagetextError):
    """Raised when no locator tier yields enough cleaned text.

    ``attempts`` lists ``(tier, length)`` for every tier that ran, in order;
    ``length`` is ``None`` when the tier found no candidate node.
    """

    exit_code = 5

    def __init__(
        self,
        min_size: int,
        attempts: Sequence[tuple[str, int | None]] = (),
    ) -> None:
        self.min_size = min_size
        self.attempts = list(attempts)
        tried = ", ".join(
            f"{tier}={'no match' if length is None else length}"
            for tier, length in self.attempts
        )
        super().__init__(
            f"No content root with at least {min_size} characters "
            f"(tried: {tried or 'nothing'})",
        )

    @property
    def tiers(self) -> list[str]:
        return [tier for tier, _ in self.attempts]


class SerializationError(PagetextError):
    """Raised when a well-formed result cannot be encoded in a format."""

    exit_code = 6

    def __init__(self, message: str, output_format: str = "") -> None:
        super().__init__(message)
        self.output_format = output_format
