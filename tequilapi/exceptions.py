"""Custom exceptions for the Tequilapi control-plane client."""

from __future__ import annotations

from typing import Any, Optional


class TequilapiError(Exception):
    """
    Raised when a call against a node's Tequilapi fails.

    Attributes:
        status: HTTP status code, or ``None`` when the request never got a response.
        response_data: Decoded JSON body returned by the node, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        response_data: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.response_data = response_data
