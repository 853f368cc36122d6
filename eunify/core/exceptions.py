"""Custom exception hierarchy for E-Unify."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import status


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "application_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


@dataclass
class EUnifyError(Exception):
    """Base class for graph pipeline errors with structured payloads."""

    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        base = f"[{self.error_code}] {self.message}"
        if self.details:
            return f"{base} :: {self.details}"
        return base


class GraphFetchError(EUnifyError):
    """Raised when the graph REST service cannot serve a request."""


class QueryExecutionError(EUnifyError):
    """Raised when a traversal query is rejected or fails to execute."""


class ReshapeError(EUnifyError):
    """Raised when a raw query result cannot be turned into vertices."""


class RenderSurfaceError(EUnifyError):
    """Raised when the rendering surface is used without a live engine."""
