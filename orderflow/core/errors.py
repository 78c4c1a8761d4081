# orderflow/core/errors.py
from __future__ import annotations

from typing import List, Optional


class OrderflowError(Exception):
    """Base error for the routing service."""


class ConfigValidationError(OrderflowError):
    """
    A persisted or imported PolicyConfig / ReferencePack is malformed.

    Raised only at the load/import boundary. Callers that are loading a
    snapshot for a batch catch it and fall back to the packaged default.
    """

    def __init__(self, kind: str, problems: Optional[List[str]] = None):
        self.kind = kind
        self.problems = list(problems or [])
        detail = "; ".join(self.problems) if self.problems else "invalid document"
        super().__init__(f"Invalid {kind}: {detail}")


class ConfigImportError(OrderflowError):
    """Tabular import input could not be read at all."""
