"""Translate PostgREST failures into the application's error taxonomy."""

from typing import Any

import httpx
from postgrest.exceptions import APIError

from flexcoach_diet.domain.errors import ConflictError, StorageError

UNIQUE_VIOLATION = "23505"


def execute(query: Any, subject: str) -> Any:
    """Run a PostgREST request builder.

    A unique-constraint violation becomes ``ConflictError``; every other
    driver or transport failure becomes ``StorageError``.
    """
    try:
        return query.execute()
    except APIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise ConflictError(f"{subject} already exists") from exc
        raise StorageError(f"{subject} storage failed: {exc.message}") from exc
    except httpx.HTTPError as exc:
        raise StorageError(f"{subject} storage is unreachable") from exc
