"""Translate Supabase client failures into domain errors."""

from typing import Protocol

import httpx
from postgrest.exceptions import APIError

from nomnom.domain.errors import StoreUnavailableError


class _Executable(Protocol):
    def execute(self) -> object: ...


def execute(query: _Executable, action: str):  # type: ignore[no-untyped-def]
    """Run a PostgREST query, raising ``StoreUnavailableError`` on failure."""
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StoreUnavailableError(f"Supabase {action} failed: {exc}") from exc
