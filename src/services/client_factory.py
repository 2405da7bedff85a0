"""Build the configured Remote Resource Client."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.services.database import Database
from src.services.postgrest_client import PostgrestResourceClient
from src.services.sqlite_resource_client import SQLiteResourceClient

if TYPE_CHECKING:
    from src.models.config import Config
    from src.services.protocols import RemoteResourceClientProtocol

logger = structlog.get_logger(__name__)


def build_resource_client(
    config: Config,
    access_token: str | None = None,
) -> RemoteResourceClientProtocol:
    """Create a client for one request or command; the caller closes it.

    Uses PostgREST when postgrest_url is set, the local SQLite database
    otherwise. access_token is the caller's bearer token, forwarded so
    row-level security applies to the caller.
    """
    if config.uses_postgrest:
        if not config.postgrest_api_key:
            msg = "postgrest_api_key is required when postgrest_url is set"
            raise ValueError(msg)
        return PostgrestResourceClient(
            base_url=config.postgrest_url or "",
            api_key=config.postgrest_api_key,
            table=config.resource_table,
            access_token=access_token,
            timeout=config.request_timeout_seconds,
        )

    return SQLiteResourceClient(
        Database(db_path=config.database_path),
        table=config.resource_table,
        owns_database=True,
    )
