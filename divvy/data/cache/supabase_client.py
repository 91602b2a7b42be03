"""Supabase client wrapper for database operations."""

import logging
import os
from typing import Any

from dotenv import load_dotenv
from supabase import Client, create_client

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Wrapper for a Supabase client.

    Each instance owns its connection. Create one at startup and pass it
    down; there is no process-wide instance.

    Usage:
        client = SupabaseClient.from_env()
        if client.is_available:
            rows = client.table("analyses").select("*").limit(5).execute().data
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        client: Client | Any | None = None,
    ) -> None:
        """Initialize Supabase client.

        Args:
            url: Supabase project URL.
            key: Supabase API key.
            client: Pre-built client (takes precedence over url/key).
        """
        self._client: Client | Any | None = client
        if self._client is not None:
            return

        if not url or not key:
            logger.warning(
                "SUPABASE_URL or SUPABASE_KEY not set. "
                "Database caching will be disabled."
            )
            return

        try:
            self._client = create_client(url, key)
            logger.info("Supabase client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            self._client = None

    @classmethod
    def from_env(cls) -> "SupabaseClient":
        """Build from SUPABASE_URL / SUPABASE_KEY (a .env file is honoured)."""
        load_dotenv()
        return cls(url=os.getenv("SUPABASE_URL"), key=os.getenv("SUPABASE_KEY"))

    @property
    def client(self) -> Client | Any | None:
        """Get the underlying client."""
        return self._client

    @property
    def is_available(self) -> bool:
        """Check if Supabase client is available."""
        return self._client is not None

    def table(self, table_name: str) -> Any:
        """Get a table reference for queries.

        Args:
            table_name: Name of the table to query.

        Returns:
            Table query builder.

        Raises:
            RuntimeError: If Supabase client is not available.
        """
        if not self.is_available:
            raise RuntimeError("Supabase client is not available")
        return self._client.table(table_name)
