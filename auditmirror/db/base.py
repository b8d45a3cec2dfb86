"""Database abstract interface.

Both the primary store and the audit store are reached through this
interface, so drivers never depend on a specific client library.
"""

from abc import ABC, abstractmethod
from typing import Any


class Database(ABC):
    """Minimal async SQL surface used by the audit drivers.

    Rows are returned as plain dicts keyed by column name, in the order
    the database returned the columns.
    """

    @abstractmethod
    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Run a query and return all rows."""
        pass

    @abstractmethod
    async def fetchrow(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Run a query and return the first row, or None."""
        pass

    @abstractmethod
    async def fetchval(self, query: str, *args: Any) -> Any:
        """Run a query and return the first column of the first row."""
        pass

    @abstractmethod
    async def execute(self, query: str, *args: Any) -> None:
        """Run a statement that returns no rows."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release all connections."""
        pass
