"""Database connection settings and the error raised by database access."""

from __future__ import annotations

from dataclasses import dataclass, field


class DatabaseError(Exception):
    """A failure while connecting, querying or (de)serialising database data.

    ``kind`` is one of ``"connection"``, ``"query"`` or ``"serialization"``;
    ``cause`` holds the underlying error or message.
    """

    _LABELS = {
        "connection": "database connection error",
        "query": "query error",
        "serialization": "serialization error",
    }

    def __init__(self, kind: str, cause: object) -> None:
        try:
            label = self._LABELS[kind]
        except KeyError:
            raise ValueError(f"unknown database error kind: {kind!r}") from None
        super().__init__(f"{label}: {cause}")
        self.kind = kind
        self.cause = cause


@dataclass
class DatabaseConfig:
    """Where and as whom to connect to the PostgreSQL database."""

    host: str
    port: int
    database: str
    username: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"port must be an integer, got {self.port!r}")
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")

    def connection_string(self) -> str:
        """The key=value connection string understood by PostgreSQL drivers."""
        return (
            f"host={self.host} port={self.port} dbname={self.database} "
            f"user={self.username} password={self.password}"
        )