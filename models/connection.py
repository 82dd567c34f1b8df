"""
models/connection.py
--------------------
Value objects produced while resolving a DATABASE_URL.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from config import POOL_CONNECT_TIMEOUT_MS, POOL_IDLE_TIMEOUT_MS, POOL_SIZE_MAX


@dataclass(frozen=True)
class ConnectionSpec:
    """
    Ready-to-use connection parameters.

    Attributes:
        host: Original hostname, or the resolved IPv4 literal.
        port: TCP port (always positive).
        database: Database name, defaulted when the URI has no path.
        user: Decoded user name.
        password: Decoded password. Excluded from ``repr``.
        ssl_enabled: False only for loopback URIs.
        pool_size_max: Upper bound of pooled connections.
        idle_timeout_ms: How long an idle connection may stay open.
        connect_timeout_ms: Upper bound for opening or acquiring a connection.
    """
    host: str
    port: int
    database: str
    user: str
    password: str = field(repr=False)
    ssl_enabled: bool
    pool_size_max: int = POOL_SIZE_MAX
    idle_timeout_ms: int = POOL_IDLE_TIMEOUT_MS
    connect_timeout_ms: int = POOL_CONNECT_TIMEOUT_MS

    def __post_init__(self):
        if not self.host:
            raise ValueError("host must not be empty")
        if self.port <= 0:
            raise ValueError(f"port must be positive, got {self.port}")

    def connect_kwargs(self) -> dict:
        """
        Keyword arguments for ``psycopg2.connect`` / the psycopg2 pools.

        ``sslmode=require`` encrypts without validating the server's CA chain.
        """
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
            "sslmode": "require" if self.ssl_enabled else "disable",
            # libpq wants whole seconds
            "connect_timeout": max(1, self.connect_timeout_ms // 1000),
        }

    def sanitized(self) -> dict:
        """All fields except the password, for logging."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "ssl_enabled": self.ssl_enabled,
            "pool_size_max": self.pool_size_max,
            "idle_timeout_ms": self.idle_timeout_ms,
            "connect_timeout_ms": self.connect_timeout_ms,
        }


@dataclass(frozen=True)
class HostClassification:
    """Diagnostic facts about the target host. Never blocks a connection."""
    is_pooler_host: bool
    is_direct_host: bool
    has_pgbouncer_flag: bool
    ssl_mode: str = "none"
    provider: str = "unknown"  # 'supabase' | 'render' | 'unknown'


@dataclass(frozen=True)
class ConfigurationMismatchWarning:
    """An advisory finding about an inconsistent connection setup."""
    code: str
    message: str

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


@dataclass(frozen=True)
class Resolved:
    """Successful IPv4 lookup."""
    host: str
    address: str


@dataclass(frozen=True)
class Fallback:
    """Failed lookup: the original hostname is used as-is."""
    host: str
    cause: Exception

    @property
    def address(self) -> str:
        return self.host


DnsOutcome = Union[Resolved, Fallback]


@dataclass(frozen=True)
class ResolvedConnection:
    """Everything the resolver learned about a DATABASE_URL."""
    spec: ConnectionSpec
    classification: HostClassification
    dns: Optional[DnsOutcome] = None
    warnings: tuple[ConfigurationMismatchWarning, ...] = ()
