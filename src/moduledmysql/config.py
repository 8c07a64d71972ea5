# src/moduledmysql/config.py
"""MySQL connection configuration

This module provides the connection configuration dataclass consumed by
:class:`moduledmysql.connection.Database`, including pooling and logging
options and construction from ``MYSQL_*`` environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class ConnectionConfig:
    """MySQL connection configuration.

    Connection fields are passed to ``mysql.connector.connect`` through
    :meth:`to_dict`. When ``pool_size`` is set, connections are drawn from a
    ``mysql.connector.pooling.MySQLConnectionPool`` built from :meth:`pool_args`.
    """

    host: str = "localhost"
    port: int = 3306
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    charset: str = "utf8mb4"
    collation: Optional[str] = None

    # MySQL-specific connection options
    autocommit: bool = True
    init_command: Optional[str] = "SET sql_mode='STRICT_TRANS_TABLES'"
    connect_timeout: Optional[int] = None
    ssl_disabled: Optional[bool] = None

    # Pooling
    pool_name: Optional[str] = None
    pool_size: Optional[int] = None
    pool_reset_session: bool = True

    # Logging
    log_queries: bool = False
    log_level: int = logging.INFO

    # Extra driver arguments, merged last
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to ``mysql.connector.connect`` keyword arguments."""
        params = {
            'host': self.host,
            'port': self.port,
            'database': self.database,
            'user': self.username,
            'password': self.password,
            'charset': self.charset,
            'collation': self.collation,
            'autocommit': self.autocommit,
            'init_command': self.init_command,
            'connect_timeout': self.connect_timeout,
            'ssl_disabled': self.ssl_disabled,
        }

        # Only include non-None values
        config_dict = {key: value for key, value in params.items() if value is not None}
        config_dict.update(self.options)
        return config_dict

    def pool_args(self) -> Optional[Dict[str, Any]]:
        """Arguments for ``MySQLConnectionPool``, or None when pooling is off."""
        if not self.pool_size:
            return None
        return {
            'pool_name': self.pool_name or f"moduledmysql_{self.host}_{self.port}",
            'pool_size': self.pool_size,
            'pool_reset_session': self.pool_reset_session,
            **self.to_dict(),
        }

    @classmethod
    def from_env(cls, prefix: str = "MYSQL_",
                 environ: Optional[Mapping[str, str]] = None,
                 **overrides) -> "ConnectionConfig":
        """Build a config from environment variables.

        Reads ``<prefix>HOST``, ``PORT``, ``DATABASE``, ``USER``, ``PASSWORD``,
        ``CHARSET`` and ``POOL_SIZE``. Unset variables keep the field defaults;
        keyword ``overrides`` win over the environment.
        """
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}

        def read(name: str) -> Optional[str]:
            value = env.get(f"{prefix}{name}")
            return value if value not in (None, "") else None

        if read("HOST"):
            kwargs['host'] = read("HOST")
        if read("PORT"):
            kwargs['port'] = int(read("PORT"))
        if read("DATABASE"):
            kwargs['database'] = read("DATABASE")
        if read("USER"):
            kwargs['username'] = read("USER")
        if read("PASSWORD") is not None:
            kwargs['password'] = read("PASSWORD")
        if read("CHARSET"):
            kwargs['charset'] = read("CHARSET")
        if read("POOL_SIZE"):
            kwargs['pool_size'] = int(read("POOL_SIZE"))

        kwargs.update(overrides)
        return cls(**kwargs)
