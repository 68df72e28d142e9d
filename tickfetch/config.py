"""
Client configuration with validation and environment overrides.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PREFIX = "TICKFETCH_"


@dataclass
class ClientConfig:
    """
    Settings for one client run.

    Attributes:
        host: Feed host.
        port: Feed TCP port.
        connect_timeout: Seconds allowed to establish each connection.
        read_timeout: Seconds allowed for each read on a connection.
        request_timeout: Seconds allowed for one whole request/response cycle.
        max_concurrent_resends: Resend requests in flight at once (1 = serial).
        output_path: Where the JSON output is written.
    """

    host: str = "localhost"
    port: int = 3000
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    request_timeout: float = 120.0
    max_concurrent_resends: int = 1
    output_path: str = "stock_data.json"

    def __post_init__(self) -> None:
        if not self.host or not self.host.strip():
            raise ValueError("host cannot be empty")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be in 1..65535, got {self.port}")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {self.connect_timeout}")
        if self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive, got {self.read_timeout}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_concurrent_resends < 1:
            raise ValueError(
                f"max_concurrent_resends must be >= 1, got {self.max_concurrent_resends}"
            )
        if not self.output_path or not self.output_path.strip():
            raise ValueError("output_path cannot be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """
        Build a config from TICKFETCH_* environment variables.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a numeric variable cannot be parsed or a value is invalid.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        fields = {
            "host": str,
            "port": int,
            "connect_timeout": float,
            "read_timeout": float,
            "request_timeout": float,
            "max_concurrent_resends": int,
        }
        for name, convert in fields.items():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                kwargs[name] = convert(raw)
            except ValueError:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}"
                ) from None

        output = env.get(ENV_PREFIX + "OUTPUT")
        if output:
            kwargs["output_path"] = output

        return cls(**kwargs)
