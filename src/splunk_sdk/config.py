"""
Configuration management for Splunk connections
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .context import Namespace

TRUE_VALUES = ("true", "1", "yes")


@dataclass
class SplunkConfig:
    """Splunk connection configuration"""

    host: str
    port: int = 8089
    scheme: str = "https"
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    session_key: Optional[str] = None
    verify_ssl: bool = True
    timeout: int = 30
    owner: Optional[str] = None
    app: Optional[str] = None

    @classmethod
    def from_env(cls) -> "SplunkConfig":
        """Create configuration from environment variables"""

        # Required host
        host = os.getenv("SPLUNK_HOST")
        if not host:
            raise ValueError("SPLUNK_HOST environment variable is required")

        # Authentication - token, session key or username/password
        token = os.getenv("SPLUNK_TOKEN")
        session_key = os.getenv("SPLUNK_SESSION_KEY")
        username = os.getenv("SPLUNK_USERNAME")
        password = os.getenv("SPLUNK_PASSWORD")

        if not token and not session_key and not (username and password):
            raise ValueError(
                "Either SPLUNK_TOKEN, SPLUNK_SESSION_KEY or both SPLUNK_USERNAME and SPLUNK_PASSWORD "
                "environment variables are required"
            )

        return cls(
            host=host,
            port=int(os.getenv("SPLUNK_PORT", "8089")),
            scheme=os.getenv("SPLUNK_SCHEME", "https"),
            username=username,
            password=password,
            token=token,
            session_key=session_key,
            verify_ssl=os.getenv("SPLUNK_VERIFY_SSL", "true").lower() in TRUE_VALUES,
            timeout=int(os.getenv("SPLUNK_TIMEOUT", "30")),
            owner=os.getenv("SPLUNK_OWNER"),
            app=os.getenv("SPLUNK_APP"),
        )

    @classmethod
    def from_splunkrc(cls, path: str = "~/.splunkrc") -> "SplunkConfig":
        """
        Create configuration from a .splunkrc file of key=value lines.

        A missing file yields https://localhost:8089 with the default admin
        credentials. Certificates are not verified unless the file sets
        verify=true.
        """
        values = {
            "host": "localhost",
            "port": "8089",
            "scheme": "https",
            "username": "admin",
            "password": "changeme",
        }

        rc_path = Path(path).expanduser()
        if rc_path.is_file():
            for line in rc_path.read_text().splitlines():
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip().lower()] = value.strip()

        return cls(
            host=values["host"],
            port=int(values["port"]),
            scheme=values["scheme"],
            username=values.get("username"),
            password=values.get("password"),
            token=values.get("token"),
            verify_ssl=values.get("verify", "false").lower() in TRUE_VALUES,
            owner=values.get("owner"),
            app=values.get("app"),
        )

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not self.token and not self.session_key and not (self.username and self.password):
            raise ValueError("Either token, session key or username/password must be provided")

        if self.scheme not in ("http", "https"):
            raise ValueError("Scheme must be either 'http' or 'https'")

        if self.port < 1 or self.port > 65535:
            raise ValueError("Port must be between 1 and 65535")

    @property
    def base_url(self) -> str:
        """Get the base URL for Splunk API"""
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def namespace(self) -> Namespace:
        """Namespace selected by owner and app, or the default one"""
        if self.owner is None and self.app is None:
            return Namespace()
        return Namespace(self.owner, self.app)

    def __repr__(self) -> str:
        """String representation without sensitive data"""
        return (
            f"SplunkConfig("
            f"host='{self.host}', "
            f"port={self.port}, "
            f"scheme='{self.scheme}', "
            f"username={'***' if self.username else None}, "
            f"password={'***' if self.password else None}, "
            f"token={'***' if self.token else None}, "
            f"session_key={'***' if self.session_key else None}, "
            f"verify_ssl={self.verify_ssl}, "
            f"timeout={self.timeout}, "
            f"owner={self.owner!r}, "
            f"app={self.app!r}"
            f")"
        )
