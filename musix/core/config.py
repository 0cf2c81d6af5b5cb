"""
Configuration management for musix.

An adapter needs the provider application's client credentials and,
optionally, a few HTTP tuning knobs. Configuration can be built in code,
passed as a plain mapping, or loaded from a YAML file with credentials
overridden by environment variables.

Example musix.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"

    http:
      timeout: 30            # seconds, per network call
      token_expiry_margin: 30  # refresh tokens this many seconds early
      max_concurrency: 10    # parallel playlist-track hydrations

Environment Variables:
    SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET take precedence over the
    file. A .env file in the working directory is honoured.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from musix.core.exceptions import ConfigError


# Default configuration file name (looked up in the current working directory)
CONFIG_FILENAME = "musix.yaml"

SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

ENV_CLIENT_ID = "SPOTIFY_CLIENT_ID"
ENV_CLIENT_SECRET = "SPOTIFY_CLIENT_SECRET"


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify application credentials for the Client Credentials flow.

    Obtained from the Spotify Developer Dashboard:
    https://developer.spotify.com/dashboard

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
    """
    client_id: str
    client_secret: str = field(repr=False)

    def __post_init__(self) -> None:
        for name in ("client_id", "client_secret"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(
                    f"'spotify.{name}' must be a non-empty string",
                    details={"field": f"spotify.{name}"}
                )
            object.__setattr__(self, name, value.strip())

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "SpotifyConfig":
        """
        Build credentials from a mapping.

        Accepts both snake_case keys and the camelCase spelling
        (clientId/clientSecret) used by the JavaScript API.

        Raises:
            ConfigError: If either credential is missing or empty.
        """
        if not isinstance(mapping, Mapping):
            raise ConfigError(
                "Spotify configuration must be a mapping",
                details={"type": type(mapping).__name__}
            )
        client_id = mapping.get("client_id", mapping.get("clientId"))
        client_secret = mapping.get("client_secret", mapping.get("clientSecret"))
        return cls(client_id=client_id, client_secret=client_secret)


@dataclass(frozen=True)
class HttpConfig:
    """
    Network behaviour of an adapter.

    Attributes:
        timeout: Overall timeout in seconds for each network call.
        token_expiry_margin: Seconds before expiry at which a cached
                             token is treated as stale.
        max_concurrency: Upper bound on concurrent hydration requests
                         issued by a single get_playlist call.
        api_base_url: Base URL of the Web API.
        token_url: Client-credentials token endpoint.
    """
    timeout: float = 30.0
    token_expiry_margin: float = 30.0
    max_concurrency: int = 10
    api_base_url: str = SPOTIFY_API_BASE_URL
    token_url: str = SPOTIFY_TOKEN_URL

    def __post_init__(self) -> None:
        # timeout must be > 0, the expiry margin may be 0
        for name, allow_zero in (("timeout", False), ("token_expiry_margin", True)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) \
                    or value < 0 or (value == 0 and not allow_zero):
                qualifier = "non-negative" if allow_zero else "positive"
                raise ConfigError(
                    f"'http.{name}' must be a {qualifier} number",
                    details={"field": f"http.{name}", "value": value}
                )
            object.__setattr__(self, name, float(value))

        if isinstance(self.max_concurrency, bool) or not isinstance(self.max_concurrency, int) \
                or self.max_concurrency < 1:
            raise ConfigError(
                "'http.max_concurrency' must be a positive integer",
                details={"field": "http.max_concurrency", "value": self.max_concurrency}
            )

        for name in ("api_base_url", "token_url"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(
                    f"'http.{name}' must be a non-empty string",
                    details={"field": f"http.{name}"}
                )
            object.__setattr__(self, name, value.strip().rstrip("/"))


@dataclass(frozen=True)
class Config:
    """
    Complete adapter configuration.

    Attributes:
        spotify: Spotify credentials.
        http: Network settings.
    """
    spotify: SpotifyConfig
    http: HttpConfig = field(default_factory=HttpConfig)


def coerce_config(config: "Config | SpotifyConfig | Mapping[str, Any]") -> Config:
    """
    Normalize the accepted configuration shapes into a Config.

    Accepted inputs:
        - Config: returned unchanged
        - SpotifyConfig: wrapped with default HttpConfig
        - Mapping with client_id/client_secret at top level
        - Mapping shaped like musix.yaml (spotify: / http: sections)

    Raises:
        ConfigError: If the input is malformed.
    """
    if isinstance(config, Config):
        return config
    if isinstance(config, SpotifyConfig):
        return Config(spotify=config)
    if isinstance(config, Mapping):
        if "spotify" in config:
            return _parse_config(config)
        return Config(spotify=SpotifyConfig.from_mapping(config))
    raise ConfigError(
        "Adapter configuration must be a Config, SpotifyConfig or mapping",
        details={"type": type(config).__name__}
    )


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from musix.yaml and the environment.

    Args:
        config_path: Optional explicit path to the config file.
                     If None, looks for musix.yaml in the current directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config_path does not exist, the YAML is
                     invalid, or the resulting credentials are incomplete.

    Behavior:
        1. Load .env into the process environment (existing vars win)
        2. Read and parse YAML if the file exists
        3. Override spotify credentials from SPOTIFY_CLIENT_ID/SECRET
        4. Validate and return a frozen Config
    """
    load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        raw_config = _read_yaml(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    spotify_section = dict(raw_config.get("spotify") or {})
    env_overrides = {
        "client_id": os.getenv(ENV_CLIENT_ID),
        "client_secret": os.getenv(ENV_CLIENT_SECRET),
    }
    for key, value in env_overrides.items():
        if value:
            spotify_section[key] = value

    raw_config["spotify"] = spotify_section
    return _parse_config(raw_config)


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )
    return raw_config


def _parse_config(raw_config: Mapping[str, Any]) -> Config:
    """
    Validate the raw configuration structure and build a Config.

    Raises:
        ConfigError: If a section is not a dictionary or a value is invalid.
    """
    for section in ("spotify", "http"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, Mapping):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    spotify_config = SpotifyConfig.from_mapping(raw_config.get("spotify") or {})
    http_config = _parse_http_config(raw_config.get("http"))
    return Config(spotify=spotify_config, http=http_config)


def _parse_http_config(http_section: Mapping[str, Any] | None) -> HttpConfig:
    """
    Build the http configuration section.

    Applies defaults for anything not specified; HttpConfig validates
    the values.

    Raises:
        ConfigError: If a numeric value is out of range or a URL is empty.
    """
    if not http_section:
        return HttpConfig()

    keys = ("timeout", "token_expiry_margin", "max_concurrency", "api_base_url", "token_url")
    values = {key: http_section[key] for key in keys if http_section.get(key) is not None}
    return HttpConfig(**values)
