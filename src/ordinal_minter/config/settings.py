"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``ORDMINT_``, nested via ``__``)
2. YAML config file (``ORDMINT_CONFIG_PATH`` env var or :meth:`AppConfig.from_yaml`)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ordinal_minter.models import Network

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class CreationMode(enum.StrEnum):
    """How the backend and wallet cooperate to produce an inscription.

    ``PSBT``: backend prepares an unsigned PSBT, the wallet signs it without
    broadcasting, the backend broadcasts the signed artifact.
    ``INSCRIPTION``: backend prepares an inscription request, the wallet
    builds, signs and broadcasts it itself and returns the final txid.
    """

    PSBT = "psbt"
    INSCRIPTION = "inscription"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class NetworkEndpoints(BaseModel):
    """Endpoints that depend on the active chain selection."""

    provider_url: str
    wallet_network: str
    content_url_template: str


def _mainnet_endpoints() -> NetworkEndpoints:
    return NetworkEndpoints(
        provider_url="https://blockstream.info/api",
        wallet_network="Mainnet",
        content_url_template="https://ord.xverse.app/content/{inscription_id}",
    )


def _testnet_endpoints() -> NetworkEndpoints:
    return NetworkEndpoints(
        provider_url="https://blockstream.info/testnet/api",
        wallet_network="Testnet",
        content_url_template="https://ord-testnet.xverse.app/content/{inscription_id}",
    )


class BackendConfig(BaseSettings):
    """Transaction-construction backend settings."""

    model_config = SettingsConfigDict(
        env_prefix="ORDMINT_BACKEND__",
        case_sensitive=False,
    )

    url: str = "http://localhost:3002/api"
    token: str = ""
    timeout: float = 30.0
    mode: CreationMode = Field(
        default=CreationMode.PSBT,
        description="Creation flow: psbt (backend broadcasts) or inscription (wallet broadcasts)",
    )


class WalletBridgeConfig(BaseSettings):
    """JSON-RPC wallet bridge settings."""

    model_config = SettingsConfigDict(
        env_prefix="ORDMINT_WALLET__",
        case_sensitive=False,
    )

    url: str = "http://localhost:3003/rpc"
    timeout: float = 300.0
    message: str = "Address for receiving ordinals and payment"


class PaginationConfig(BaseSettings):
    """Inscription listing settings."""

    model_config = SettingsConfigDict(
        env_prefix="ORDMINT_PAGINATION__",
        case_sensitive=False,
    )

    page_size: int = Field(default=60, gt=0)


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="ORDMINT_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping from *path*; missing, empty or non-mapping files give ``{}``."""
    source = Path(path)
    if not source.is_file():
        return {}
    with source.open(encoding="utf-8") as fh:
        loaded = yaml.safe_load(fh)
    return loaded if isinstance(loaded, dict) else {}


def _with_defaults(values: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Fill gaps in *values* from *defaults*, one level into nested sections."""
    merged = dict(values)
    for key, fallback in defaults.items():
        current = merged.get(key)
        if current is None:
            merged[key] = fallback
        elif isinstance(current, dict) and isinstance(fallback, dict):
            merged[key] = {**fallback, **current}
    return merged


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``ORDMINT_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORDMINT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    config_path: str = ""
    network: Network = Network.TESTNET
    provider_timeout: float = 30.0

    mainnet: NetworkEndpoints = Field(default_factory=_mainnet_endpoints)
    testnet: NetworkEndpoints = Field(default_factory=_testnet_endpoints)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    wallet: WalletBridgeConfig = Field(default_factory=WalletBridgeConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer the YAML file named by ``config_path`` beneath env and init values."""
        config_path = values.get("config_path")
        if not config_path:
            return values
        return _with_defaults(values, _load_yaml(config_path))

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Build the config with *path* as the YAML layer; env vars still win."""
        return cls(config_path=str(path))

    def endpoints_for(self, network: Network) -> NetworkEndpoints:
        """Return the endpoint set for *network*."""
        return self.mainnet if network == Network.MAINNET else self.testnet
