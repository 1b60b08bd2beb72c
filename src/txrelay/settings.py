"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Executor settings and explicit environment loading.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .payload import sol_to_lamports

NetworkName = Literal["devnet", "testnet", "mainnet"]
Commitment = Literal["processed", "confirmed", "finalized"]

DEFAULT_BUNDLE_TIP_SOL = 0.0001
DEFAULT_RELAY_FEE_SOL = 0.001
DEFAULT_PRIORITY_TIP_SOL = 0.0001

_RPC_ENDPOINTS: dict[str, str] = {
    "mainnet": "https://api.mainnet-beta.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "devnet": "https://api.devnet.solana.com",
}

_BUNDLE_ENDPOINTS: dict[str, tuple[str, ...]] = {
    "devnet": ("https://devnet.block-engine.jito.wtf/api/v1/bundles",),
    "mainnet": (
        "https://mainnet.block-engine.jito.wtf/api/v1/bundles",
        "https://amsterdam.mainnet.block-engine.jito.wtf/api/v1/bundles",
        "https://ny.mainnet.block-engine.jito.wtf/api/v1/bundles",
        "https://tokyo.mainnet.block-engine.jito.wtf/api/v1/bundles",
    ),
}

BUNDLE_TIP_ACCOUNTS: tuple[str, ...] = (
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
)

RELAY_TIP_ACCOUNTS: tuple[str, ...] = ("HWEoBxYs7ssKuudEjzjmpfJVX7Dvi7wescFsVx2L5yoY",)

PRIORITY_TIP_ACCOUNTS: tuple[str, ...] = (
    "TEMPaMeCRFAS9EKF53Jd6KpHxgL47uWLcpFArU1Fanq",
    "noz3jAjPiHuBPqiSPkkugaJDkJscPuRhYnSpbi8UvC4",
    "noz3str9KXfpKknefHji8L1mPgimezaiUyCHYMDv1GE",
    "noz6uoYCDijhu1V7cutCpwxNiSovEwLdRHPwmgCGDNo",
)


class ChannelSettings(BaseModel):
    """Settings for one acceptance channel."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = False
    endpoints: tuple[str, ...] = ()
    fee_sol: float = Field(default=0.0, ge=0.0)
    auth_token: str = ""
    tip_accounts: tuple[str, ...] = ()

    @property
    def fee_lamports(self) -> int:
        return sol_to_lamports(self.fee_sol)


class ExecutorSettings(BaseModel):
    """Explicit settings consumed by the builder and execution engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    network: NetworkName = "devnet"
    rpc_endpoint: str | None = None
    commitment: Commitment = "confirmed"

    bundle: ChannelSettings = Field(
        default_factory=lambda: ChannelSettings(fee_sol=DEFAULT_BUNDLE_TIP_SOL)
    )
    relay: ChannelSettings = Field(
        default_factory=lambda: ChannelSettings(fee_sol=DEFAULT_RELAY_FEE_SOL)
    )
    priority_rpc: ChannelSettings = Field(
        default_factory=lambda: ChannelSettings(fee_sol=DEFAULT_PRIORITY_TIP_SOL)
    )

    max_retries: int = Field(default=3, ge=0)
    base_delay_s: float = Field(default=1.0, ge=0.0)
    overall_timeout_s: float = Field(default=10.0, gt=0.0)
    channel_timeout_s: float | None = Field(default=None, gt=0.0)
    health_timeout_s: float = Field(default=5.0, gt=0.0)
    confirm_poll_interval_s: float = Field(default=0.4, gt=0.0)

    @staticmethod
    def from_mapping(data: Mapping[str, Any]) -> "ExecutorSettings":
        """Validate a plain mapping into settings."""
        try:
            return ExecutorSettings.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid executor settings: {exc}") from exc

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "ExecutorSettings":
        """Load settings from ``TXRELAY_*`` environment variables."""
        env = os.environ if environ is None else environ

        def _flag(name: str) -> bool:
            return env.get(name, "").strip().lower() in {"1", "true", "yes", "on"}

        def _list(name: str) -> tuple[str, ...]:
            raw = env.get(name, "")
            return tuple(item.strip() for item in raw.split(",") if item.strip())

        channel_timeout = env.get("TXRELAY_CHANNEL_TIMEOUT_S")
        data: dict[str, Any] = {
            "network": env.get("TXRELAY_NETWORK", "devnet"),
            "rpc_endpoint": env.get("TXRELAY_RPC_ENDPOINT") or None,
            "commitment": env.get("TXRELAY_COMMITMENT", "confirmed"),
            "bundle": {
                "enabled": _flag("TXRELAY_USE_BUNDLE"),
                "endpoints": _list("TXRELAY_BUNDLE_ENDPOINTS"),
                "fee_sol": env.get("TXRELAY_BUNDLE_TIP_SOL", str(DEFAULT_BUNDLE_TIP_SOL)),
            },
            "relay": {
                "enabled": _flag("TXRELAY_USE_RELAY"),
                "endpoints": _list("TXRELAY_RELAY_ENDPOINTS"),
                "fee_sol": env.get("TXRELAY_RELAY_FEE_SOL", str(DEFAULT_RELAY_FEE_SOL)),
                "auth_token": env.get("TXRELAY_RELAY_AUTH", ""),
            },
            "priority_rpc": {
                "enabled": _flag("TXRELAY_USE_PRIORITY_RPC"),
                "endpoints": _list("TXRELAY_PRIORITY_ENDPOINTS"),
                "fee_sol": env.get("TXRELAY_PRIORITY_TIP_SOL", str(DEFAULT_PRIORITY_TIP_SOL)),
                "auth_token": env.get("TXRELAY_PRIORITY_API_KEY", ""),
            },
            "max_retries": env.get("TXRELAY_MAX_RETRIES", "3"),
            "base_delay_s": env.get("TXRELAY_BASE_DELAY_S", "1.0"),
            "overall_timeout_s": env.get("TXRELAY_OVERALL_TIMEOUT_S", "10"),
            "channel_timeout_s": channel_timeout or None,
            "health_timeout_s": env.get("TXRELAY_HEALTH_TIMEOUT_S", "5"),
            "confirm_poll_interval_s": env.get("TXRELAY_CONFIRM_POLL_INTERVAL_S", "0.4"),
        }
        return ExecutorSettings.from_mapping(data)

    def resolved_rpc_endpoint(self) -> str:
        return self.rpc_endpoint or _RPC_ENDPOINTS[self.network]

    def bundle_endpoints(self) -> tuple[str, ...]:
        if self.bundle.endpoints:
            return self.bundle.endpoints
        return _BUNDLE_ENDPOINTS.get(self.network, _BUNDLE_ENDPOINTS["mainnet"])

    def relay_endpoint(self) -> str:
        if self.relay.endpoints:
            return self.relay.endpoints[0]
        if self.network == "mainnet":
            return "https://virginia.solana.dex.blxrbdn.com"
        return "https://serum-nlb-7d4cfbdeba2f3d0e.elb.us-east-1.amazonaws.com"

    def priority_endpoint(self) -> str:
        if self.priority_rpc.endpoints:
            return self.priority_rpc.endpoints[0]
        return "https://ams1.secure.nozomi.temporal.xyz/?c="

    def is_bundle_enabled(self) -> bool:
        return self.bundle.enabled and self.bundle.fee_lamports > 0

    def is_relay_enabled(self) -> bool:
        return (
            self.relay.enabled
            and bool(self.relay.auth_token)
            and self.relay.fee_lamports > 0
        )

    def is_priority_rpc_enabled(self) -> bool:
        return (
            self.priority_rpc.enabled
            and bool(self.priority_rpc.auth_token)
            and self.priority_rpc.fee_lamports > 0
        )

    def summary(self) -> dict[str, Any]:
        """Log-safe configuration summary without credentials."""
        return {
            "network": self.network,
            "rpc_endpoint": self.resolved_rpc_endpoint(),
            "commitment": self.commitment,
            "bundle_enabled": self.is_bundle_enabled(),
            "relay_enabled": self.is_relay_enabled(),
            "priority_rpc_enabled": self.is_priority_rpc_enabled(),
            "max_retries": self.max_retries,
            "base_delay_s": self.base_delay_s,
            "overall_timeout_s": self.overall_timeout_s,
        }
