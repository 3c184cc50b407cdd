"""
SDK configuration: gateway and evaluator endpoints, contract ids, fee sizes,
refresh cadence and retry/timeouts.

- Loads sane defaults and supports overrides via environment variables (COMMUNITY_*).
- Provides helpers for building HTTP headers and validating endpoints.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .version import APP_NAME, __version__, user_agent

DEFAULT_GATEWAY = "https://arweave.net"
DEFAULT_EVALUATOR = "http://127.0.0.1:1984/rpc"

# Fee-collecting contract and the source every community is created from.
MAIN_CONTRACT = "mzvUgNc8YFk0w5K5H7c8pyT-FC5Y_ba0r7_8766Kx74"
CONTRACT_SRC = "ngMml4jmlxu0umpiQCsHgPX2pb_Yz6YDB8f7G6j-tpI"

# Reference payload sizes whose storage price is charged as the fee.
ACTION_FEE_BYTES = 400_000_000
CREATE_FEE_BYTES = 9_500_000_000


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


def _ensure_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")


@dataclass(slots=True)
class CommunityConfig:
    # Endpoints
    gateway_url: str = DEFAULT_GATEWAY
    evaluator_url: str = DEFAULT_EVALUATOR
    # Contracts
    main_contract: str = MAIN_CONTRACT
    contract_src: str = CONTRACT_SRC
    # Fees
    action_fee_bytes: int = ACTION_FEE_BYTES
    create_fee_bytes: int = CREATE_FEE_BYTES
    # Cached state
    refresh_interval: float = 120.0
    reload_timeout: float = 120.0
    # HTTP behavior
    request_timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 0.25
    # Transaction tags
    app_name: str = APP_NAME
    app_version: str = __version__
    user_agent: str = field(default_factory=user_agent)

    def __post_init__(self) -> None:
        _ensure_scheme(self.gateway_url, ("http", "https"))
        _ensure_scheme(self.evaluator_url, ("http", "https"))
        _ensure_positive("refresh_interval", self.refresh_interval)
        _ensure_positive("reload_timeout", self.reload_timeout)
        _ensure_positive("request_timeout", self.request_timeout)
        _ensure_positive("action_fee_bytes", self.action_fee_bytes)
        _ensure_positive("create_fee_bytes", self.create_fee_bytes)
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @classmethod
    def from_env(cls, prefix: str = "COMMUNITY_") -> "CommunityConfig":
        """
        Create config from environment variables:

        COMMUNITY_GATEWAY_URL        (http/https)
        COMMUNITY_EVALUATOR_URL      (http/https, JSON-RPC contract evaluator)
        COMMUNITY_MAIN_CONTRACT      (fee-collecting contract id)
        COMMUNITY_CONTRACT_SRC       (community contract source id)
        COMMUNITY_ACTION_FEE_BYTES   (int)
        COMMUNITY_CREATE_FEE_BYTES   (int)
        COMMUNITY_REFRESH_INTERVAL   (float seconds)
        COMMUNITY_RELOAD_TIMEOUT     (float seconds)
        COMMUNITY_TIMEOUT            (float seconds, per HTTP call)
        COMMUNITY_MAX_RETRIES        (int)
        COMMUNITY_BACKOFF            (float seconds)
        """
        return cls(
            gateway_url=_env(f"{prefix}GATEWAY_URL", DEFAULT_GATEWAY) or DEFAULT_GATEWAY,
            evaluator_url=_env(f"{prefix}EVALUATOR_URL", DEFAULT_EVALUATOR) or DEFAULT_EVALUATOR,
            main_contract=_env(f"{prefix}MAIN_CONTRACT", MAIN_CONTRACT) or MAIN_CONTRACT,
            contract_src=_env(f"{prefix}CONTRACT_SRC", CONTRACT_SRC) or CONTRACT_SRC,
            action_fee_bytes=int(_env(f"{prefix}ACTION_FEE_BYTES", str(ACTION_FEE_BYTES))),
            create_fee_bytes=int(_env(f"{prefix}CREATE_FEE_BYTES", str(CREATE_FEE_BYTES))),
            refresh_interval=float(_env(f"{prefix}REFRESH_INTERVAL", "120.0")),
            reload_timeout=float(_env(f"{prefix}RELOAD_TIMEOUT", "120.0")),
            request_timeout=float(_env(f"{prefix}TIMEOUT", "30.0")),
            max_retries=int(_env(f"{prefix}MAX_RETRIES", "3")),
            backoff_base=float(_env(f"{prefix}BACKOFF", "0.25")),
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["CommunityConfig"] = None, **overrides: Any
    ) -> "CommunityConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gateway_url": self.gateway_url,
            "evaluator_url": self.evaluator_url,
            "main_contract": self.main_contract,
            "contract_src": self.contract_src,
            "action_fee_bytes": int(self.action_fee_bytes),
            "create_fee_bytes": int(self.create_fee_bytes),
            "refresh_interval": float(self.refresh_interval),
            "reload_timeout": float(self.reload_timeout),
            "request_timeout": float(self.request_timeout),
            "max_retries": int(self.max_retries),
            "backoff_base": float(self.backoff_base),
            "app_name": self.app_name,
            "app_version": self.app_version,
            "user_agent": self.user_agent,
        }


__all__ = [
    "CommunityConfig",
    "DEFAULT_GATEWAY",
    "DEFAULT_EVALUATOR",
    "MAIN_CONTRACT",
    "CONTRACT_SRC",
    "ACTION_FEE_BYTES",
    "CREATE_FEE_BYTES",
]
