"""Configuration for the Bonfida Bot SDK."""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from solders.pubkey import Pubkey

from .program.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    BUY_AND_BURN_KEY,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_SIGNATURE_LIMIT,
    ENDPOINTS,
    FEE_RECEIVER_KEY,
    PROGRAM_ID,
    SERUM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)

ENV_PREFIX = "BONFIDA_BOT_"


@dataclass
class BonfidaBotConfig:
    """Resolved program identities and query limits."""

    program_id: Pubkey = PROGRAM_ID
    dex_program_id: Pubkey = SERUM_PROGRAM_ID
    token_program_id: Pubkey = TOKEN_PROGRAM_ID
    associated_token_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID
    fee_receiver: Pubkey = FEE_RECEIVER_KEY
    buy_and_burn: Pubkey = BUY_AND_BURN_KEY
    rpc_url: str = ENDPOINTS["mainnet"]
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    signature_limit: int = DEFAULT_SIGNATURE_LIMIT

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {self.max_concurrency}")
        if self.signature_limit < 1:
            raise ValueError(f"signature_limit must be at least 1, got {self.signature_limit}")

    @classmethod
    def default(cls) -> "BonfidaBotConfig":
        """Create default config (mainnet identities)."""
        return cls()

    @classmethod
    def for_cluster(cls, cluster: str) -> "BonfidaBotConfig":
        """Create config pointing at a named cluster in ENDPOINTS."""
        if cluster not in ENDPOINTS:
            raise ValueError(f"Unknown cluster: {cluster}")
        return cls(rpc_url=ENDPOINTS[cluster])

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BonfidaBotConfig":
        """Create config from BONFIDA_BOT_* environment variables.

        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        config = cls()

        def key(name: str) -> Optional[Pubkey]:
            value = env.get(ENV_PREFIX + name)
            return Pubkey.from_string(value) if value else None

        def number(name: str) -> Optional[int]:
            value = env.get(ENV_PREFIX + name)
            return int(value) if value else None

        overrides = {
            "program_id": key("PROGRAM_ID"),
            "dex_program_id": key("DEX_PROGRAM_ID"),
            "token_program_id": key("TOKEN_PROGRAM_ID"),
            "associated_token_program_id": key("ASSOCIATED_TOKEN_PROGRAM_ID"),
            "fee_receiver": key("FEE_RECEIVER"),
            "buy_and_burn": key("BUY_AND_BURN"),
            "rpc_url": env.get(ENV_PREFIX + "RPC_URL") or None,
            "max_concurrency": number("MAX_CONCURRENCY"),
            "signature_limit": number("SIGNATURE_LIMIT"),
        }
        return replace(config, **{k: v for k, v in overrides.items() if v is not None})

    def with_program_id(self, program_id: Pubkey) -> "BonfidaBotConfig":
        """Set the pool program id."""
        self.program_id = program_id
        return self

    def with_dex_program_id(self, dex_program_id: Pubkey) -> "BonfidaBotConfig":
        """Set the venue program id."""
        self.dex_program_id = dex_program_id
        return self

    def with_rpc_url(self, rpc_url: str) -> "BonfidaBotConfig":
        """Set the RPC endpoint."""
        self.rpc_url = rpc_url
        return self

    def with_max_concurrency(self, max_concurrency: int) -> "BonfidaBotConfig":
        """Set the transaction fetch parallelism bound."""
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        return self

    def with_signature_limit(self, signature_limit: int) -> "BonfidaBotConfig":
        """Set how many signatures a history query requests."""
        if signature_limit < 1:
            raise ValueError(f"signature_limit must be at least 1, got {signature_limit}")
        self.signature_limit = signature_limit
        return self
