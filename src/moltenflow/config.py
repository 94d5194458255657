"""Application configuration using pydantic-settings.

Holds RPC endpoints, upstream service URLs and the orchestration knobs
(slippage, refresh throttle, account lock timeout).
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    dry_run: bool = Field(
        default=True, description="Use simulated route/signing backends (no real transactions)"
    )

    # ======================
    # Chain RPC Endpoints
    # ======================
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com", description="Ethereum RPC URL")
    optimism_rpc_url: str = Field(
        default="https://rpc.ankr.com/optimism", description="Optimism RPC URL"
    )
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")
    arbitrum_rpc_url: str = Field(
        default="https://arb1.arbitrum.io/rpc", description="Arbitrum One RPC URL"
    )
    sonic_rpc_url: str = Field(default="https://rpc.soniclabs.com", description="Sonic RPC URL")

    # ======================
    # Wallet Operation API
    # ======================
    wallet_api_url: str = Field(
        default="https://unidexv4-api-production.up.railway.app/api/wallet",
        description="Endpoint returning deposit/withdraw calldata for the trading contract",
    )

    # ======================
    # Cross-chain Route Service
    # ======================
    squid_api_url: str = Field(
        default="https://apiplus.squidrouter.com", description="Cross-chain route service base URL"
    )
    squid_integrator_id: str = Field(default="", description="Route service integrator id")
    squid_slippage_percent: float = Field(
        default=10.0, description="Route service slippage tolerance in percent"
    )

    # ======================
    # Vault Route Service
    # ======================
    enso_api_url: str = Field(
        default="https://api.enso.finance/api/v1", description="Vault route service base URL"
    )
    enso_api_key: str = Field(default="", description="Vault route service API key")
    enso_slippage_bps: int = Field(default=50, description="Vault route slippage (bps, 50 = 0.5%)")

    # ======================
    # Price / Yield Services
    # ======================
    llama_price_url: str = Field(
        default="https://coins.llama.fi/prices/current", description="Llama price API"
    )
    enso_price_url: str = Field(
        default="https://api.enso.finance/api/v1/prices",
        description="Enso price API (chain id is appended)",
    )
    vault_apy_url: str = Field(
        default="https://enso-microservice-production.up.railway.app/apy",
        description="Lending vault APY service",
    )

    # ======================
    # Orchestration
    # ======================
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    refresh_throttle_ms: int = Field(
        default=3000, description="Minimum interval between post-transaction balance refreshes"
    )
    account_lock_timeout: float = Field(
        default=30.0, description="Seconds to wait for the per-account submission lock"
    )
    gate_deposit_approval: bool = Field(
        default=False,
        description="Check allowance before depositing instead of always approving",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_rpc_url(self, chain_id: int) -> str:
        """Get RPC URL for an EVM chain id."""
        rpc_map = {
            1: self.eth_rpc_url,
            10: self.optimism_rpc_url,
            146: self.sonic_rpc_url,
            8453: self.base_rpc_url,
            42161: self.arbitrum_rpc_url,
        }
        return rpc_map.get(chain_id, "")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "rpc": {
                "ethereum": self.eth_rpc_url,
                "optimism": self.optimism_rpc_url,
                "base": self.base_rpc_url,
                "arbitrum": self.arbitrum_rpc_url,
                "sonic": self.sonic_rpc_url,
            },
            "services": {
                "wallet_api": self.wallet_api_url,
                "squid": self.squid_api_url,
                "squid_integrator_id": "***" if self.squid_integrator_id else "(not set)",
                "enso": self.enso_api_url,
                "enso_api_key": "***" if self.enso_api_key else "(not set)",
            },
            "orchestration": {
                "refresh_throttle_ms": self.refresh_throttle_ms,
                "account_lock_timeout": self.account_lock_timeout,
                "gate_deposit_approval": self.gate_deposit_approval,
                "squid_slippage_percent": self.squid_slippage_percent,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
