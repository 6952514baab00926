"""Config file."""
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from token_gateway.app.domain.addresses import is_valid_address


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("token-gateway", alias="PROJECT_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # CHAIN PROVIDER
    alchemy_api_key: SecretStr = Field(..., alias="ALCHEMY_API_KEY")
    alchemy_network: str = Field("eth-sepolia", alias="ALCHEMY_NETWORK")
    rpc_url: str | None = Field(None, alias="RPC_URL")
    history_api_url: str | None = Field(None, alias="HISTORY_API_URL")
    rpc_timeout_seconds: float = Field(30.0, alias="RPC_TIMEOUT_SECONDS")

    # TOKEN
    token_address: str = Field(..., alias="TOKEN_ADDRESS")
    token_decimals: int = Field(18, alias="TOKEN_DECIMALS", ge=0, le=77)
    token_mint_function: str = Field("mint", alias="TOKEN_MINT_FUNCTION")
    token_transfer_function: str = Field("transfer", alias="TOKEN_TRANSFER_FUNCTION")

    # SIGNER
    private_key: SecretStr = Field(..., alias="PRIVATE_KEY")
    confirmation_timeout_seconds: float = Field(120.0, alias="CONFIRMATION_TIMEOUT_SECONDS", gt=0)
    confirmation_poll_seconds: float = Field(1.0, alias="CONFIRMATION_POLL_SECONDS", gt=0)
    broadcast_attempts: int = Field(3, alias="BROADCAST_ATTEMPTS", ge=1)
    read_attempts: int = Field(2, alias="READ_ATTEMPTS", ge=1)

    # CACHE
    redis_url: str | None = Field(None, alias="REDIS_URL")
    cache_backend: str | None = Field(None, alias="CACHE_BACKEND")
    history_cache_ttl_seconds: float = Field(20.0, alias="HISTORY_CACHE_TTL_SECONDS", gt=0)
    history_limit: int = Field(10, alias="HISTORY_LIMIT", ge=1)
    history_categories: str = Field("external,internal,erc20,erc721,erc1155", alias="HISTORY_CATEGORIES")

    # HTTP
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(5000, alias="PORT")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    @field_validator("token_address")
    @classmethod
    def check_token_address(cls, v: str) -> str:
        if not is_valid_address(v):
            raise ValueError("TOKEN_ADDRESS must be 0x followed by 40 hex characters")
        return v

    @model_validator(mode="after")
    def assemble_urls(self) -> "Settings":
        if not self.rpc_url:
            network = self.alchemy_network
            key = self.alchemy_api_key.get_secret_value()

            self.rpc_url = f"https://{network}.g.alchemy.com/v2/{key}"

        if not self.history_api_url:
            self.history_api_url = self.rpc_url

        if not self.cache_backend:
            self.cache_backend = "redis" if self.redis_url else "memory"

        return self

    @property
    def categories(self) -> list[str]:
        return [c.strip() for c in self.history_categories.split(",") if c.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
