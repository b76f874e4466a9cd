"""Config file."""
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("relayer-engine", alias="PROJECT_NAME")
    debug: bool = Field(False, alias="DEBUG")

    # DATABASE
    postgres_user: str = Field(..., alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(..., alias="POSTGRES_PASSWORD")
    postgres_server: str = Field(..., alias="POSTGRES_SERVER")
    postgres_port: int = Field(..., alias="POSTGRES_PORT")
    postgres_db: str = Field(..., alias="POSTGRES_DB")
    database_url: str | None = Field(None, alias="DATABASE_URL")
    sync_database_url: str | None = Field(None, alias="SYNC_DATABASE_URL")

    # UPSTREAM CHAIN
    chain_id: int = Field(1313161554, alias="CHAIN_ID")
    endpoint_url: str = Field("http://127.0.0.1:8545", alias="ENDPOINT_URL")
    endpoint_timeout: float = Field(30.0, alias="ENDPOINT_TIMEOUT")

    # INDEXER
    indexer_retry_interval: float = Field(0.1, alias="INDEXER_RETRY_INTERVAL")

    # JSON-RPC SERVER
    rpc_host: str = Field("0.0.0.0", alias="RPC_HOST")
    rpc_port: int = Field(8545, alias="RPC_PORT")

    @model_validator(mode="after")
    def assemble_db_urls(self) -> "Settings":
        user = quote_plus(self.postgres_user)
        password = quote_plus(self.postgres_password.get_secret_value())
        host = self.postgres_server
        port = self.postgres_port
        db = self.postgres_db

        if not self.database_url:
            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        if not self.sync_database_url:
            self.sync_database_url = f"postgresql://{user}:{password}@{host}:{port}/{db}"

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )


settings: Settings = Settings()
