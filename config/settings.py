from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "S256 Website"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8080
    STATIC_ROOT: str = "public"

    # Node RPC - credentials have no default; without them /rpc answers 503
    RPC_USER: str = ""
    RPC_PASSWORD: str = ""
    RPC_HOST: str = "127.0.0.1"
    RPC_PORT: int = 25332
    RPC_TIMEOUT_SECONDS: float = 30.0
    RPC_MAX_RESPONSE_BYTES: int = 10 * 1024 * 1024

    # Exchange ticker proxies
    EXCHANGE_TIMEOUT_SECONDS: float = 10.0
    EXCHANGE_MAX_RESPONSE_BYTES: int = 1024 * 1024

    # CORS for /rpc - JSON list in env, e.g. '["https://sha256coin.eu"]'
    CORS_ALLOWED_ORIGINS: list[str] = ["https://sha256coin.eu"]

    # Number of reverse proxies (nginx) whose X-Forwarded-For entry is trusted
    TRUSTED_PROXY_HOPS: int = 1

    # Rate limits: max requests per window (seconds), per client IP
    RATE_LIMIT_GENERAL_MAX: int = 200
    RATE_LIMIT_GENERAL_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_API_MAX: int = 60
    RATE_LIMIT_API_WINDOW_SECONDS: int = 60
    RATE_LIMIT_DOWNLOADS_MAX: int = 20
    RATE_LIMIT_DOWNLOADS_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_RPC_MAX: int = 30
    RATE_LIMIT_RPC_WINDOW_SECONDS: int = 60
    # limits storage URI; "redis://host:6379" shares counters across workers
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    @property
    def rpc_configured(self) -> bool:
        return bool(self.RPC_USER and self.RPC_PASSWORD)


settings = Settings()
