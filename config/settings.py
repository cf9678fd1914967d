from pydantic_settings import BaseSettings, SettingsConfigDict

_PROD_QUOTE_HOST = "quoteserve.seng.uvic.ca"
_DEV_QUOTE_HOST = "localhost"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Run environment: PROD talks to the course quote server
    ENV: str = "DEV"

    # Quote server (host defaults depend on ENV unless set explicitly)
    QUOTE_SERVER_HOST: str | None = None
    QUOTE_SERVER_PORT: int = 4443
    QUOTE_TIMEOUT_SECONDS: float = 10.0

    # Validity windows
    QUOTE_VALIDITY_SECONDS: int = 60
    ORDER_VALIDITY_SECONDS: int = 60

    # Audit log
    SERVERNAME: str = "UNKNOWN"
    AUDIT_LOG_DIR: str = "logs"

    # Reservation policies
    REFUND_EXPIRED_ORDERS: bool = False
    SELL_TRIGGER_RESERVES_SHARES: bool = True
    CANCEL_SET_SELL_RETURNS_SHARES: bool = True

    # App
    LOG_LEVEL: str = "INFO"
    VERIFY_INVARIANTS: bool = False  # Conservation check after every command; slow on big workloads

    @property
    def quote_server_host(self) -> str:
        if self.QUOTE_SERVER_HOST:
            return self.QUOTE_SERVER_HOST
        return _PROD_QUOTE_HOST if self.ENV.upper() == "PROD" else _DEV_QUOTE_HOST


settings = Settings()
