import os


DEV_JWT_SECRET = "dev-secret"


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


class Settings:
    def __init__(
        self,
        *,
        database_url: str | None = None,
        jwt_secret: str | None = None,
        token_ttl_seconds: int | None = None,
        log_level: str | None = None,
    ) -> None:
        self.DATABASE_URL: str = database_url or os.getenv(
            "DATABASE_URL", "sqlite:///./relay.db"
        )
        # None means "not configured"; readiness reports it
        self.JWT_SECRET: str | None = jwt_secret or os.getenv("JWT_SECRET")
        self.TOKEN_TTL_SECONDS: int | None = (
            token_ttl_seconds
            if token_ttl_seconds is not None
            else _optional_int("TOKEN_TTL_SECONDS")
        )
        self.LOG_LEVEL: str = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    @property
    def signing_secret(self) -> str:
        return self.JWT_SECRET or DEV_JWT_SECRET
