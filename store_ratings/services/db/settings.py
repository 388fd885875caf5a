from pydantic_settings import BaseSettings


class DbSettings(BaseSettings):
    DB_ENGINE: str | None = "postgresql"
    DB_DRIVER: str | None = "asyncpg"
    DB_HOST: str | None = "localhost"

    DB_PORT: int | None = 5432

    DB_USER: str | None = "postgres"
    DB_PASSWORD: str | None = "postgres"
    DB_NAME: str | None = "store_ratings"

    # full SQLAlchemy URL, e.g. sqlite+aiosqlite:///./ratings.db
    DB_URL: str | None = None
    DB_ECHO: bool = False

    @property
    def url(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return (
            f"{self.DB_ENGINE}+{self.DB_DRIVER}://"
            f"{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    class Config:
        env_file = '.env'
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_nested_delimiter = "__"
        extra = "allow"


settings = DbSettings()
