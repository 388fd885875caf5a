from pathlib import Path
import logging
import secrets
from pydantic import AnyHttpUrl, validator, EmailStr
from pydantic_settings import BaseSettings
import json
import datetime

from queue import Queue
from logging.handlers import QueueHandler, QueueListener

from logging_loki import LokiHandler


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_UVICORN_FORMAT: str = "%(asctime)s %(levelname)s uvicorn: %(message)s"
    LOG_ACCESS_FORMAT: str = "%(asctime)s %(levelname)s access: %(message)s"
    LOG_DEFAULT_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    APP_VERSION: str = "dev"
    APP_TITLE: str = "Store Ratings API"
    APP_CONTACT_NAME: str = "Store Ratings"
    APP_CONTACT_EMAIL: EmailStr = "admin@example.com"
    APP_OPENAPI_URL: str = "/openapi.json"
    APP_DOCS_URL: str | None = "/docs"
    APP_REDOC_URL: str | None = None
    PRODUCTION: bool = False

    ROOT_PATH: str | None = ""
    PORT: int | None = 5000

    SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BACKEND_CORS_ORIGINS: list[AnyHttpUrl] = []

    DEFAULT_ADMIN_NAME: str = "Administrator Account Name"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_ADDRESS: str = "123 Admin Street, Admin City"
    DEFAULT_ADMIN_PASSWORD: str = "Admin@123"

    LOKI_URL: str | None = None

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: str | list[str]) -> str | list[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_nested_delimiter = "__"
        extra = "allow"


settings = Settings()


class JsonConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp"  : datetime.datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level"      : record.levelname,
            "logger"     : record.name,
            "file"       : f"{record.filename}:{record.lineno}",
            "status_code": getattr(record, "status_code", None),
            "msg"        : record.getMessage(),
        }
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


json_formatter = JsonConsoleFormatter()

console_handler = logging.StreamHandler()
console_handler.setFormatter(json_formatter)
console_handler.setLevel(logging.INFO)

app_logger = logging.getLogger(settings.APP_TITLE)
app_logger.setLevel(settings.LOG_LEVEL.upper())
app_logger.addHandler(console_handler)

# package loggers share the app handlers
package_logger = logging.getLogger("store_ratings")
package_logger.setLevel(settings.LOG_LEVEL.upper())
package_logger.addHandler(console_handler)

listener: QueueListener | None = None

if settings.LOKI_URL:
    queue = Queue(-1)
    queue_handler = QueueHandler(queue)

    http_loki_handler = LokiHandler(
        url=settings.LOKI_URL,
        tags={"application": settings.APP_TITLE},
        auth=None,
        version="1",
    )
    http_loki_handler.setFormatter(json_formatter)
    listener = QueueListener(queue, http_loki_handler)
    listener.start()

    app_logger.addHandler(queue_handler)
    package_logger.addHandler(queue_handler)


class EndpointFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return f"GET {settings.ROOT_PATH}/metrics" not in record.getMessage()


uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.addFilter(EndpointFilter())
