from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    DATABASE_URL: Optional[str] = None
    DATABASE_PORT: int = 5432
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_USER: str = "postgres"
    POSTGRES_DB: str = "coursehub"
    POSTGRES_HOST: str = "localhost"

    @property
    def sqlalchemy_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return "postgresql://{}:{}@{}:{}/{}".format(
            self.POSTGRES_USER,
            self.POSTGRES_PASSWORD,
            self.POSTGRES_HOST,
            self.DATABASE_PORT,
            self.POSTGRES_DB,
        )


class RedisSettings(BaseSettings):
    REDIS_PASSWORD: Optional[str] = None
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/0"


class AuthSettings(BaseSettings):
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30


class MailSettings(BaseSettings):
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_SERVER: str = "localhost"
    SMTP_PORT: int = 587
    EMAIL_FROM: str = "noreply@coursehub.dev"
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False
    MAIL_SUPPRESS_SEND: bool = False
    FRONTEND_URL: str = "http://localhost:5173"


class StorageSettings(BaseSettings):
    ACCESS_KEY_ID: Optional[str] = None
    SECRET_ACCESS_KEY: Optional[str] = None
    AWS_REGION: Optional[str] = None
    BUCKET_NAME: str = "coursehub-uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024


class AppSettings(
    DatabaseSettings, RedisSettings, AuthSettings, MailSettings, StorageSettings
):
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = ""

    ADMIN_EMAIL: str = "admin@coursehub.dev"
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "Adminpassword1"

    class Config:
        env_file = "./.env"
        extra = "allow"


class LogConfig(BaseSettings):
    LOGGER_NAME: str = "coursehub"
    LOG_FORMAT: str = "%(levelprefix)s | %(asctime)s | %(message)s"
    LOG_LEVEL: str = "DEBUG"

    version: int = 1
    disable_existing_loggers: bool = False
    formatters: Dict[str, Any] = {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": LOG_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    }
    handlers: Dict[str, Any] = {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    }
    loggers: Dict[str, Any] = {
        LOGGER_NAME: {"handlers": ["default"], "level": LOG_LEVEL},
    }


settings = AppSettings()
