from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

load_dotenv(".env")


class Settings(BaseSettings):
    app_name: str = "Books API"
    version: str = "1.0.0"
    server_host: str = "0.0.0.0"
    port: int = 3000
    api_prefix: str = "/api/books"
    cors_origins: str = ""
    log_level: str = "INFO"

    db_driver: str = "postgresql+psycopg"
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "bookdb"
    db_pool_size: int = Field(default=10, ge=1)
    database_url: str | None = None

    otel_enabled: bool = False
    otel_service_name: str = "books-api"
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    return Settings()
