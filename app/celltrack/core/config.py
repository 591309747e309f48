from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "CELLTRACK"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite+pysqlite:///./celltrack.db"
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_NAME: str = "Administrator"
    DEFAULT_ADMIN_PASSWORD: str = "change-me"
    DEFAULT_LOCATIONS: str = (
        "CCF#1 Hidalgo,CCF#2 Colinas,CCF#3 Reservas,CCF#4 Voluntad,CCF#5 Villas,Bodega,Mauricio"
    )
    TRANSFER_FOLIO_PREFIX: str = "TR"
    TRANSFER_FOLIO_WIDTH: int = 5
    REPORT_TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"
    INVENTORY_LIST_MAX_PAGE_SIZE: int = 500
    AUDIT_LIST_MAX_PAGE_SIZE: int = 500


settings = Settings()
