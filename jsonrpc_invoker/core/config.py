# jsonrpc_invoker/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Invoker Settings"""
    
    # Library
    APP_NAME: str = "jsonrpc-invoker"
    VERSION: str = "1.0.0"
    
    # HTTP
    HTTP_TIMEOUT: float = 30.0  # seconds, applied to clients the invoker creates itself
    USER_AGENT: str = "jsonrpc-invoker/1.0"
    CONTENT_TYPE: str = "application/json"  # empty string omits the header
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "simple"  # json or simple
    
    model_config = SettingsConfigDict(
        env_prefix="JSONRPC_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

settings = Settings()
