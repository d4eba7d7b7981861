from typing import Any, Dict, List, Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=True)


class Settings(BaseSettings):
    PROJECT_NAME: str = "WalletGate"
    # Application settings
    PORT: int = 8787
    HOST: str = "127.0.0.1"
    VERSION: str = "0.1.0"
    DOC_PASSWORD: str | None = None
    CORS_ORIGINS: str = "http://localhost:3000"  # comma separated; "*" disables credentials
    LOG_LEVEL: str = "INFO"

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./walletgate.db"
    AUTO_CREATE_TABLES: bool = True

    # Record store backend; "memory" keeps everything in this process only
    RECORD_STORE: Literal["sql", "memory"] = "sql"
    MEMORY_STORE_SEED: str | None = None  # YAML file provisioning identities for the memory store

    # Sign-in message
    APP_DOMAIN: str = "example.com"

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_PREVIOUS_KEYS: str | None = None  # comma separated, newest first
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 3600  # 7 days
    AUTH_COOKIE_NAME: str = "access_token"

    # Challenge configuration
    NONCE_EXPIRY_SECONDS: int = 300  # 5 minutes
    NONCE_INSERT_ATTEMPTS: int = 3
    SUPERSEDE_PRIOR_CHALLENGES: bool = True

    # Debug settings
    DEBUG: bool = False

    class Config:
        env_file = ".env"

    @property
    def previous_keys(self) -> List[str]:
        if not self.ENCODE_PREVIOUS_KEYS:
            return []
        return [k.strip() for k in self.ENCODE_PREVIOUS_KEYS.split(",") if k.strip()]

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def cors_middleware_options(self) -> Dict[str, Any]:
        """CORSMiddleware kwargs. Credentialed requests are only allowed for listed origins."""
        origins = self.cors_origins
        return {
            "allow_origins": origins,
            "allow_credentials": "*" not in origins,
            "allow_methods": ["*"],
            "allow_headers": ["*"],
        }


# Instantiate the settings
settings = Settings()
