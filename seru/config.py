import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = "Seru Coworking"
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Auth & Session
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "seru_session")
    SESSION_MAX_AGE_DAYS: int = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./seru.db")

    # Default admin bootstrap
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "admin")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin12345")

    # Browser clients are served from a different origin than the API.
    # Cookies are only sent cross-origin to origins listed here; "*" disables credentials.
    CORS_ALLOW_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if o.strip()
    ]

    # Booking rules
    # Off by default: the submitted total is trusted, as the web client computes it.
    ENFORCE_SERVER_PRICE: bool = os.getenv("ENFORCE_SERVER_PRICE", "false").lower() == "true"
    PREVENT_DOUBLE_BOOKING: bool = os.getenv("PREVENT_DOUBLE_BOOKING", "true").lower() == "true"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_AUTH: str = os.getenv("RATE_LIMIT_AUTH", "5/minute")

    # API client (booking wizard)
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "10"))

settings = Settings()
