from __future__ import annotations

import os

from pydantic import BaseModel


class Settings(BaseModel):
    APP_URL: str = os.getenv("APP_URL", "http://localhost:3000")
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    CORS_ALLOW_ORIGINS: list[str] = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000").split(
        ","
    )

    # persistence
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "mongo")
    MONGO_URL: str = os.getenv("MONGO_URL", "mongodb://mongo:27017")
    MONGO_DB: str = os.getenv("MONGO_DB", "scholarship")

    # session resolution (external identity provider)
    SESSION_VALIDATION_URL: str = os.getenv(
        "SESSION_VALIDATION_URL", "http://localhost:3211/api/auth/get-session"
    )
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "better-auth.session_token")
    SESSION_TIMEOUT_S: float = float(os.getenv("SESSION_TIMEOUT_S", "10"))
    SIGN_IN_PATH: str = os.getenv("SIGN_IN_PATH", "/login")
    UNAUTHORIZED_PATH: str = os.getenv("UNAUTHORIZED_PATH", "/unauthorized")
    SUPERUSER_EMAILS: list[str] = [
        e.strip().lower() for e in os.getenv("SUPERUSER_EMAILS", "").split(",") if e.strip()
    ]

    # notification dispatch
    AUTH_API_URL: str = os.getenv("AUTH_API_URL", "http://localhost:3000/api/auth")
    NOTIFY_TIMEOUT_S: float = float(os.getenv("NOTIFY_TIMEOUT_S", "10"))

    # generation provider (OpenAI-compatible chat completions)
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    GROQ_BASE_URL: str = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
    GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_MAX_TOKENS: int = int(os.getenv("GROQ_MAX_TOKENS", "1000"))
    LLM_TIMEOUT_S: float = float(os.getenv("LLM_TIMEOUT_S", "60"))

    # eligibility
    REGION_CODE: str = os.getenv("REGION_CODE", "MI")
    REGION_ZIP_MIN: int = int(os.getenv("REGION_ZIP_MIN", "48001"))
    REGION_ZIP_MAX: int = int(os.getenv("REGION_ZIP_MAX", "49971"))

    @property
    def llm_configured(self) -> bool:
        key = (self.GROQ_API_KEY or "").strip()
        return bool(key) and key != "your-groq-api-key"


settings = Settings()
