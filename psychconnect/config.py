import os
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    MONGO_DB_URI: str | None = os.getenv("MONGO_DB_URI")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "PsychConnect")

    # Admin access is granted to these session emails only (comma separated)
    ADMIN_EMAILS: list[str] = [email.lower() for email in _split_csv(os.getenv("ADMIN_EMAILS", ""))]

    CORS_ORIGINS: list[str] = _split_csv(os.getenv("CORS_ORIGINS", "*"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
