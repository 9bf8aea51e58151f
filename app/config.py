from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App
    APP_NAME: str = "SALONOS API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str

    # JWT: tokens are minted by the auth service, only verified here
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Server-to-server calls (checkout confirmation)
    INTERNAL_API_KEY: str = ""

    # SUMIT billing
    SUMIT_API_URL: str = "https://api.sumit.co.il"
    SUMIT_API_KEY: str = ""
    SUMIT_ORG_ID: str = ""
    SUMIT_WEBHOOK_SECRET: str = ""
    SUMIT_TIMEOUT_SECONDS: float = 12.0

    # Trial
    TRIAL_DAYS: int = 35
    TRIAL_REMINDER_DAYS: int = 2

    # Resend
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "SALONOS <support@salonos.ai>"
    EMAIL_REPLY_TO: str = ""
    SUPPORT_INBOX: str = "support@salonos.ai"

    # WhatsApp Business
    WHATSAPP_ACCESS_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_VERIFY_TOKEN: str = ""
    WHATSAPP_API_VERSION: str = "v18.0"

    # Outbound lead webhook (CRM / automation)
    LEADS_WEBHOOK_URL: str = ""

    # AWS S3 (support attachments)
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_BUCKET_NAME: str = ""
    AWS_REGION: str = "eu-central-1"

    # Upload throttling (per contact)
    UPLOAD_THROTTLE_ATTEMPTS: int = 3
    UPLOAD_THROTTLE_WINDOW_SECONDS: int = 60

    # Rate limiting (slowapi)
    RATE_LIMIT_ENABLED: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    class Config:
        env_file = ".env"
        case_sensitive = True

@lru_cache()
def get_settings():
    return Settings()

settings = get_settings()
