from pydantic_settings import BaseSettings
from typing import Optional
from decimal import Decimal

class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_DATABASE: str = "trainapp"
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""

    # Payment gateway
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_TIMEOUT_SECONDS: int = 15

    # Notifications
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_SENDER: str = "no-reply@trainapp.local"
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 30
    EMAIL_WORKERS: int = 4
    SMS_SENDER_ID: str = "TRNAPP"

    # Booking rules
    CURRENCY: str = "INR"
    INVENTORY_MAX_RETRIES: int = 3
    VERIFY_CLIENT_FARE: bool = False
    FARE_TOLERANCE_PERCENT: Decimal = Decimal("5")

    # Application
    PROJECT_NAME: str = "Indian Railway Booking System"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}"
            f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DATABASE}"
        )

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
