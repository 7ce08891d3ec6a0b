import os
from typing import Optional
from pydantic import validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Razorpay Gateway")
    APP_ENV: str = os.getenv("APP_ENV", "development")
    PORT: int = 5000

    # Razorpay
    RZP_KEY_ID: str = os.getenv("RZP_KEY_ID", "")
    RZP_KEY_SECRET: str = os.getenv("RZP_KEY_SECRET", "")
    RZP_WEBHOOK_SECRET: str = os.getenv("RZP_WEBHOOK_SECRET", "")
    # 0 = manual capture, 1 = automatic capture
    DEFAULT_PAYMENT_CAPTURE: int = 1

    # CORS
    FRONTEND_ORIGIN: str = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

    # Document store credentials, checked in this order:
    # credentials file, inline JSON payload, then URL + key.
    SUPABASE_CREDENTIALS_FILE: Optional[str] = os.getenv("SUPABASE_CREDENTIALS_FILE")
    SUPABASE_CREDENTIALS_JSON: Optional[str] = os.getenv("SUPABASE_CREDENTIALS_JSON")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    ORDERS_COLLECTION: str = os.getenv("ORDERS_COLLECTION", "razorpay-orders")
    MEMBERS_COLLECTION: str = os.getenv("MEMBERS_COLLECTION", "samvedana-members")
    WEBHOOKS_COLLECTION: str = os.getenv("WEBHOOKS_COLLECTION", "razorpay-webhooks")

    @validator("DEFAULT_PAYMENT_CAPTURE")
    def check_capture_mode(cls, v: int) -> int:
        if v not in (0, 1):
            raise ValueError("DEFAULT_PAYMENT_CAPTURE must be 0 (manual) or 1 (automatic)")
        return v

    @property
    def manual_capture(self) -> bool:
        return self.DEFAULT_PAYMENT_CAPTURE == 0

    class Config:
        case_sensitive = True
