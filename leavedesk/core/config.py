import os
from pydantic import BaseModel, Field
from typing import Dict, List
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class LeaveSettings(BaseModel):
    # Requests longer than this many working days need CEO sign-off
    ceo_threshold_days: int = Field(default=int(os.getenv("LEAVE_CEO_THRESHOLD_DAYS", "10")))
    enforce_completion_date: bool = Field(default=_env_flag("LEAVE_ENFORCE_COMPLETION_DATE", "true"))
    upcoming_window_days: int = Field(default=int(os.getenv("LEAVE_UPCOMING_WINDOW_DAYS", "30")))
    default_allotments: Dict[str, float] = Field(
        default_factory=lambda: {
            "annual": 18.0,
            "sick": 10.0,
            "compassionate": 5.0,
            "paternity": 5.0,
            "maternity": 70.0,
            "study": 10.0,
            "personal": 3.0,
        }
    )


class Config(BaseModel):
    app_name: str = "Leave Desk"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leavedesk.db")

    request_id_header: str = "X-Request-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS: comma-separated origins from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:3001,"
                "http://127.0.0.1:3000,http://127.0.0.1:3001",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

    leave: LeaveSettings = LeaveSettings()


settings = Config()
