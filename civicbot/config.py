import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    postgres_host: str = "127.0.0.1"
    postgres_port: int = 5432
    postgres_db: str = "postgres"
    postgres_user: str = "postgres"
    postgres_password: str = "pass"
    store_backend: str = "postgres"

    openai_api_key: str = ""
    llm_model: str = "gpt-4o"
    vision_model: str = "gpt-4o"
    transcribe_model: str = "whisper-1"

    whatsapp_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_version: str = "v19.0"
    verify_token: str = ""

    google_maps_api_key: str = ""

    media_dir: str = "data/media"
    public_base_url: str = "http://localhost:8000"
    http_timeout_seconds: int = 20

    log_level: str = "INFO"
    organization_name: str = "ZP Pune"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            postgres_host=os.getenv("POSTGRES_HOST", "127.0.0.1"),
            postgres_port=int(os.getenv("POSTGRES_PORT", "5432")),
            postgres_db=os.getenv("POSTGRES_DB", "postgres"),
            postgres_user=os.getenv("POSTGRES_USER", "postgres"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "pass"),
            store_backend=os.getenv("STORE_BACKEND", "postgres").strip().lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
            llm_model=os.getenv("CIVICBOT_LLM_MODEL", "gpt-4o"),
            vision_model=os.getenv("CIVICBOT_VISION_MODEL", "gpt-4o"),
            transcribe_model=os.getenv("CIVICBOT_TRANSCRIBE_MODEL", "whisper-1"),
            whatsapp_token=os.getenv("WHATSAPP_TOKEN", "").strip(),
            whatsapp_phone_number_id=os.getenv("WA_PHONE_NUMBER_ID", "").strip(),
            whatsapp_api_version=os.getenv("WHATSAPP_API_VERSION", "v19.0"),
            verify_token=os.getenv("VERIFY_TOKEN", "").strip(),
            google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY", "").strip(),
            media_dir=os.getenv("MEDIA_DIR", "data/media"),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
            http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
            organization_name=os.getenv("ORGANIZATION_NAME", "ZP Pune"),
        )
