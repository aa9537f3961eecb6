# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List, Optional
from pathlib import Path

_ASSET_BASE = "https://raw.githubusercontent.com/karthikeyanasha24/pdf-packet-6/main"


class Settings(BaseSettings):
    # CORS settings
    allowed_origins: str = "http://localhost:5173,http://localhost:3000,http://localhost:8000"

    # Document repository (SQLAlchemy URL). "sqlite://" keeps everything in memory.
    db_url: str = "sqlite:///data/packets.db"

    # ---- Cover templates ----
    # Fillable cover-page templates per product category.
    # Leave empty to always synthesize the cover page.
    structural_floor_template_url: str = (
        f"{_ASSET_BASE}/PDF-TEMPLATE/Submittal%20Form_Floor%20Panels.pdf"
    )
    underlayment_template_url: str = ""

    # Logos drawn on synthesized covers (dark on white) and divider pages (on dark header)
    logo_url: str = f"{_ASSET_BASE}/public/image.png"
    logo_white_url: str = f"{_ASSET_BASE}/public/image-white.png"

    # Relative document URLs (legacy catalog entries) are resolved against this
    document_base_url: str = f"{_ASSET_BASE}/public/"

    # Remote fetch behaviour. No retries: a failed fetch goes straight to the fallback.
    fetch_timeout_seconds: float = 30.0
    user_agent: str = "PDF-Packet-Generator/1.0"

    # Optional JSON file replacing the built-in submittal type trigger table
    submittal_triggers_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON list of {flags, name_contains, type_equals} rules",
    )

    # Upload limits for the document repository
    max_upload_bytes: int = 50 * 1024 * 1024
    min_upload_bytes: int = 1024

    log_level: str = "INFO"

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def template_url_for(self, product_type: str) -> str:
        if product_type == "underlayment":
            return self.underlayment_template_url
        return self.structural_floor_template_url


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
