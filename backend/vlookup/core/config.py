from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "vlookup"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Network Scanning
    SCAN_ENABLED: bool = True  # active ARP scan needs root
    SCAN_TIMEOUT: float = 10.0  # seconds to wait for ARP replies
    SCAN_INTERFACE: Optional[str] = None  # scan all eligible interfaces if None
    ARP_WRITE_TIMEOUT: float = 2.0  # write deadline per request
    ARP_SEND_INTERVAL: float = 0.01  # pause between two requests
    ARP_CACHE_PATH: str = "/proc/net/arp"

    # Vendor data
    VENDOR_SOURCES: list[str] = ["ieee-l"]  # ieee-l, ieee-m, ieee-s or a URL
    VENDOR_LOCAL_FILE: Optional[str] = None  # takes precedence over VENDOR_SOURCES
    VENDOR_FETCH_TIMEOUT: float = 30.0
    VENDOR_CACHE_ENABLED: bool = True
    VENDOR_CACHE_DIR: str = str(Path.home() / ".cache" / "vlookup")

    # Report
    TRIM_ADDRESS: int = 40

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
