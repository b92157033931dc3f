from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    # Target sites
    web_url: str = "https://turkish.jp/"
    lp_url: str = "https://turkish.co.jp/special/"

    # Browser Configuration
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    browser_timeout: int = 30000

    # Navigation verification (all values in milliseconds)
    nav_timeout_ms: int = 15000
    visible_timeout_ms: int = 15000
    new_page_ready_timeout_ms: int = 15000
    disambiguation_grace_ms: int = 500
    click_timeout_ms: int = 5000

    # Anchor scroll checks
    scroll_settle_timeout_ms: int = 8000
    near_top_min_px: int = 0
    near_top_max_px: int = 260

    # Logging Configuration
    log_level: str = "INFO"
    log_file: str = ""
    log_format: str = "json"  # json or text

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # CI runners export HEADED=1 when someone wants to watch the browser
        if os.getenv("HEADED", "").lower() in ("1", "true"):
            self.headless = False

settings = Settings()
