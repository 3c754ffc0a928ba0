from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    persist_session: bool = True
    auto_refresh_token: bool = True
    oauth_flow_type: str = "pkce"  # pkce | implicit

    # Public origin of this app; OAuth providers redirect back to <site_url>/app
    site_url: str = "http://localhost:3000"

    # Navigation
    protected_prefix: str = "/app"
    auth_prefix: str = "/auth/"
    login_path: str = "/auth/login"
    fallback_login_path: str = "/login"
    home_path: str = "/app"

    # App
    app_name: str = "subtrack"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def oauth_redirect_url(self) -> str:
        return f"{self.site_url.rstrip('/')}{self.home_path}"

    def missing_supabase_credentials(self) -> bool:
        return not self.supabase_url or not self.supabase_anon_key

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
