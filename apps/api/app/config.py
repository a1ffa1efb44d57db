from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://homeplanner:homeplanner@db:5432/homeplanner"
  database_echo: bool = False
  app_secret: str = "dev-secret-change-me"
  app_version: str = "v2026-10-19"
  build_sha: str = "dev"
  api_docs_enabled: bool = True

  cookie_secure: bool = False
  cookie_domain: str | None = None
  sign_in_url: str = "/sign-in"

  rate_limit_login_ip_per_minute: int = 60
  rate_limit_login_email_per_minute: int = 20
  rate_limit_signup_ip_per_minute: int = 10

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
  cors_origin_regex: str = r"^http://(localhost|127\.0\.0\.1):3000$"
  trusted_hosts: str = "localhost,127.0.0.1,api,web,test"

  # Shared rate-limit buckets across replicas; in-memory when unset.
  redis_url: str | None = None

  log_level: str = "INFO"

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]

  def is_sqlite(self) -> bool:
    return self.database_url.startswith("sqlite")


settings = Settings()
