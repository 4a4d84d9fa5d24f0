from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import HttpUrl


class AppConfig(BaseSettings):
    # Issue tracker
    jira_url: str | None = None
    jira_email: str | None = None
    jira_api_token: str | None = None

    # Test-case repository
    testrail_url: str | None = None
    testrail_user: str | None = None
    testrail_api_key: str | None = None

    # Workflow persistence
    workflow_store: Literal["memory", "minio"] = "memory"
    minio_endpoint: str | None = None
    minio_access_key: str | None = None
    minio_secret_key: str | None = None
    minio_bucket: str = "qa-copilot"
    minio_secure: bool = False

    # Generative provider
    llm_provider: Literal["cloud", "local", "fallback"] = "cloud"
    gemini_api_key: str | None = None
    cloud_model_name: str = "gemini-2.0-flash"
    local_llm_endpoint: HttpUrl | None = "http://localhost:11434"
    local_model_name: str = "llama3.1"
    gemini_temperature: float = 0.7

    pii_masking_enabled: bool = True
    auto_recreate_workflows: bool = True
    # Generation sessions idle longer than this are dropped when a new one starts
    session_ttl_seconds: int = 3600
    http_timeout: int = 30
    log_level: str = "INFO"
    log_dir: str = "logs"

    class Config:
        env_file = ".env"
        extra = "ignore"

config = AppConfig()
