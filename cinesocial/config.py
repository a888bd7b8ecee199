from dataclasses import dataclass
from typing import List, Optional
from dotenv import load_dotenv
import os

# Load environment variables
load_dotenv()


class ConfigurationError(EnvironmentError):
    """Raised when a required setting is missing at startup"""


def get_env_variable(key: str, default: Optional[str] = None, required: bool = True) -> Optional[str]:
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable '{key}' is not set")
    return value


@dataclass(frozen=True)
class Settings:
    backend_url: str
    publishable_key: str


def load_settings() -> Settings:
    """
    Read settings from the environment (and .env).

    BACKEND_URL and BACKEND_PUBLISHABLE_KEY are mandatory; the process
    must not start without them.
    """
    return Settings(
        backend_url=get_env_variable("BACKEND_URL"),
        publishable_key=get_env_variable("BACKEND_PUBLISHABLE_KEY"),
    )


LOCAL_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


def cors_origins() -> List[str]:
    """Local dev servers plus FRONTEND_URL when it is set"""
    origins = list(LOCAL_ORIGINS)
    if frontend_url := get_env_variable("FRONTEND_URL", required=False):
        origins.append(frontend_url)
    return origins


def environment_name() -> str:
    return get_env_variable("ENVIRONMENT", "development", required=False)
