"""
Configuration loading with schema validation.

Settings come from an optional YAML file (``STOREFRONT_CONFIG``, default
``config/settings.yaml``) whose string values may reference environment
variables as ``${VAR}`` or ``${VAR:default}``. A handful of well-known
environment variables then override the file so deployments can run from
``.env`` alone.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigError

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"


class AppSettings(BaseModel):
    name: str = "Storefront"
    version: str = "1.0.0"
    environment: str = "development"
    api_prefix: str = "/api"
    client_url: str = "http://localhost:5173"
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


class AuthSettings(BaseModel):
    access_token_secret: str = "change-me-access"
    refresh_token_secret: str = "change-me-refresh"
    access_token_ttl_seconds: int = 15 * 60
    refresh_token_ttl_seconds: int = 7 * 24 * 60 * 60
    reset_token_ttl_seconds: int = 60 * 60
    min_password_length: int = 6
    bcrypt_rounds: int = 10
    allow_admin_signup: bool = False


class DatabaseSettings(BaseModel):
    path: str = "data/storefront.db"


class PaymentSettings(BaseModel):
    gateway: str = "fake"  # fake | stripe
    stripe_secret_key: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com/v1"
    currency: str = "usd"
    timeout_seconds: int = 30


class MailSettings(BaseModel):
    backend: str = "fake"  # fake | smtp
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    from_email: str = "no-reply@storefront.local"
    use_tls: bool = True


class CheckoutSettings(BaseModel):
    loyalty_threshold_cents: int = 20000
    loyalty_discount_percentage: int = 10
    loyalty_valid_days: int = 30
    order_status: str = "delivered"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    payments: PaymentSettings = Field(default_factory=PaymentSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    checkout: CheckoutSettings = Field(default_factory=CheckoutSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# (env var, section, key)
ENV_OVERRIDES = [
    ("ENVIRONMENT", "app", "environment"),
    ("CLIENT_URL", "app", "client_url"),
    ("ACCESS_TOKEN_SECRET", "auth", "access_token_secret"),
    ("REFRESH_TOKEN_SECRET", "auth", "refresh_token_secret"),
    ("DATABASE_PATH", "database", "path"),
    ("PAYMENT_GATEWAY", "payments", "gateway"),
    ("STRIPE_SECRET_KEY", "payments", "stripe_secret_key"),
    ("MAIL_BACKEND", "mail", "backend"),
    ("SMTP_HOST", "mail", "smtp_host"),
    ("SMTP_PORT", "mail", "smtp_port"),
    ("SMTP_USER", "mail", "smtp_user"),
    ("SMTP_PASSWORD", "mail", "smtp_password"),
    ("SMTP_FROM_EMAIL", "mail", "from_email"),
    ("LOG_LEVEL", "logging", "level"),
]


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ``${VAR}`` / ``${VAR:default}`` references"""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            var_expr = value[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
                return os.getenv(var_name.strip(), default.strip())
            return os.getenv(var_expr, value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read settings file {path}: {e}")
    if not isinstance(raw_data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return raw_data


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    for var_name, section, key in ENV_OVERRIDES:
        value = os.getenv(var_name)
        if value is None or value == "":
            continue
        data.setdefault(section, {})[key] = value
    cors = os.getenv("CORS_ORIGINS")
    if cors:
        data.setdefault("app", {})["cors_origins"] = [o.strip() for o in cors.split(",") if o.strip()]
    return data


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load and validate settings from YAML (if present) plus environment overrides"""
    config_path = Path(path or os.getenv("STOREFRONT_CONFIG") or DEFAULT_CONFIG_PATH)
    data: Dict[str, Any] = {}
    if config_path.exists():
        data = substitute_env_vars(_read_yaml(config_path))
    data = _apply_env_overrides(data)
    try:
        return Settings(**data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid settings: {e}")
