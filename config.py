import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./storefront_auth.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENVIRONMENT = data.get("ENVIRONMENT", "development")
    APP_ORIGIN = data.get("APP_ORIGIN", "http://localhost:3000")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    SESSION_MAX_AGE_DAYS = int(data.get("SESSION_MAX_AGE_DAYS", 30))
    ADMIN_EMAILS = data.get("ADMIN_EMAILS", "")
    SERVICE_API_KEY = data.get("SERVICE_API_KEY", "test-service-key-12345")
    OTP_TTL_MINUTES = int(data.get("OTP_TTL_MINUTES", 10))
    AUDIT_RETENTION_DAYS = int(data.get("AUDIT_RETENTION_DAYS", 90))
    EMAIL_BACKEND = data.get("EMAIL_BACKEND", "console")
    EMAIL_FROM = data.get("EMAIL_FROM", "no-reply@localhost")
    EMAIL_FROM_NAME = data.get("EMAIL_FROM_NAME", "Storefront")
    SMTP_HOST = data.get("SMTP_HOST", "localhost")
    SMTP_PORT = int(data.get("SMTP_PORT", 587))
    SMTP_USERNAME = data.get("SMTP_USERNAME", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_START_TLS = bool(data.get("SMTP_START_TLS", True))
    RATE_LIMIT_BACKEND = data.get("RATE_LIMIT_BACKEND", "memory")
    MAINTENANCE_INTERVAL_SECONDS = int(data.get("MAINTENANCE_INTERVAL_SECONDS", 3600))
    ENABLE_MAINTENANCE = bool(data.get("ENABLE_MAINTENANCE", True))
