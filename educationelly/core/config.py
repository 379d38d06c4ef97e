import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8080"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./educationelly.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

ALLOWED_ORIGINS = _get_list(
    os.getenv("ALLOWED_ORIGINS"),
    [
        "http://localhost:3000",
        "http://localhost:3001",
        "https://educationelly-client-71a1b1901aaa.herokuapp.com",
    ],
)
# Number of reverse proxies in front of the app that append to X-Forwarded-For.
TRUSTED_PROXY_HOPS = int(os.getenv("TRUSTED_PROXY_HOPS", "1" if APP_ENV.lower() == "production" else "0"))

RATE_LIMIT_ENABLED = _get_bool(os.getenv("RATE_LIMIT_ENABLED"), default=True)
RATE_LIMIT_WINDOW_SECONDS = 15 * 60
GENERAL_RATE_LIMIT = 100
SIGNIN_RATE_LIMIT = 50
SIGNUP_RATE_LIMIT = 3

AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "http://shared-ai-gateway:8002")

CLOUDFLARE_API_TOKEN = os.getenv("CLOUDFLARE_API_TOKEN", "")
CLOUDFLARE_ZONE_ID = os.getenv("CLOUDFLARE_ZONE_ID", "")
PUBLIC_URL = os.getenv("PUBLIC_URL", "https://educationelly-k8s.el-jefe.me")


def is_production() -> bool:
    return APP_ENV.lower() == "production"


def is_development() -> bool:
    return APP_ENV.lower() == "development"


def validate_runtime_config() -> None:
    if is_production() and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
