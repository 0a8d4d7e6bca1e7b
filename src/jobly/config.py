"""Environment-driven configuration shared by the API modules."""
import os
from typing import List, Optional


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"Missing required environment variable '{name}'. "
            "Set it in the container .env."
        )
    return value


# PUBLIC_INTERFACE
def is_test_env() -> bool:
    """True when running under the test suite (JOBLY_ENV=test)."""
    return os.getenv("JOBLY_ENV", "").lower() == "test"


# PUBLIC_INTERFACE
def jwt_secret() -> str:
    # Required for security; do not default.
    return _required_env("JWT_SECRET")


# PUBLIC_INTERFACE
def jwt_algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


# PUBLIC_INTERFACE
def jwt_expires_minutes() -> int:
    return int(os.getenv("JWT_EXPIRES_MINUTES", "10080"))  # default: 7 days


# PUBLIC_INTERFACE
def bcrypt_work_factor() -> int:
    """bcrypt rounds; kept minimal in tests so hashing stays fast."""
    if is_test_env():
        return 4
    return int(os.getenv("BCRYPT_WORK_FACTOR", "12"))


# PUBLIC_INTERFACE
def database_dsn() -> str:
    """
    Build DSN from the standardized database env vars.

    Uses:
      - JOBLY_TEST_DATABASE_URL when JOBLY_ENV=test
      - DATABASE_URL or POSTGRES_URL (optional full DSN; if provided, it wins)
      - POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB, POSTGRES_PORT
    """
    if is_test_env():
        return os.getenv("JOBLY_TEST_DATABASE_URL", "postgresql:///jobly_test")

    url = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL")
    if url:
        return url

    user = _required_env("POSTGRES_USER")
    password = _required_env("POSTGRES_PASSWORD")
    db = _required_env("POSTGRES_DB")
    port = os.getenv("POSTGRES_PORT", "5432")
    host = os.getenv("POSTGRES_HOST", "localhost")
    return f"postgresql://{user}:{password}@{host}:{port}/{db}"


# PUBLIC_INTERFACE
def db_pool_bounds() -> tuple:
    return int(os.getenv("DB_POOL_MIN", "1")), int(os.getenv("DB_POOL_MAX", "10"))


# PUBLIC_INTERFACE
def cors_allow_origins() -> List[str]:
    """Origins from CORS_ALLOW_ORIGINS (comma separated); all origins by default."""
    env_val: Optional[str] = os.getenv("CORS_ALLOW_ORIGINS")
    if not env_val:
        return ["*"]
    return [o.strip() for o in env_val.split(",") if o.strip()]


# PUBLIC_INTERFACE
def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")


# PUBLIC_INTERFACE
def log_json() -> bool:
    return os.getenv("LOG_JSON", "true").lower() not in ("0", "false", "no")
