import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.captcha import DevCaptchaAdapter, RecaptchaAdapter
from src.adapters.clock import SystemClock
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.images import ImageResolver
from src.adapters.kv_store import InMemoryKVStore, RedisKVStore
from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.smtp_email import SMTPConfig, SMTPEmailAdapter
from src.adapters.sqlite.repos import (
    SQLiteAddressRepo,
    SQLiteBuildRepo,
    SQLiteCatalogRepo,
    SQLiteFavoriteRepo,
    SQLiteOrderRepo,
    SQLiteReferenceRepo,
    SQLiteRuleRepo,
    SQLiteUserRepo,
)
from src.app_shell.rate_limit import RateLimiter
from src.components.auth import run_get_current_user
from src.core.ports.captcha import CaptchaPort
from src.core.ports.email import EmailAddress
from src.core.ports.kv import KVStorePort
from src.domain.entities import User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(__file__).resolve().parents[2]
        self.data_dir = os.environ.get("ONLYPC_DATA_DIR", "./data")
        self.db_path = f"{self.data_dir}/onlypc.db"
        self.rules_path = self.base_dir / "rules.yaml"
        self.migrations_dir = self.base_dir / "migrations"

        self.redis_url = os.environ.get("ONLYPC_REDIS_URL") or None
        self.recaptcha_secret = os.environ.get("ONLYPC_RECAPTCHA_SECRET") or None
        self.cloudinary_cloud = os.environ.get("ONLYPC_CLOUDINARY_CLOUD") or None
        self.cookie_secure = _env_flag("ONLYPC_COOKIE_SECURE")

        self.smtp_host = os.environ.get("ONLYPC_SMTP_HOST") or None
        self.smtp_port = int(os.environ.get("ONLYPC_SMTP_PORT", "587"))
        self.smtp_username = os.environ.get("ONLYPC_SMTP_USERNAME") or None
        self.smtp_password = os.environ.get("ONLYPC_SMTP_PASSWORD") or None
        self.smtp_use_tls = _env_flag("ONLYPC_SMTP_TLS", default=True)
        self.smtp_sender = os.environ.get("ONLYPC_SMTP_FROM", "noreply@onlypc.local")

        self.cors_origins = [
            o.strip()
            for o in os.environ.get(
                "ONLYPC_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
            ).split(",")
            if o.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


# --- Repos ---
def get_catalog_repo(settings: Settings = Depends(get_settings)) -> SQLiteCatalogRepo:
    return SQLiteCatalogRepo(settings.db_path)


def get_rule_repo(settings: Settings = Depends(get_settings)) -> SQLiteRuleRepo:
    return SQLiteRuleRepo(settings.db_path)


def get_build_repo(settings: Settings = Depends(get_settings)) -> SQLiteBuildRepo:
    return SQLiteBuildRepo(settings.db_path)


def get_favorite_repo(settings: Settings = Depends(get_settings)) -> SQLiteFavoriteRepo:
    return SQLiteFavoriteRepo(settings.db_path)


def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_order_repo(settings: Settings = Depends(get_settings)) -> SQLiteOrderRepo:
    return SQLiteOrderRepo(settings.db_path)


def get_reference_repo(settings: Settings = Depends(get_settings)) -> SQLiteReferenceRepo:
    return SQLiteReferenceRepo(settings.db_path)


def get_address_repo(settings: Settings = Depends(get_settings)) -> SQLiteAddressRepo:
    return SQLiteAddressRepo(settings.db_path)


# --- Adapters ---
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


_kv_instance: KVStorePort | None = None


def get_kv_store() -> KVStorePort:
    """Redis when ONLYPC_REDIS_URL is set, otherwise the in-process TTL store."""
    global _kv_instance
    if _kv_instance is None:
        settings = get_settings()
        if settings.redis_url:
            _kv_instance = RedisKVStore(settings.redis_url)
        else:
            logger.info("ONLYPC_REDIS_URL not set; using in-memory key-value store")
            _kv_instance = InMemoryKVStore(clock=get_clock())
    return _kv_instance


_email_instance: DevEmailAdapter | SMTPEmailAdapter | None = None


def get_email_sender() -> DevEmailAdapter | SMTPEmailAdapter:
    global _email_instance
    if _email_instance is None:
        settings = get_settings()
        if settings.smtp_host:
            _email_instance = SMTPEmailAdapter(
                SMTPConfig(
                    host=settings.smtp_host,
                    port=settings.smtp_port,
                    username=settings.smtp_username,
                    password=settings.smtp_password,
                    use_tls=settings.smtp_use_tls,
                    sender=EmailAddress(settings.smtp_sender, "OnlyPC"),
                )
            )
        else:
            _email_instance = DevEmailAdapter()
    return _email_instance


def get_captcha(settings: Settings = Depends(get_settings)) -> CaptchaPort:
    if settings.recaptcha_secret:
        return RecaptchaAdapter(settings.recaptcha_secret)
    return DevCaptchaAdapter()


def get_image_resolver(settings: Settings = Depends(get_settings)) -> ImageResolver:
    return ImageResolver(cloud_name=settings.cloudinary_cloud)


_payment_instance: PaymentStubAdapter | None = None


def get_payment_gateway() -> PaymentStubAdapter:
    global _payment_instance
    if _payment_instance is None:
        _payment_instance = PaymentStubAdapter()
    return _payment_instance


def get_auth_adapter() -> JWTAuthAdapter:
    return JWTAuthAdapter()


_rate_limiter_instance: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter(get_rules().rate_limits, get_clock())
    return _rate_limiter_instance


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    kv: KVStorePort = Depends(get_kv_store),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
) -> User | None:
    # 1. Cookie first (HttpOnly), then the Authorization header
    cookie_token = request.cookies.get(rules.auth.cookie_name)
    if cookie_token:
        token = cookie_token
    if not token:
        return None

    user_id = auth_adapter.validate_token(token)
    if user_id is None:
        return None

    user = run_get_current_user(user_id, user_repo, kv, rules)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(
    user: User = Depends(get_current_user),
    policy: PolicyEngine = Depends(get_policy),
) -> User:
    if not policy.is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


async def require_manager(
    user: User = Depends(get_current_user),
    policy: PolicyEngine = Depends(get_policy),
) -> User:
    if not policy.is_manager(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Manager access required")
    return user
