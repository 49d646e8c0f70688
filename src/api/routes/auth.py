from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api.deps import (
    Settings,
    client_ip,
    get_auth_adapter,
    get_captcha,
    get_clock,
    get_current_user,
    get_email_sender,
    get_kv_store,
    get_optional_user,
    get_rate_limiter,
    get_rules,
    get_settings,
    get_user_repo,
)
from src.api.errors import raise_for_output
from src.api.schemas import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    VerifyCodeRequest,
    user_response,
)
from src.app_shell.rate_limit import RateLimiter
from src.components.auth import (
    LoginInput,
    RegisterInput,
    SendCodeInput,
    VerifyCodeInput,
    normalize_email,
    run_login,
    run_logout,
    run_register,
    run_send_code,
    run_update_last_login,
    run_verify_code,
)
from src.core.ports.captcha import CaptchaPort
from src.core.ports.kv import KVStorePort
from src.domain.entities import User
from src.rules.models import Rules

router = APIRouter()


def set_token_cookie(response: Response, token: str, rules: Rules, settings: Settings) -> None:
    max_age = rules.auth.token_ttl_days * 24 * 60 * 60
    response.set_cookie(
        key=rules.auth.cookie_name,
        value=token,
        httponly=rules.auth.cookie.http_only,
        max_age=max_age,
        expires=max_age,
        samesite=rules.auth.cookie.same_site,
        secure=settings.cookie_secure,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    req: RegisterRequest,
    request: Request,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    captcha: CaptchaPort = Depends(get_captcha),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    """Create a client account. Sign-in still requires an emailed code."""
    inp = RegisterInput(
        email=req.email,
        password=req.password,
        confirm_password=req.confirm_password,
        captcha_token=req.captcha_token,
        remote_ip=client_ip(request),
    )
    result = run_register(inp, user_repo, auth_adapter, captcha, rules, clock)
    raise_for_output(result)
    assert result.user is not None
    return user_response(result.user)


@router.post("/login")
def login(
    req: LoginRequest,
    request: Request,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    kv: KVStorePort = Depends(get_kv_store),
    sender: Any = Depends(get_email_sender),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """Check the password and email a verification code."""
    email = normalize_email(req.email)
    if not limiter.check_login(client_ip(request), email):
        raise HTTPException(status_code=429, detail="Too many login attempts")

    result = run_login(LoginInput(email=email, password=req.password), user_repo, auth_adapter, kv, sender, rules)
    raise_for_output(result)
    return {"requires_verification": True, "email": email}


@router.post("/send-code")
def send_code(
    req: EmailRequest,
    request: Request,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    kv: KVStorePort = Depends(get_kv_store),
    sender: Any = Depends(get_email_sender),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    email = normalize_email(req.email)
    if not limiter.check_send_code(client_ip(request), email):
        raise HTTPException(status_code=429, detail="Too many code requests")

    result = run_send_code(SendCodeInput(email=email), user_repo, kv, sender, rules)
    raise_for_output(result)
    return {"success": True}


@router.post("/verify-code")
def verify_code(
    req: VerifyCodeRequest,
    request: Request,
    response: Response,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    kv: KVStorePort = Depends(get_kv_store),
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
    clock: Any = Depends(get_clock),
) -> dict[str, Any]:
    """Exchange the emailed code for a session cookie."""
    if not limiter.check_verify_code(client_ip(request), normalize_email(req.email)):
        raise HTTPException(status_code=429, detail="Too many verification attempts")

    result = run_verify_code(
        VerifyCodeInput(email=req.email, code=req.code), user_repo, auth_adapter, kv, rules, clock
    )
    raise_for_output(result)
    assert result.user is not None and result.token_raw is not None

    set_token_cookie(response, result.token_raw, rules, settings)
    return {
        "user": user_response(result.user),
        "access_token": result.token_raw,
        "token_type": "bearer",
    }


@router.get("/check", response_model=UserResponse)
def check(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Get current user info."""
    return user_response(current_user)


@router.post("/logout")
def logout(
    response: Response,
    current_user: User | None = Depends(get_optional_user),
    kv: KVStorePort = Depends(get_kv_store),
    rules: Rules = Depends(get_rules),
) -> dict[str, str]:
    """Log out user by clearing cookie and cached user."""
    if current_user is not None and current_user.id is not None:
        run_logout(current_user.id, kv)
    response.delete_cookie(key=rules.auth.cookie_name)
    return {"status": "success"}


@router.post("/update-last-login", response_model=UserResponse)
def update_last_login(
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    return user_response(run_update_last_login(current_user, user_repo, clock))
