import logging
import re
import secrets
from datetime import timedelta

from src.components.notifications import run_send_verification_code
from src.components.notifications.ports import EmailSenderPort
from src.core.ports.captcha import CaptchaPort
from src.core.ports.kv import KVStorePort
from src.core.ports.time import TimePort
from src.domain.entities import User, UserProfile
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

from .models import (
    AuthOutput,
    LoginInput,
    ProfileOutput,
    RegisterInput,
    SendCodeInput,
    UpdatePasswordInput,
    UpdateProfileInput,
    UpdateUserInput,
    UserListOutput,
    UserOutput,
    VerifyCodeInput,
)
from .ports import AuthAdapterPort, UserRepoPort

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_REGEX = re.compile(r"^\+?[1-9]\d{1,14}$")

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def verification_key(email: str, rules: Rules) -> str:
    return f"{rules.auth.verification.key_prefix}{normalize_email(email)}"


def user_cache_key(user_id: int) -> str:
    return f"user:{user_id}"


def generate_code(length: int = 6) -> str:
    return f"{secrets.randbelow(10**length):0{length}d}"


# --- Registration & login ---


def run_register(
    inp: RegisterInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    captcha: CaptchaPort,
    rules: Rules,
    time: TimePort,
) -> UserOutput:
    email = normalize_email(inp.email)
    if not EMAIL_REGEX.match(email):
        return UserOutput(error="Invalid email address", error_code="validation")

    min_length = rules.auth.password_min_length
    if len(inp.password) < min_length:
        return UserOutput(
            error=f"Password must be at least {min_length} characters", error_code="validation"
        )
    if inp.password != inp.confirm_password:
        return UserOutput(error="Passwords do not match", error_code="validation")

    if not inp.captcha_token or not captcha.verify(inp.captcha_token, inp.remote_ip).success:
        return UserOutput(error="Captcha verification failed", error_code="validation")

    if user_repo.get_by_email(email):
        return UserOutput(error="Email already registered", error_code="conflict")

    now = time.now_utc()
    user = user_repo.save(
        User(
            email=email,
            password_hash=auth_adapter.hash_password(inp.password),
            role_id=rules.roles.client,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info("Registered user %s", user.id)
    return UserOutput(user=user, success=True)


def _issue_code(
    email: str, kv: KVStorePort, sender: EmailSenderPort, rules: Rules
) -> AuthOutput:
    settings = rules.auth.verification
    code = generate_code(settings.code_length)
    kv.set(verification_key(email, rules), code, settings.ttl_seconds)

    sent = run_send_verification_code(email, code, sender, settings.ttl_seconds)
    if not sent.success:
        return AuthOutput(error="Could not send verification code", error_code="delivery")
    return AuthOutput(requires_verification=True, success=True)


def run_login(
    inp: LoginInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    kv: KVStorePort,
    sender: EmailSenderPort,
    rules: Rules,
) -> AuthOutput:
    """
    Check the password and email a one-time code.

    Unknown email, wrong password and inactive account all look the
    same to the caller. No token is issued here; see run_verify_code.
    """
    email = normalize_email(inp.email)
    user = user_repo.get_by_email(email)
    if not user or not auth_adapter.verify_password(inp.password, user.password_hash):
        return AuthOutput(error=INVALID_CREDENTIALS, error_code="unauthorized")
    if not user.is_active:
        logger.info("Login attempt for inactive user %s", user.id)
        return AuthOutput(error=INVALID_CREDENTIALS, error_code="unauthorized")

    return _issue_code(email, kv, sender, rules)


def run_send_code(
    inp: SendCodeInput,
    user_repo: UserRepoPort,
    kv: KVStorePort,
    sender: EmailSenderPort,
    rules: Rules,
) -> AuthOutput:
    email = normalize_email(inp.email)
    user = user_repo.get_by_email(email)
    if not user or not user.is_active:
        return AuthOutput(error="User not found", error_code="not_found")
    return _issue_code(email, kv, sender, rules)


def run_verify_code(
    inp: VerifyCodeInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    kv: KVStorePort,
    rules: Rules,
    time: TimePort,
) -> AuthOutput:
    email = normalize_email(inp.email)
    key = verification_key(email, rules)
    stored = kv.get(key)
    if stored is None or not secrets.compare_digest(stored, inp.code.strip()):
        return AuthOutput(error="Invalid or expired code", error_code="unauthorized")

    user = user_repo.get_by_email(email)
    if not user or not user.is_active:
        return AuthOutput(error=INVALID_CREDENTIALS, error_code="unauthorized")

    kv.delete(key)
    user = run_update_last_login(user, user_repo, time)
    token = auth_adapter.create_token(
        user.id,
        user.email,
        user.role_id,
        rules.auth.token_ttl_days * 24 * 60,
        now=time.now_utc(),
    )
    cache_user(user, kv, rules)
    logger.info("User %s signed in", user.id)
    return AuthOutput(user=user, token_raw=token, success=True)


# --- Session helpers ---


def cache_user(user: User, kv: KVStorePort, rules: Rules) -> None:
    kv.set(user_cache_key(user.id), user.model_dump_json(), rules.auth.user_cache_ttl_seconds)


def run_get_current_user(
    user_id: int, user_repo: UserRepoPort, kv: KVStorePort, rules: Rules
) -> User | None:
    """Resolve the user behind a token, via the KV cache when warm."""
    cached = kv.get(user_cache_key(user_id))
    if cached:
        try:
            user = User.model_validate_json(cached)
        except ValueError:
            logger.warning("Dropping unreadable cache entry for user %s", user_id)
            kv.delete(user_cache_key(user_id))
        else:
            return user if user.is_active else None

    user = user_repo.get_by_id(user_id)
    if not user or not user.is_active:
        return None
    cache_user(user, kv, rules)
    return user


def run_logout(user_id: int, kv: KVStorePort) -> None:
    kv.delete(user_cache_key(user_id))


def run_update_last_login(user: User, user_repo: UserRepoPort, time: TimePort) -> User:
    now = time.now_utc()
    return user_repo.save(user.model_copy(update={"last_login_at": now, "updated_at": now}))


# --- Profile ---


def validate_profile(inp: UpdateProfileInput) -> dict[str, str]:
    errors: dict[str, str] = {}
    for name in ("first_name", "last_name"):
        value = getattr(inp, name)
        if value is not None and value.strip() and len(value.strip()) < 2:
            errors[name] = "Must be at least 2 characters"
    if inp.phone and not PHONE_REGEX.match(inp.phone.strip()):
        errors["phone"] = "Invalid phone number"
    if inp.city is not None and inp.city.strip() and len(inp.city.strip()) < 2:
        errors["city"] = "Must be at least 2 characters"
    return errors


def run_get_profile(user: User) -> ProfileOutput:
    return ProfileOutput(profile=user.profile or UserProfile(user_id=user.id), success=True)


def run_update_profile(
    user: User,
    inp: UpdateProfileInput,
    user_repo: UserRepoPort,
    kv: KVStorePort,
    time: TimePort,
) -> ProfileOutput:
    errors = validate_profile(inp)
    if errors:
        return ProfileOutput(error="Invalid profile data", error_code="validation", field_errors=errors)

    current = user.profile or UserProfile(user_id=user.id)
    changes = {
        name: (value.strip() or None)
        for name, value in vars(inp).items()
        if value is not None
    }
    profile = current.model_copy(update={**changes, "user_id": user.id})
    saved = user_repo.save(user.model_copy(update={"profile": profile, "updated_at": time.now_utc()}))
    run_logout(user.id, kv)
    return ProfileOutput(profile=saved.profile, success=True)


def run_update_password(
    user: User,
    inp: UpdatePasswordInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    rules: Rules,
    time: TimePort,
) -> UserOutput:
    if not auth_adapter.verify_password(inp.current_password, user.password_hash):
        return UserOutput(error="Current password is incorrect", error_code="validation")

    min_length = rules.auth.password_min_length
    if len(inp.new_password) < min_length:
        return UserOutput(
            error=f"Password must be at least {min_length} characters", error_code="validation"
        )
    if inp.new_password != inp.confirm_password:
        return UserOutput(error="Passwords do not match", error_code="validation")
    if inp.new_password == inp.current_password:
        return UserOutput(
            error="New password must differ from the current one", error_code="validation"
        )

    saved = user_repo.save(
        user.model_copy(
            update={
                "password_hash": auth_adapter.hash_password(inp.new_password),
                "updated_at": time.now_utc(),
            }
        )
    )
    logger.info("Password changed for user %s", user.id)
    return UserOutput(user=saved, success=True)


# --- Administration ---


def run_list_users(actor: User, user_repo: UserRepoPort, policy: PolicyEngine) -> UserListOutput:
    if not policy.can_manage_users(actor):
        return UserListOutput(users=[], error="Access denied", error_code="forbidden")
    return UserListOutput(users=user_repo.list_all(), success=True)


def run_update_user(
    inp: UpdateUserInput,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
    kv: KVStorePort,
    rules: Rules,
    time: TimePort,
) -> UserOutput:
    if not policy.can_manage_users(inp.actor):
        return UserOutput(error="Access denied", error_code="forbidden")

    target = user_repo.get_by_id(inp.target_id)
    if not target:
        return UserOutput(error="User not found", error_code="not_found")

    valid_roles = {rules.roles.admin, rules.roles.client, rules.roles.manager}
    if inp.role_id is not None and inp.role_id not in valid_roles:
        return UserOutput(error="Unknown role", error_code="validation")

    # Self-lockout check
    if target.id == inp.actor.id:
        if inp.role_id is not None and inp.role_id != rules.roles.admin:
            return UserOutput(error="Cannot remove admin role from yourself", error_code="validation")
        if inp.is_active is False:
            return UserOutput(error="Cannot disable yourself", error_code="validation")

    changes: dict[str, object] = {"updated_at": time.now_utc()}
    if inp.role_id is not None:
        changes["role_id"] = inp.role_id
    if inp.is_active is not None:
        changes["is_active"] = inp.is_active

    saved = user_repo.save(target.model_copy(update=changes))
    run_logout(saved.id, kv)
    return UserOutput(user=saved, success=True)


def run_delete_user(
    actor: User,
    target_id: int,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
    kv: KVStorePort,
    admin_path: bool = False,
) -> UserOutput:
    """Delete an account. Admins use the admin path; anyone may delete themselves."""
    if not policy.can_delete_user(actor, target_id):
        return UserOutput(error="Access denied", error_code="forbidden")
    if admin_path and actor.id == target_id:
        return UserOutput(error="Administrators cannot delete themselves", error_code="validation")

    if not user_repo.delete(target_id):
        return UserOutput(error="User not found", error_code="not_found")
    run_logout(target_id, kv)
    logger.info("User %s deleted by %s", target_id, actor.id)
    return UserOutput(success=True)


def run_deactivate_inactive(
    days: int, user_repo: UserRepoPort, kv: KVStorePort, rules: Rules, time: TimePort
) -> int:
    """Deactivate clients who have not signed in for `days` days."""
    now = time.now_utc()
    cutoff = now - timedelta(days=days)
    count = 0
    for user in user_repo.list_all():
        if user.role_id != rules.roles.client or not user.is_active:
            continue
        last_seen = user.last_login_at or user.created_at
        if last_seen < cutoff:
            user_repo.save(user.model_copy(update={"is_active": False, "updated_at": now}))
            run_logout(user.id, kv)
            count += 1
    if count:
        logger.info("Deactivated %d inactive clients (cutoff %s)", count, cutoff.isoformat())
    return count


def run_set_online(user_id: int, user_repo: UserRepoPort, time: TimePort) -> UserOutput:
    user = user_repo.get_by_id(user_id)
    if not user:
        return UserOutput(error="User not found", error_code="not_found")
    return UserOutput(user=run_update_last_login(user, user_repo, time), success=True)
