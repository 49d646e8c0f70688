"""
Auth component - Authentication and user management.

Handles registration, password + emailed code sign-in, the cached
current user, profiles and user administration.
"""

from .component import (
    cache_user,
    generate_code,
    normalize_email,
    run_deactivate_inactive,
    run_delete_user,
    run_get_current_user,
    run_get_profile,
    run_list_users,
    run_login,
    run_logout,
    run_register,
    run_send_code,
    run_set_online,
    run_update_last_login,
    run_update_password,
    run_update_profile,
    run_update_user,
    run_verify_code,
    user_cache_key,
    validate_profile,
    verification_key,
)
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

__all__ = [
    # Entry points
    "run_register",
    "run_login",
    "run_send_code",
    "run_verify_code",
    "run_get_current_user",
    "run_logout",
    "run_update_last_login",
    "run_get_profile",
    "run_update_profile",
    "run_update_password",
    "run_list_users",
    "run_update_user",
    "run_delete_user",
    "run_deactivate_inactive",
    "run_set_online",
    # Helpers
    "cache_user",
    "generate_code",
    "normalize_email",
    "user_cache_key",
    "validate_profile",
    "verification_key",
    # Models
    "AuthOutput",
    "LoginInput",
    "ProfileOutput",
    "RegisterInput",
    "SendCodeInput",
    "UpdatePasswordInput",
    "UpdateProfileInput",
    "UpdateUserInput",
    "UserListOutput",
    "UserOutput",
    "VerifyCodeInput",
    # Ports
    "AuthAdapterPort",
    "UserRepoPort",
]
