from dataclasses import dataclass, field

from src.domain.entities import User, UserProfile


@dataclass
class RegisterInput:
    email: str
    password: str
    confirm_password: str
    captcha_token: str
    remote_ip: str | None = None


@dataclass
class LoginInput:
    email: str
    password: str


@dataclass
class SendCodeInput:
    email: str


@dataclass
class VerifyCodeInput:
    email: str
    code: str


@dataclass
class UpdateProfileInput:
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None


@dataclass
class UpdatePasswordInput:
    current_password: str
    new_password: str
    confirm_password: str


@dataclass
class UpdateUserInput:
    actor: User
    target_id: int
    role_id: int | None = None
    is_active: bool | None = None


@dataclass
class AuthOutput:
    user: User | None = None
    token_raw: str | None = None
    requires_verification: bool = False
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class UserOutput:
    user: User | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


@dataclass
class ProfileOutput:
    profile: UserProfile | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)


@dataclass
class UserListOutput:
    users: list[User]
    success: bool = False
    error: str | None = None
    error_code: str | None = None
