from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class VerificationRules(BaseModel):
    code_length: int = 6
    ttl_seconds: int = 600
    key_prefix: str = "email_verification:"

class AuthCookieRules(BaseModel):
    http_only: bool
    same_site: str

class AuthRules(BaseModel):
    password_min_length: int
    token_ttl_days: int
    cookie_name: str
    user_cache_ttl_seconds: int
    verification: VerificationRules
    cookie: AuthCookieRules

class RoleRules(BaseModel):
    admin: int
    client: int
    manager: int

class RateLimitWindow(BaseModel):
    window_seconds: int
    max_attempts: int

class RateLimitRules(BaseModel):
    login: RateLimitWindow
    send_code: RateLimitWindow
    verify_code: RateLimitWindow

class CookieRules(BaseModel):
    max_age_days: int
    cart: str
    favorites: str
    configurator: str
    checkout: str

    @property
    def max_age_seconds(self) -> int:
        return self.max_age_days * 24 * 60 * 60

class SearchRules(BaseModel):
    cache_ttl_seconds: int
    max_limit: int
    default_limit: int
    suggestions_limit: int

class CatalogRules(BaseModel):
    page_size: int
    placeholder_image: str
    search: SearchRules

class OrderStatusIds(BaseModel):
    new: int
    confirmed: int
    paid: int
    assembling: int
    shipped: int
    delivered: int
    cancelled: int

class OrderStatisticsGroups(BaseModel):
    pending: list[int]
    processing: list[int]
    completed: list[int]
    cancelled: list[int]

class OrderRules(BaseModel):
    statuses: OrderStatusIds
    final_statuses: list[int]
    cancellable_below: int
    statistics: OrderStatisticsGroups
    unpaid_statuses: list[int]
    delivery_statuses: list[int]

class AnalyticsRules(BaseModel):
    default_period_days: int
    top_builds_limit: int

class RequiredGroup(BaseModel):
    name: str
    message: str
    slugs: list[str]

class CategoryRoles(BaseModel):
    motherboard: list[str] = Field(default_factory=list)
    cpu: list[str] = Field(default_factory=list)
    case: list[str] = Field(default_factory=list)
    storage: list[str] = Field(default_factory=list)
    air_cooler: list[str] = Field(default_factory=list)
    liquid_cooler: list[str] = Field(default_factory=list)

class CompatibilityRules(BaseModel):
    required_groups: list[RequiredGroup]
    category_roles: CategoryRoles

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules
    roles: RoleRules
    rate_limits: RateLimitRules
    cookies: CookieRules
    catalog: CatalogRules
    orders: OrderRules
    analytics: AnalyticsRules
    compatibility: CompatibilityRules
    ops: OpsRules
