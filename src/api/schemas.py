from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.adapters.images import ImageResolver
from src.domain.entities import Product, User

# --- Shared Enums/Types ---
SortOrder = Literal["asc", "desc"]
SearchSort = Literal["relevance", "price_asc", "price_desc"]
PaymentMethodKind = Literal["card", "qrcode"]


# --- Users ---
class ProfileResponse(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: int
    email: str
    role_id: int
    role: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    profile: ProfileResponse | None = None


def user_response(user: User) -> UserResponse:
    """Public view of a user; never carries the password hash."""
    assert user.id is not None
    return UserResponse(
        id=user.id,
        email=user.email,
        role_id=user.role_id,
        role=user.role,
        is_active=user.is_active,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        profile=ProfileResponse.model_validate(user.profile) if user.profile else None,
    )


class RegisterRequest(BaseModel):
    email: str
    password: str
    confirm_password: str
    captcha_token: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class EmailRequest(BaseModel):
    email: str


class VerifyCodeRequest(BaseModel):
    email: str
    code: str


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None


class PasswordUpdateRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


class UserUpdateRequest(BaseModel):
    role_id: int | None = None
    is_active: bool | None = None


class DeactivateInactiveRequest(BaseModel):
    days: int = Field(default=90, ge=1)


# --- Catalog ---
class CharacteristicResponse(BaseModel):
    type: str
    type_slug: str
    value: str


class ProductResponse(BaseModel):
    id: int
    slug: str
    title: str
    price: float
    brand: str
    image: str
    description: str | None = None
    category_id: int
    created_at: datetime
    characteristics: list[CharacteristicResponse] = []


def product_response(product: Product, images: ImageResolver) -> ProductResponse:
    assert product.id is not None
    return ProductResponse(
        id=product.id,
        slug=product.slug,
        title=product.title,
        price=product.price,
        brand=product.brand,
        image=images.resolve(product.image),
        description=product.description,
        category_id=product.category_id,
        created_at=product.created_at,
        characteristics=[
            CharacteristicResponse(type=c.type_name, type_slug=c.type_slug, value=c.value)
            for c in product.characteristics
            if c.value
        ],
    )


class ProductSaveRequest(BaseModel):
    slug: str
    title: str
    price: float
    category_id: int
    brand: str = ""
    image: str | None = None
    description: str | None = None
    # characteristic type id -> value
    characteristics: dict[int, str] = {}


class CategorySaveRequest(BaseModel):
    name: str
    slug: str
    parent_id: int | None = None
    icon: str | None = None


# --- Cart ---
class AddToCartRequest(BaseModel):
    product_id: int | None = None
    build_slug: str | None = None
    quantity: int = 1


class UpdateQuantityRequest(BaseModel):
    quantity: int


# --- Builds ---
class BuildSaveRequest(BaseModel):
    name: str
    components: dict[str, str]
    slug: str | None = None


class BuildUpdateRequest(BaseModel):
    name: str | None = None
    components: dict[str, str] | None = None


class ComponentsRequest(BaseModel):
    components: dict[str, str]


# --- Compatibility ---
class ComponentRefModel(BaseModel):
    category_slug: str
    product_slug: str


class CompatibilityCheckRequest(BaseModel):
    components: list[ComponentRefModel]


class CompatibleComponentsRequest(BaseModel):
    category_slug: str
    components: dict[str, str] = {}


class PairCheckRequest(BaseModel):
    first: ComponentRefModel
    second: ComponentRefModel


class RuleValueModel(BaseModel):
    primary_value: str
    secondary_value: str


class RuleCharacteristicModel(BaseModel):
    primary_characteristic_id: int
    secondary_characteristic_id: int
    comparison_type: str = "equality"
    values: list[RuleValueModel] = []


class RuleCategoryModel(BaseModel):
    primary_category_id: int
    secondary_category_id: int


class RuleSaveRequest(BaseModel):
    name: str
    description: str | None = None
    categories: list[RuleCategoryModel]
    characteristics: list[RuleCharacteristicModel] = []


class RulesImportRequest(BaseModel):
    document: dict[str, Any]
    replace: bool = False


# --- Favorites ---
class FavoriteToggleRequest(BaseModel):
    product_id: int


class FavoritesMergeRequest(BaseModel):
    product_ids: list[int]


# --- Orders ---
class AddressRequest(BaseModel):
    recipient_name: str
    phone: str
    city: str
    street: str
    house: str
    apartment: str | None = None
    postal_code: str | None = None
    is_default: bool = False


class CheckoutItemRequest(BaseModel):
    type: Literal["build", "product"] = "build"
    quantity: int = 1
    build_id: int | None = None
    slug: str | None = None
    name: str | None = None
    components: dict[str, str] = {}
    product_id: int | None = None


class CreateOrderRequest(BaseModel):
    # When omitted, the cart cookie is checked out
    items: list[CheckoutItemRequest] | None = None
    delivery_method_id: int
    payment_method_id: int | None = None
    delivery_address_id: int | None = None
    new_address: AddressRequest | None = None
    comment: str | None = None


class StatusUpdateRequest(BaseModel):
    status_id: int
    comment: str | None = None


class CompletePaymentRequest(BaseModel):
    status_id: int | None = None


class DeliveryMethodRequest(BaseModel):
    name: str
    price: float = 0.0
    description: str | None = None
    estimated_days: str | None = None
    is_active: bool = True


# --- Payments ---
class CardRequest(BaseModel):
    card_number: str
    cardholder_name: str
    expiry_date: str
    cvv: str

    def __repr__(self) -> str:
        return f"CardRequest(card_number='****{self.card_number[-4:]}')"


class ProcessPaymentRequest(BaseModel):
    order_id: int
    method: PaymentMethodKind
    amount: float | None = None
    card: CardRequest | None = None


class QRPayloadRequest(BaseModel):
    order_id: int
    payment_id: str


class PaymentStatusRequest(BaseModel):
    order_id: int
    payment_id: str


# --- Captcha / email ---
class CaptchaVerifyRequest(BaseModel):
    token: str


class EmailSendRequest(BaseModel):
    to: str
    subject: str
    html: str
    text: str | None = None


class OrderEmailRequest(BaseModel):
    order_id: int
