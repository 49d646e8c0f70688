from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleName = Literal["admin", "client", "manager"]
CartItemType = Literal["build", "product"]
PaymentMethodKind = Literal["card", "qrcode"]
PaymentState = Literal["pending", "paid", "failed"]

ROLE_ADMIN = 1
ROLE_CLIENT = 2
ROLE_MANAGER = 3

ROLE_NAMES: dict[int, RoleName] = {
    ROLE_ADMIN: "admin",
    ROLE_CLIENT: "client",
    ROLE_MANAGER: "manager",
}

# --- Users ---

class UserProfile(BaseModel):
    user_id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None

class User(BaseModel):
    id: int | None = None
    email: str
    password_hash: str
    role_id: int = ROLE_CLIENT
    is_active: bool = True
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    profile: UserProfile | None = None

    @property
    def role(self) -> RoleName:
        return ROLE_NAMES.get(self.role_id, "client")

# --- Catalog ---

class Category(BaseModel):
    id: int | None = None
    name: str
    slug: str
    parent_id: int | None = None
    icon: str | None = None
    children: list["Category"] = Field(default_factory=list)

Category.model_rebuild()

class CharacteristicType(BaseModel):
    id: int | None = None
    name: str
    slug: str

class ProductCharacteristic(BaseModel):
    product_id: int | None = None
    type_id: int
    type_slug: str
    type_name: str
    value: str

class Product(BaseModel):
    id: int | None = None
    slug: str
    title: str
    price: float
    brand: str = ""
    image: str | None = None
    description: str | None = None
    category_id: int
    created_at: datetime = Field(default_factory=datetime.utcnow)
    characteristics: list[ProductCharacteristic] = Field(default_factory=list)

    def characteristic(self, type_slug: str) -> str | None:
        for char in self.characteristics:
            if char.type_slug == type_slug:
                return char.value
        return None

# --- Compatibility ---

class RuleCategoryPair(BaseModel):
    id: int | None = None
    primary_category_id: int
    secondary_category_id: int

class RuleValuePair(BaseModel):
    primary_value: str
    secondary_value: str

class RuleCharacteristic(BaseModel):
    id: int | None = None
    primary_characteristic_id: int
    secondary_characteristic_id: int
    comparison_type: str
    values: list[RuleValuePair] = Field(default_factory=list)

class CompatibilityRule(BaseModel):
    id: int | None = None
    name: str
    description: str | None = None
    categories: list[RuleCategoryPair] = Field(default_factory=list)
    characteristics: list[RuleCharacteristic] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)

# --- Builds ---

class Build(BaseModel):
    id: int | None = None
    name: str
    slug: str
    user_id: int | None = None
    components: dict[str, str] = Field(default_factory=dict)
    total_price: float = 0.0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

# --- Favorites ---

class Favorite(BaseModel):
    id: int | None = None
    user_id: int
    product_id: int
    created_at: datetime = Field(default_factory=datetime.utcnow)

# --- Orders ---

class OrderStatus(BaseModel):
    id: int
    name: str
    description: str | None = None
    color: str | None = None

class DeliveryMethod(BaseModel):
    id: int | None = None
    name: str
    description: str | None = None
    price: float = 0.0
    estimated_days: str | None = None
    is_active: bool = True

class PaymentMethod(BaseModel):
    id: int | None = None
    name: str
    description: str | None = None
    is_active: bool = True

class DeliveryAddress(BaseModel):
    id: int | None = None
    user_id: int
    recipient_name: str
    phone: str
    city: str
    street: str
    house: str
    apartment: str | None = None
    postal_code: str | None = None
    is_default: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

class OrderItem(BaseModel):
    id: int | None = None
    order_id: int | None = None
    build_id: int | None = None
    quantity: int = 1
    price: float
    build_snapshot: dict[str, Any] = Field(default_factory=dict)

class OrderHistory(BaseModel):
    id: int | None = None
    order_id: int
    status_id: int
    comment: str | None = None
    user_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class Order(BaseModel):
    id: int | None = None
    order_number: str
    user_id: int
    status_id: int = 1
    delivery_method_id: int | None = None
    payment_method_id: int | None = None
    delivery_address_id: int | None = None
    comment: str | None = None
    total_price: float = 0.0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    # joined from users when read back
    customer_email: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    history: list[OrderHistory] = Field(default_factory=list)
