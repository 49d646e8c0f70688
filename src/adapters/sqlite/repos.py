import json
import sqlite3
from datetime import datetime
from typing import Any

from src.components.analytics.models import ClientSummary
from src.domain.entities import (
    Build,
    Category,
    CharacteristicType,
    CompatibilityRule,
    DeliveryAddress,
    DeliveryMethod,
    Favorite,
    Order,
    OrderHistory,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    Product,
    ProductCharacteristic,
    RuleCategoryPair,
    RuleCharacteristic,
    RuleValuePair,
    User,
    UserProfile,
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def placeholders(values: list[Any]) -> str:
    return ", ".join("?" for _ in values)


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def like(column: str) -> str:
    """Case-insensitive substring test on column, for any script."""
    return f"casefold({column}) LIKE ? ESCAPE '\\'"


def contains_pattern(term: str) -> str:
    """LIKE pattern for term anywhere in the value; % and _ in term match literally."""
    escaped = term.casefold().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


# --- Catalog ---


class SQLiteCatalogRepo(_SQLiteRepo):
    def _row_to_category(self, row: dict[str, Any]) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            parent_id=row["parent_id"],
            icon=row["icon"],
        )

    def list_categories(self) -> list[Category]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM categories ORDER BY id").fetchall()
            return [self._row_to_category(r) for r in rows]
        finally:
            conn.close()

    def get_category_by_slug(self, slug: str) -> Category | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM categories WHERE slug = ?", (slug,)).fetchone()
            return self._row_to_category(row) if row else None
        finally:
            conn.close()

    def get_category_by_id(self, category_id: int) -> Category | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,)).fetchone()
            return self._row_to_category(row) if row else None
        finally:
            conn.close()

    def save_category(self, category: Category) -> Category:
        conn = self._get_conn()
        try:
            if category.id is None:
                cur = conn.execute(
                    "INSERT INTO categories (name, slug, parent_id, icon) VALUES (?, ?, ?, ?)",
                    (category.name, category.slug, category.parent_id, category.icon),
                )
                category = category.model_copy(update={"id": cur.lastrowid})
            else:
                conn.execute(
                    "UPDATE categories SET name = ?, slug = ?, parent_id = ?, icon = ? WHERE id = ?",
                    (category.name, category.slug, category.parent_id, category.icon, category.id),
                )
            conn.commit()
            return category
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete_category(self, category_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _characteristics(
        self, conn: sqlite3.Connection, product_ids: list[int]
    ) -> dict[int, list[ProductCharacteristic]]:
        if not product_ids:
            return {}
        rows = conn.execute(
            f"""
            SELECT pc.product_id, pc.characteristic_type_id, pc.value, ct.slug, ct.name
            FROM product_characteristics pc
            JOIN characteristics_types ct ON ct.id = pc.characteristic_type_id
            WHERE pc.product_id IN ({placeholders(product_ids)})
            ORDER BY pc.product_id, ct.id
            """,
            product_ids,
        ).fetchall()
        result: dict[int, list[ProductCharacteristic]] = {}
        for r in rows:
            result.setdefault(r["product_id"], []).append(
                ProductCharacteristic(
                    product_id=r["product_id"],
                    type_id=r["characteristic_type_id"],
                    type_slug=r["slug"],
                    type_name=r["name"],
                    value=r["value"],
                )
            )
        return result

    def _load_products(self, conn: sqlite3.Connection, rows: list[dict[str, Any]]) -> list[Product]:
        chars = self._characteristics(conn, [r["id"] for r in rows])
        return [
            Product(
                id=r["id"],
                slug=r["slug"],
                title=r["title"],
                price=r["price"],
                brand=r["brand"] or "",
                image=r["image"],
                description=r["description"],
                category_id=r["category_id"],
                created_at=parse_dt(r["created_at"]) or datetime.min,
                characteristics=chars.get(r["id"], []),
            )
            for r in rows
        ]

    def list_products(self, category_id: int) -> list[Product]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM products WHERE category_id = ? ORDER BY id", (category_id,)
            ).fetchall()
            return self._load_products(conn, rows)
        finally:
            conn.close()

    def get_product_by_slug(self, slug: str) -> Product | None:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM products WHERE slug = ?", (slug,)).fetchall()
            products = self._load_products(conn, rows)
            return products[0] if products else None
        finally:
            conn.close()

    def get_product_by_id(self, product_id: int) -> Product | None:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchall()
            products = self._load_products(conn, rows)
            return products[0] if products else None
        finally:
            conn.close()

    def get_products_by_ids(self, product_ids: list[int]) -> list[Product]:
        if not product_ids:
            return []
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"SELECT * FROM products WHERE id IN ({placeholders(product_ids)})",
                list(product_ids),
            ).fetchall()
            by_id = {p.id: p for p in self._load_products(conn, rows)}
            return [by_id[i] for i in dict.fromkeys(product_ids) if i in by_id]
        finally:
            conn.close()

    def save_product(self, product: Product) -> Product:
        conn = self._get_conn()
        try:
            values = (
                product.slug,
                product.title,
                product.price,
                product.brand,
                product.image,
                product.description,
                product.category_id,
            )
            if product.id is None:
                cur = conn.execute(
                    """
                    INSERT INTO products
                    (slug, title, price, brand, image, description, category_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*values, iso(product.created_at)),
                )
                product_id = cur.lastrowid
            else:
                product_id = product.id
                conn.execute(
                    """
                    UPDATE products SET slug = ?, title = ?, price = ?, brand = ?, image = ?,
                        description = ?, category_id = ?
                    WHERE id = ?
                    """,
                    (*values, product_id),
                )

            conn.execute("DELETE FROM product_characteristics WHERE product_id = ?", (product_id,))
            for char in product.characteristics:
                conn.execute(
                    """
                    INSERT INTO product_characteristics (product_id, characteristic_type_id, value)
                    VALUES (?, ?, ?)
                    """,
                    (product_id, char.type_id, char.value),
                )
            conn.commit()

            rows = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchall()
            return self._load_products(conn, rows)[0]
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete_product(self, product_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def search_products(self, terms: list[str]) -> list[Product]:
        if not terms:
            return []
        clauses = []
        params: list[str] = []
        for term in terms:
            clauses.append(
                f"({like('title')} OR {like('description')} OR {like('brand')})"
            )
            pattern = contains_pattern(term)
            params.extend([pattern, pattern, pattern])
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"SELECT * FROM products WHERE {' AND '.join(clauses)} ORDER BY id", params
            ).fetchall()
            return self._load_products(conn, rows)
        finally:
            conn.close()

    def list_characteristic_types(self) -> list[CharacteristicType]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM characteristics_types ORDER BY id").fetchall()
            return [CharacteristicType(id=r["id"], name=r["name"], slug=r["slug"]) for r in rows]
        finally:
            conn.close()

    def list_filter_characteristics(self, category_id: int) -> list[CharacteristicType]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT ct.* FROM category_filter_characteristics cf
                JOIN characteristics_types ct ON ct.id = cf.characteristic_type_id
                WHERE cf.category_id = ?
                ORDER BY cf.position, ct.id
                """,
                (category_id,),
            ).fetchall()
            return [CharacteristicType(id=r["id"], name=r["name"], slug=r["slug"]) for r in rows]
        finally:
            conn.close()


# --- Compatibility rules ---


class SQLiteRuleRepo(_SQLiteRepo):
    def _load_rule(self, conn: sqlite3.Connection, row: dict[str, Any]) -> CompatibilityRule:
        rule_id = row["id"]
        cat_rows = conn.execute(
            "SELECT * FROM compatibility_rule_categories WHERE rule_id = ? ORDER BY id", (rule_id,)
        ).fetchall()
        char_rows = conn.execute(
            "SELECT * FROM compatibility_rule_characteristics WHERE rule_id = ? ORDER BY id",
            (rule_id,),
        ).fetchall()

        characteristics = []
        for c in char_rows:
            value_rows = conn.execute(
                "SELECT * FROM compatibility_values WHERE rule_characteristic_id = ? ORDER BY id",
                (c["id"],),
            ).fetchall()
            characteristics.append(
                RuleCharacteristic(
                    id=c["id"],
                    primary_characteristic_id=c["primary_characteristic_id"],
                    secondary_characteristic_id=c["secondary_characteristic_id"],
                    comparison_type=c["comparison_type"],
                    values=[
                        RuleValuePair(primary_value=v["primary_value"], secondary_value=v["secondary_value"])
                        for v in value_rows
                    ],
                )
            )

        return CompatibilityRule(
            id=rule_id,
            name=row["name"],
            description=row["description"],
            created_at=parse_dt(row["created_at"]) or datetime.min,
            categories=[
                RuleCategoryPair(
                    id=c["id"],
                    primary_category_id=c["primary_category_id"],
                    secondary_category_id=c["secondary_category_id"],
                )
                for c in cat_rows
            ],
            characteristics=characteristics,
        )

    def find_rules(
        self, primary_category_id: int, secondary_category_id: int
    ) -> list[CompatibilityRule]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT DISTINCT r.* FROM compatibility_rules r
                JOIN compatibility_rule_categories rc ON rc.rule_id = r.id
                WHERE rc.primary_category_id = ? AND rc.secondary_category_id = ?
                ORDER BY r.id
                """,
                (primary_category_id, secondary_category_id),
            ).fetchall()
            return [self._load_rule(conn, r) for r in rows]
        finally:
            conn.close()

    def list_rules(self) -> list[CompatibilityRule]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM compatibility_rules ORDER BY id").fetchall()
            return [self._load_rule(conn, r) for r in rows]
        finally:
            conn.close()

    def get_rule(self, rule_id: int) -> CompatibilityRule | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM compatibility_rules WHERE id = ?", (rule_id,)
            ).fetchone()
            return self._load_rule(conn, row) if row else None
        finally:
            conn.close()

    def save_rule(self, rule: CompatibilityRule) -> CompatibilityRule:
        conn = self._get_conn()
        try:
            if rule.id is None:
                cur = conn.execute(
                    "INSERT INTO compatibility_rules (name, description, created_at) VALUES (?, ?, ?)",
                    (rule.name, rule.description, iso(rule.created_at)),
                )
                rule_id = cur.lastrowid
            else:
                rule_id = rule.id
                conn.execute(
                    "UPDATE compatibility_rules SET name = ?, description = ? WHERE id = ?",
                    (rule.name, rule.description, rule_id),
                )
                # values go with their characteristics (ON DELETE CASCADE)
                conn.execute("DELETE FROM compatibility_rule_categories WHERE rule_id = ?", (rule_id,))
                conn.execute(
                    "DELETE FROM compatibility_rule_characteristics WHERE rule_id = ?", (rule_id,)
                )

            for pair in rule.categories:
                conn.execute(
                    """
                    INSERT INTO compatibility_rule_categories
                    (rule_id, primary_category_id, secondary_category_id) VALUES (?, ?, ?)
                    """,
                    (rule_id, pair.primary_category_id, pair.secondary_category_id),
                )
            for char in rule.characteristics:
                cur = conn.execute(
                    """
                    INSERT INTO compatibility_rule_characteristics
                    (rule_id, primary_characteristic_id, secondary_characteristic_id, comparison_type)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        rule_id,
                        char.primary_characteristic_id,
                        char.secondary_characteristic_id,
                        char.comparison_type,
                    ),
                )
                for value in char.values:
                    conn.execute(
                        """
                        INSERT INTO compatibility_values
                        (rule_characteristic_id, primary_value, secondary_value) VALUES (?, ?, ?)
                        """,
                        (cur.lastrowid, value.primary_value, value.secondary_value),
                    )
            conn.commit()

            row = conn.execute("SELECT * FROM compatibility_rules WHERE id = ?", (rule_id,)).fetchone()
            return self._load_rule(conn, row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete_rule(self, rule_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM compatibility_rules WHERE id = ?", (rule_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete_all_rules(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM compatibility_rules")
            conn.commit()
            return cur.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Builds ---


class SQLiteBuildRepo(_SQLiteRepo):
    def _row_to_build(self, row: dict[str, Any]) -> Build:
        return Build(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            user_id=row["user_id"],
            components=json.loads(row["components"] or "{}"),
            total_price=row["total_price"],
            created_at=parse_dt(row["created_at"]) or datetime.min,
            updated_at=parse_dt(row["updated_at"]) or datetime.min,
        )

    def _one(self, sql: str, params: tuple[Any, ...]) -> Build | None:
        conn = self._get_conn()
        try:
            row = conn.execute(sql, params).fetchone()
            return self._row_to_build(row) if row else None
        finally:
            conn.close()

    def _many(self, sql: str, params: tuple[Any, ...] = ()) -> list[Build]:
        conn = self._get_conn()
        try:
            return [self._row_to_build(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def get_by_id(self, build_id: int) -> Build | None:
        return self._one("SELECT * FROM pc_builds WHERE id = ?", (build_id,))

    def get_by_slug(self, slug: str) -> Build | None:
        return self._one("SELECT * FROM pc_builds WHERE slug = ?", (slug,))

    def list_by_user(self, user_id: int) -> list[Build]:
        return self._many(
            "SELECT * FROM pc_builds WHERE user_id = ? ORDER BY created_at DESC, id DESC", (user_id,)
        )

    def list_all(self) -> list[Build]:
        return self._many("SELECT * FROM pc_builds ORDER BY created_at DESC, id DESC")

    def search(self, query: str | None, offset: int, limit: int) -> tuple[list[Build], int]:
        where = ""
        params: list[Any] = []
        if query:
            where = f"WHERE {like('name')} OR {like('slug')}"
            params = [contains_pattern(query)] * 2
        conn = self._get_conn()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS n FROM pc_builds {where}", params).fetchone()["n"]
            rows = conn.execute(
                f"SELECT * FROM pc_builds {where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
            return [self._row_to_build(r) for r in rows], total
        finally:
            conn.close()

    def save(self, build: Build) -> Build:
        conn = self._get_conn()
        try:
            values = (
                build.name,
                build.slug,
                build.user_id,
                json.dumps(build.components, ensure_ascii=False),
                build.total_price,
                iso(build.updated_at),
            )
            if build.id is None:
                cur = conn.execute(
                    """
                    INSERT INTO pc_builds
                    (name, slug, user_id, components, total_price, updated_at, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*values, iso(build.created_at)),
                )
                build = build.model_copy(update={"id": cur.lastrowid})
            else:
                conn.execute(
                    """
                    UPDATE pc_builds SET name = ?, slug = ?, user_id = ?, components = ?,
                        total_price = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (*values, build.id),
                )
            conn.commit()
            return build
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete(self, build_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM pc_builds WHERE id = ?", (build_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Favorites ---


class SQLiteFavoriteRepo(_SQLiteRepo):
    def list_by_user(self, user_id: int) -> list[Favorite]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM favorites WHERE user_id = ? ORDER BY created_at, id", (user_id,)
            ).fetchall()
            return [
                Favorite(
                    id=r["id"],
                    user_id=r["user_id"],
                    product_id=r["product_id"],
                    created_at=parse_dt(r["created_at"]) or datetime.min,
                )
                for r in rows
            ]
        finally:
            conn.close()

    def exists(self, user_id: int, product_id: int) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT 1 FROM favorites WHERE user_id = ? AND product_id = ?", (user_id, product_id)
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def add(self, user_id: int, product_id: int, created_at: datetime) -> Favorite:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO favorites (user_id, product_id, created_at) VALUES (?, ?, ?)
                ON CONFLICT(user_id, product_id) DO NOTHING
                """,
                (user_id, product_id, iso(created_at)),
            )
            conn.commit()
            return Favorite(id=cur.lastrowid, user_id=user_id, product_id=product_id, created_at=created_at)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def remove(self, user_id: int, product_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "DELETE FROM favorites WHERE user_id = ? AND product_id = ?", (user_id, product_id)
            )
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def clear(self, user_id: int) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM favorites WHERE user_id = ?", (user_id,))
            conn.commit()
            return cur.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Users ---

_USER_SELECT = """
    SELECT u.*, p.user_id AS p_user_id, p.first_name, p.last_name, p.phone, p.city, p.address
    FROM users u
    LEFT JOIN user_profiles p ON p.user_id = u.id
"""


class SQLiteUserRepo(_SQLiteRepo):
    def _row_to_user(self, row: dict[str, Any]) -> User:
        profile = None
        if row.get("p_user_id") is not None:
            profile = UserProfile(
                user_id=row["p_user_id"],
                first_name=row["first_name"],
                last_name=row["last_name"],
                phone=row["phone"],
                city=row["city"],
                address=row["address"],
            )
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            role_id=row["role_id"],
            is_active=bool(row["is_active"]),
            last_login_at=parse_dt(row["last_login_at"]),
            created_at=parse_dt(row["created_at"]) or datetime.min,
            updated_at=parse_dt(row["updated_at"]) or datetime.min,
            profile=profile,
        )

    def get_by_email(self, email: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(f"{_USER_SELECT} WHERE u.email = ?", (email,)).fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    def get_by_id(self, user_id: int) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(f"{_USER_SELECT} WHERE u.id = ?", (user_id,)).fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    def save(self, user: User) -> User:
        conn = self._get_conn()
        try:
            values = (
                user.email,
                user.password_hash,
                user.role_id,
                1 if user.is_active else 0,
                iso(user.last_login_at),
                iso(user.updated_at),
            )
            if user.id is None:
                cur = conn.execute(
                    """
                    INSERT INTO users
                    (email, password_hash, role_id, is_active, last_login_at, updated_at, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*values, iso(user.created_at)),
                )
                user_id = cur.lastrowid
            else:
                user_id = user.id
                conn.execute(
                    """
                    UPDATE users SET email = ?, password_hash = ?, role_id = ?, is_active = ?,
                        last_login_at = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (*values, user_id),
                )

            if user.profile is not None:
                p = user.profile
                conn.execute(
                    """
                    INSERT INTO user_profiles (user_id, first_name, last_name, phone, city, address)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        first_name=excluded.first_name,
                        last_name=excluded.last_name,
                        phone=excluded.phone,
                        city=excluded.city,
                        address=excluded.address
                    """,
                    (user_id, p.first_name, p.last_name, p.phone, p.city, p.address),
                )
            conn.commit()

            row = conn.execute(f"{_USER_SELECT} WHERE u.id = ?", (user_id,)).fetchone()
            return self._row_to_user(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def list_all(self) -> list[User]:
        conn = self._get_conn()
        try:
            rows = conn.execute(f"{_USER_SELECT} ORDER BY u.id").fetchall()
            return [self._row_to_user(r) for r in rows]
        finally:
            conn.close()

    def delete(self, user_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def search_clients(
        self,
        query: str | None,
        offset: int,
        limit: int,
        unpaid_statuses: list[int],
    ) -> tuple[list[ClientSummary], int]:
        where = "WHERE u.role_id = 2"
        params: list[Any] = []
        if query:
            where += (
                f" AND ({like('u.email')} OR {like('p.first_name')}"
                f" OR {like('p.last_name')})"
            )
            pattern = contains_pattern(query)
            params = [pattern, pattern, pattern]

        unpaid = list(unpaid_statuses) or [-1]
        conn = self._get_conn()
        try:
            total = conn.execute(
                f"""
                SELECT COUNT(*) AS n FROM users u
                LEFT JOIN user_profiles p ON p.user_id = u.id
                {where}
                """,
                params,
            ).fetchone()["n"]
            rows = conn.execute(
                f"""
                SELECT u.id, u.email, u.is_active, u.created_at, u.last_login_at,
                    p.first_name, p.last_name,
                    (SELECT COUNT(*) FROM orders o WHERE o.user_id = u.id) AS order_count,
                    (SELECT COALESCE(SUM(o.total_price), 0) FROM orders o
                        WHERE o.user_id = u.id
                        AND o.status_id NOT IN ({placeholders(unpaid)})) AS total_spent
                FROM users u
                LEFT JOIN user_profiles p ON p.user_id = u.id
                {where}
                ORDER BY u.created_at DESC, u.id DESC
                LIMIT ? OFFSET ?
                """,
                [*unpaid, *params, limit, offset],
            ).fetchall()
            clients = [
                ClientSummary(
                    id=r["id"],
                    email=r["email"],
                    is_active=bool(r["is_active"]),
                    created_at=parse_dt(r["created_at"]) or datetime.min,
                    last_login_at=parse_dt(r["last_login_at"]),
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                    order_count=r["order_count"],
                    total_spent=round(float(r["total_spent"]), 2),
                )
                for r in rows
            ]
            return clients, total
        finally:
            conn.close()


# --- Orders ---

_ORDER_SELECT = """
    SELECT o.*, u.email AS customer_email
    FROM orders o
    LEFT JOIN users u ON u.id = o.user_id
"""


class SQLiteOrderRepo(_SQLiteRepo):
    def _load_orders(self, conn: sqlite3.Connection, rows: list[dict[str, Any]]) -> list[Order]:
        ids = [r["id"] for r in rows]
        items: dict[int, list[OrderItem]] = {}
        history: dict[int, list[OrderHistory]] = {}
        if ids:
            for r in conn.execute(
                f"SELECT * FROM order_items WHERE order_id IN ({placeholders(ids)}) ORDER BY id", ids
            ).fetchall():
                items.setdefault(r["order_id"], []).append(
                    OrderItem(
                        id=r["id"],
                        order_id=r["order_id"],
                        build_id=r["build_id"],
                        quantity=r["quantity"],
                        price=r["price"],
                        build_snapshot=json.loads(r["build_snapshot"] or "{}"),
                    )
                )
            for r in conn.execute(
                f"""
                SELECT * FROM order_history WHERE order_id IN ({placeholders(ids)})
                ORDER BY created_at, id
                """,
                ids,
            ).fetchall():
                history.setdefault(r["order_id"], []).append(
                    OrderHistory(
                        id=r["id"],
                        order_id=r["order_id"],
                        status_id=r["status_id"],
                        comment=r["comment"],
                        user_id=r["user_id"],
                        created_at=parse_dt(r["created_at"]) or datetime.min,
                    )
                )

        return [
            Order(
                id=r["id"],
                order_number=r["order_number"],
                user_id=r["user_id"],
                status_id=r["status_id"],
                delivery_method_id=r["delivery_method_id"],
                payment_method_id=r["payment_method_id"],
                delivery_address_id=r["delivery_address_id"],
                comment=r["comment"],
                total_price=r["total_price"],
                created_at=parse_dt(r["created_at"]) or datetime.min,
                updated_at=parse_dt(r["updated_at"]) or datetime.min,
                customer_email=r.get("customer_email"),
                items=items.get(r["id"], []),
                history=history.get(r["id"], []),
            )
            for r in rows
        ]

    def _query(self, where: str = "", params: list[Any] | tuple[Any, ...] = ()) -> list[Order]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"{_ORDER_SELECT} {where} ORDER BY o.created_at DESC, o.id DESC", list(params)
            ).fetchall()
            return self._load_orders(conn, rows)
        finally:
            conn.close()

    def create(self, order: Order) -> Order:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO orders (
                    order_number, user_id, status_id, delivery_method_id, payment_method_id,
                    delivery_address_id, comment, total_price, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.order_number,
                    order.user_id,
                    order.status_id,
                    order.delivery_method_id,
                    order.payment_method_id,
                    order.delivery_address_id,
                    order.comment,
                    order.total_price,
                    iso(order.created_at),
                    iso(order.updated_at),
                ),
            )
            order_id = cur.lastrowid
            for item in order.items:
                conn.execute(
                    """
                    INSERT INTO order_items (order_id, build_id, quantity, price, build_snapshot)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        order_id,
                        item.build_id,
                        item.quantity,
                        item.price,
                        json.dumps(item.build_snapshot, ensure_ascii=False),
                    ),
                )
            for entry in order.history:
                conn.execute(
                    """
                    INSERT INTO order_history (order_id, status_id, comment, user_id, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (order_id, entry.status_id, entry.comment, entry.user_id, iso(entry.created_at)),
                )
            conn.commit()

            rows = conn.execute(f"{_ORDER_SELECT} WHERE o.id = ?", (order_id,)).fetchall()
            return self._load_orders(conn, rows)[0]
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, order_id: int) -> Order | None:
        found = self._query("WHERE o.id = ?", (order_id,))
        return found[0] if found else None

    def get_by_number(self, order_number: str) -> Order | None:
        found = self._query("WHERE o.order_number = ?", (order_number,))
        return found[0] if found else None

    def list_by_user(self, user_id: int) -> list[Order]:
        return self._query("WHERE o.user_id = ?", (user_id,))

    def search(
        self, status_id: int | None, query: str | None, offset: int, limit: int
    ) -> tuple[list[Order], int]:
        clauses = []
        params: list[Any] = []
        if status_id is not None:
            clauses.append("o.status_id = ?")
            params.append(status_id)
        if query:
            clauses.append(f"({like('o.order_number')} OR {like('u.email')})")
            params.extend([contains_pattern(query)] * 2)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_conn()
        try:
            total = conn.execute(
                f"SELECT COUNT(*) AS n FROM orders o LEFT JOIN users u ON u.id = o.user_id {where}",
                params,
            ).fetchone()["n"]
            rows = conn.execute(
                f"{_ORDER_SELECT} {where} ORDER BY o.created_at DESC, o.id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
            return self._load_orders(conn, rows), total
        finally:
            conn.close()

    def list_by_statuses(self, status_ids: list[int]) -> list[Order]:
        if not status_ids:
            return []
        return self._query(f"WHERE o.status_id IN ({placeholders(status_ids)})", status_ids)

    def list_all(self) -> list[Order]:
        return self._query()

    def list_since(self, since: datetime) -> list[Order]:
        return self._query("WHERE o.created_at >= ?", (iso(since),))

    def update_status(self, order_id: int, status_id: int, updated_at: datetime) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE orders SET status_id = ?, updated_at = ? WHERE id = ?",
                (status_id, iso(updated_at), order_id),
            )
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def add_history(self, entry: OrderHistory) -> OrderHistory:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO order_history (order_id, status_id, comment, user_id, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (entry.order_id, entry.status_id, entry.comment, entry.user_id, iso(entry.created_at)),
            )
            conn.commit()
            return entry.model_copy(update={"id": cur.lastrowid})
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Reference data ---


class SQLiteReferenceRepo(_SQLiteRepo):
    def _row_to_delivery(self, r: dict[str, Any]) -> DeliveryMethod:
        return DeliveryMethod(
            id=r["id"],
            name=r["name"],
            description=r["description"],
            price=r["price"],
            estimated_days=r["estimated_days"],
            is_active=bool(r["is_active"]),
        )

    def list_statuses(self) -> list[OrderStatus]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM order_statuses ORDER BY id").fetchall()
            return [OrderStatus(**r) for r in rows]
        finally:
            conn.close()

    def get_status(self, status_id: int) -> OrderStatus | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM order_statuses WHERE id = ?", (status_id,)).fetchone()
            return OrderStatus(**row) if row else None
        finally:
            conn.close()

    def list_delivery_methods(self, active_only: bool = True) -> list[DeliveryMethod]:
        conn = self._get_conn()
        try:
            sql = "SELECT * FROM delivery_methods"
            if active_only:
                sql += " WHERE is_active = 1"
            rows = conn.execute(f"{sql} ORDER BY id").fetchall()
            return [self._row_to_delivery(r) for r in rows]
        finally:
            conn.close()

    def get_delivery_method(self, method_id: int) -> DeliveryMethod | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM delivery_methods WHERE id = ?", (method_id,)).fetchone()
            return self._row_to_delivery(row) if row else None
        finally:
            conn.close()

    def save_delivery_method(self, method: DeliveryMethod) -> DeliveryMethod:
        conn = self._get_conn()
        try:
            values = (
                method.name,
                method.description,
                method.price,
                method.estimated_days,
                1 if method.is_active else 0,
            )
            if method.id is None:
                cur = conn.execute(
                    """
                    INSERT INTO delivery_methods (name, description, price, estimated_days, is_active)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    values,
                )
                method = method.model_copy(update={"id": cur.lastrowid})
            else:
                conn.execute(
                    """
                    UPDATE delivery_methods
                    SET name = ?, description = ?, price = ?, estimated_days = ?, is_active = ?
                    WHERE id = ?
                    """,
                    (*values, method.id),
                )
            conn.commit()
            return method
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete_delivery_method(self, method_id: int) -> bool:
        """Orders keep pointing at a used method, so a used one is only deactivated."""
        conn = self._get_conn()
        try:
            used = conn.execute(
                "SELECT 1 FROM orders WHERE delivery_method_id = ? LIMIT 1", (method_id,)
            ).fetchone()
            if used:
                cur = conn.execute(
                    "UPDATE delivery_methods SET is_active = 0 WHERE id = ?", (method_id,)
                )
            else:
                cur = conn.execute("DELETE FROM delivery_methods WHERE id = ?", (method_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def list_payment_methods(self, active_only: bool = True) -> list[PaymentMethod]:
        conn = self._get_conn()
        try:
            sql = "SELECT * FROM payment_methods"
            if active_only:
                sql += " WHERE is_active = 1"
            rows = conn.execute(f"{sql} ORDER BY id").fetchall()
            return [
                PaymentMethod(
                    id=r["id"], name=r["name"], description=r["description"], is_active=bool(r["is_active"])
                )
                for r in rows
            ]
        finally:
            conn.close()

    def get_payment_method(self, method_id: int) -> PaymentMethod | None:
        conn = self._get_conn()
        try:
            r = conn.execute("SELECT * FROM payment_methods WHERE id = ?", (method_id,)).fetchone()
            if not r:
                return None
            return PaymentMethod(
                id=r["id"], name=r["name"], description=r["description"], is_active=bool(r["is_active"])
            )
        finally:
            conn.close()


# --- Delivery addresses ---


class SQLiteAddressRepo(_SQLiteRepo):
    def _row_to_address(self, r: dict[str, Any]) -> DeliveryAddress:
        return DeliveryAddress(
            id=r["id"],
            user_id=r["user_id"],
            recipient_name=r["recipient_name"],
            phone=r["phone"],
            city=r["city"],
            street=r["street"],
            house=r["house"],
            apartment=r["apartment"],
            postal_code=r["postal_code"],
            is_default=bool(r["is_default"]),
            created_at=parse_dt(r["created_at"]) or datetime.min,
        )

    def list_by_user(self, user_id: int) -> list[DeliveryAddress]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM delivery_addresses WHERE user_id = ?
                ORDER BY is_default DESC, created_at, id
                """,
                (user_id,),
            ).fetchall()
            return [self._row_to_address(r) for r in rows]
        finally:
            conn.close()

    def get(self, address_id: int) -> DeliveryAddress | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM delivery_addresses WHERE id = ?", (address_id,)
            ).fetchone()
            return self._row_to_address(row) if row else None
        finally:
            conn.close()

    def save(self, address: DeliveryAddress) -> DeliveryAddress:
        conn = self._get_conn()
        try:
            values = (
                address.user_id,
                address.recipient_name,
                address.phone,
                address.city,
                address.street,
                address.house,
                address.apartment,
                address.postal_code,
                1 if address.is_default else 0,
            )
            if address.id is None:
                cur = conn.execute(
                    """
                    INSERT INTO delivery_addresses (
                        user_id, recipient_name, phone, city, street, house, apartment,
                        postal_code, is_default, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*values, iso(address.created_at)),
                )
                address = address.model_copy(update={"id": cur.lastrowid})
            else:
                conn.execute(
                    """
                    UPDATE delivery_addresses SET user_id = ?, recipient_name = ?, phone = ?,
                        city = ?, street = ?, house = ?, apartment = ?, postal_code = ?,
                        is_default = ?
                    WHERE id = ?
                    """,
                    (*values, address.id),
                )
            conn.commit()
            return address
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete(self, address_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM delivery_addresses WHERE id = ?", (address_id,))
            conn.commit()
            return cur.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def clear_default(self, user_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE delivery_addresses SET is_default = 0 WHERE user_id = ?", (user_id,)
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
