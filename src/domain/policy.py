from src.domain.entities import Build, Order, User
from src.rules.models import Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def is_admin(self, user: User | None) -> bool:
        return bool(user and user.is_active and user.role_id == self.rules.roles.admin)

    def is_manager(self, user: User | None) -> bool:
        """Managers and admins share the back-office permissions."""
        if not user or not user.is_active:
            return False
        return user.role_id in (self.rules.roles.manager, self.rules.roles.admin)

    def can_manage_users(self, user: User | None) -> bool:
        return self.is_admin(user)

    def can_delete_user(self, actor: User | None, target_id: int) -> bool:
        if not actor:
            return False
        return self.is_admin(actor) or actor.id == target_id

    def can_view_order(self, user: User | None, order: Order) -> bool:
        if not user:
            return False
        return order.user_id == user.id or self.is_manager(user)

    def can_modify_build(self, user: User | None, build: Build) -> bool:
        if not user:
            return False
        if build.user_id is not None and build.user_id == user.id:
            return True
        return self.is_manager(user)
