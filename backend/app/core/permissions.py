from app.core.config import REGISTRATION_COMPLETE_STEP
from app.core.errors import Unauthorized

ROLE_ADMIN = "admin"
ROLE_INTERN = "intern"


def role_of(user: object) -> str:
    if not user:
        return ""
    return str(getattr(user, "role", "") or "").strip().lower()


def is_admin(user: object) -> bool:
    return role_of(user) == ROLE_ADMIN


def is_intern(user: object) -> bool:
    return role_of(user) == ROLE_INTERN


def ensure_admin(actor: object) -> None:
    if not is_admin(actor):
        raise Unauthorized("Acesso negado: somente administradores")


def ensure_assignment_owner(actor: object, intern_id: str) -> None:
    if not is_intern(actor) or str(getattr(actor, "id", "")) != str(intern_id):
        raise Unauthorized("Acesso negado: a atribuição pertence a outro estagiário")


def registration_complete(user: object) -> bool:
    try:
        step = int(getattr(user, "registration_step", 0) or 0)
    except (TypeError, ValueError):
        return False
    return step >= REGISTRATION_COMPLETE_STEP
