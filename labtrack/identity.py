from dataclasses import dataclass

from labtrack.models.user import Role


@dataclass(frozen=True)
class Actor:
    """Kdo akci provádí, dodává přihlašovací vrstva."""

    actor_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin.value
