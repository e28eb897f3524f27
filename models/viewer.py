"""Sichtbarkeits-Bereich eines Betrachters (Pydantic v2)."""

from pydantic import BaseModel, field_validator

from models.class_definition import ClassDefinition


class ViewerScope(BaseModel):
    """Wer schaut auf den Kalender?

    Admins (Lehrkräfte) sehen alle Klassen, Schüler nur Klassen, in denen
    ihre E-Mail eingetragen ist.
    """

    email: str
    is_admin: bool = False

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def cache_key(self) -> str:
        return "admin" if self.is_admin else f"student:{self.email}"

    def can_see(self, class_def: ClassDefinition) -> bool:
        return self.is_admin or self.email in class_def.student_emails

    def visible(self, classes: list[ClassDefinition]) -> list[ClassDefinition]:
        return [c for c in classes if self.can_see(c)]
