from typing import Any, List
from pydantic import BaseModel, validator

class User(BaseModel):
    id: int = 0
    email: str = ""
    status: str = ""

    class Config:
        extra = "ignore"  # Les champs inconnus de l'API sont ignorés
        frozen = True

    @validator("id", pre=True)
    def id_null_to_zero(cls, v):
        return 0 if v is None else v

    @validator("email", "status", pre=True)
    def coerce_text(cls, v):
        if v is None:
            return ""
        # Scalaires non textuels convertis comme le ferait un binding permissif
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v


def parse_users_page(payload: Any) -> List[User]:
    """Convertit une page JSON décodée en liste de User, dans l'ordre reçu."""
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array of users, got {type(payload).__name__}")
    return [User.model_validate(item) for item in payload]
