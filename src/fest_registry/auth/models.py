"""Authentication models for FastAPI"""

from typing import Optional

from pydantic import BaseModel


class Principal(BaseModel):
    """Identity resolved from a verified ID token"""

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    claims: dict = {}
