from pydantic import BaseModel


class Identity(BaseModel):
    """Authenticated caller, as resolved by the Identity Gate."""
    user_id: str

    class Config:
        frozen = True
