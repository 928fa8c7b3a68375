"""Auth schemas: CurrentUser."""

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight user context resolved from the bearer token + DB lookup."""

    user_id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    location: str | None = None
