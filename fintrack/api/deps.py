from fastapi import Header, HTTPException
from pydantic import BaseModel


class UserContext(BaseModel):
    """Identity of the caller, resolved once per request and passed down explicitly."""
    user_id: str


async def get_current_user(x_user_id: str = Header(..., alias="X-User-Id")) -> UserContext:
    # Authentication happens upstream; this only reads the identity it forwards.
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return UserContext(user_id=user_id)
