from typing import Any, Optional

from pydantic import BaseModel


class UserFields(BaseModel):
    username: Optional[str] = None
    primary_email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    profile: Optional[dict[str, Any]] = None
