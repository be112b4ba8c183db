from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    id: Optional[int] = None
    email: str
    username: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class UserIn(BaseModel):
    email: str
    password: str
    username: Optional[str] = None


class UserInDB(User):
    password_hash: str
