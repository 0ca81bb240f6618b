from typing import Optional

from pydantic import BaseModel


# Email is a plain string, stored and matched exactly as given
class UserCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirmPassword: Optional[str] = None
    building: Optional[str] = None
    room: Optional[str] = None


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
