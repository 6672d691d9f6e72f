from typing import Optional
from pydantic import BaseModel

class LoginIn(BaseModel):
    password: Optional[str] = None

class SessionOut(BaseModel):
    admin: bool
