# storefront/schemas/user.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


# User record as returned by the identity provider.
# Unknown fields are kept so the gateway can hand the record back untouched.
class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    aud: Optional[str] = None
    app_metadata: Dict[str, Any] = {}
    user_metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    model_config = ConfigDict(extra="allow")


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: AuthUser


class LoginRequest(BaseModel):
    email: str
    password: str


# --- Tables: profiles / user_addresses ---

class Profile(BaseModel):
    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[UserRole] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserAddress(BaseModel):
    id: str
    user_id: str
    street: str
    city: str
    governorate: str
    notes: Optional[str] = None
    is_default: Optional[bool] = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def one_line(self) -> str:
        """Address as a single shipping line: street, city, governorate."""
        parts = [self.street, self.city, self.governorate]
        return "، ".join(p.strip() for p in parts if p and p.strip())


class ProfileResponse(BaseModel):
    profile: Optional[Profile] = None
    addresses: List[UserAddress] = []
