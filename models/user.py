from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class AuthUser(BaseModel):
    """Identity returned by the auth provider for the signed-in account"""
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    display_name: Optional[str] = Field(None, alias="displayName")
    email: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    id_token: Optional[str] = Field(None, alias="idToken", exclude=True)


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    email: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    created_at: Optional[str] = Field(None, alias="createdAt")


class LoginForm(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class RegisterForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: EmailStr
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")

    @field_validator("first_name")
    @classmethod
    def first_name_required(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("First name is required")
        return value

    @field_validator("last_name")
    @classmethod
    def last_name_required(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("Last name is required")
        return value

    @field_validator("password")
    @classmethod
    def password_min_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class GoogleLoginRequest(BaseModel):
    id_token: str


class DisplayNameUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(..., alias="displayName", min_length=1)
