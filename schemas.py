"""
Request Schemas

Pydantic models validating what clients send for each MongoDB collection:
- Tour -> "tours" collection
- User -> "users" collection
- Review -> "reviews" collection

Create models carry the required fields, update models make every field
optional and only the fields a client sends are written.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

Difficulty = Literal["easy", "medium", "difficult"]
Role = Literal["user", "admin"]


def _naive_utc(values: Optional[List[datetime]]) -> Optional[List[datetime]]:
    if values is None:
        return None
    return [v.astimezone(timezone.utc).replace(tzinfo=None) if v.tzinfo else v for v in values]


class GeoPoint(BaseModel):
    """GeoJSON point"""
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(default_factory=list, description="[longitude, latitude]")
    address: Optional[str] = None
    description: Optional[str] = None


class Location(GeoPoint):
    day: Optional[int] = None


class TourCreate(BaseModel):
    """
    Tours collection schema
    Collection name: "tours"
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=10, max_length=40, description="Unique tour name")
    duration: int = Field(..., gt=0, description="Duration in days")
    max_group_size: int = Field(..., gt=0)
    difficulty: Difficulty
    ratings_average: float = Field(4.5, ge=1, le=5)
    ratings_quantity: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_cover: str = Field(..., min_length=1)
    images: List[str] = []
    start_dates: List[datetime] = []
    secret_tour: bool = False
    start_location: Optional[GeoPoint] = None
    locations: List[Location] = []

    @field_validator("start_dates")
    @classmethod
    def normalize_start_dates(cls, v):
        return _naive_utc(v)

    @model_validator(mode="after")
    def check_discount(self):
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError(f"Discount price ({self.price_discount}) should be below regular price.")
        return self


class TourUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=10, max_length=40)
    duration: Optional[int] = Field(None, gt=0)
    max_group_size: Optional[int] = Field(None, gt=0)
    difficulty: Optional[Difficulty] = None
    ratings_average: Optional[float] = Field(None, ge=1, le=5)
    ratings_quantity: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_cover: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = None
    start_dates: Optional[List[datetime]] = None
    secret_tour: Optional[bool] = None
    start_location: Optional[GeoPoint] = None
    locations: Optional[List[Location]] = None

    @field_validator("start_dates")
    @classmethod
    def normalize_start_dates(cls, v):
        return _naive_utc(v)

    @model_validator(mode="after")
    def check_discount(self):
        if (
            self.price is not None
            and self.price_discount is not None
            and self.price_discount >= self.price
        ):
            raise ValueError(f"Discount price ({self.price_discount}) should be below regular price.")
        return self


class SignupRequest(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr = Field(..., description="Unique email address")
    photo: Optional[str] = None
    password: str = Field(..., min_length=8)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match.")
        return self


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=8)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match.")
        return self


class UpdatePasswordRequest(ResetPasswordRequest):
    password_current: str


class UpdateMeRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    photo: Optional[str] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = None


class UserUpdate(BaseModel):
    """Admin-side user update; passwords are not writable here."""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    photo: Optional[str] = None
    role: Optional[Role] = None


class ReviewCreate(BaseModel):
    """
    Reviews collection schema
    Collection name: "reviews"
    """
    review: str = Field(..., min_length=1, description="Review text")
    rating: float = Field(..., ge=1, le=5)
    tour: Optional[str] = Field(None, description="Tour id; taken from the URL when nested")


class ReviewUpdate(BaseModel):
    review: Optional[str] = Field(None, min_length=1)
    rating: Optional[float] = Field(None, ge=1, le=5)
