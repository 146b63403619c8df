"""
Database Schemas for the Dental Clinic API

Patient documents live in the "patients" collection, accounts in "users".
Dentists are read-only and have no request schema.
"""
from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class Address(BaseModel):
    street_name: Optional[str] = Field(None, description="Street name")
    block_number: Optional[str] = Field(None, description="Block number")
    unit_number: Optional[str] = Field(None, description="Unit number")
    postal_code: Optional[str] = Field(None, description="Postal code")


class PatientIn(BaseModel):
    name: Optional[str] = Field(None, description="Patient full name")
    dob: Optional[str] = Field(None, description="Date of birth, e.g. YYYY-MM-DD")
    gender: Optional[str] = Field(None, description="Gender")
    address: Address = Field(default_factory=Address, description="Mailing address")
    appointment_date_time: Optional[str] = Field(None, description="ISO 8601 appointment time")
    dentist_id: Optional[str] = Field(None, description="Dentist name; stored as that dentist's _id")

    def to_document(self, dentist: dict) -> dict:
        return {
            "name": self.name,
            "dob": self.dob,
            "gender": self.gender,
            "address": self.address.model_dump(),
            "appointment_date_time": self.appointment_date_time,
            "dentist_id": dentist["_id"],
        }


class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Plain-text password, hashed before storage")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    # Plain str: accounts are looked up by the email exactly as sent
    email: str
    password: str
