"""
Database Schemas for the City College API

Each Pydantic model maps to a MongoDB collection with the lowercase class name.
Examples:
- Student -> "student"
- Contact -> "contact"
- Course -> "course"

Field names are snake_case in Python and camelCase in MongoDB and on the
wire (studentName, adhaarNo, isActive, ...).
"""

import datetime as dt
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

PHONE_PATTERN = re.compile(r"^\+?\d{10,13}$")

EDUCATION_STAGES = ("tenth", "twelfth", "graduation", "other")


class StudentStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class MessageStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class CourseCode(str, Enum):
    BBA = "BBA"
    BCA = "BCA"
    BCOM = "BCom"
    BSC_AG = "BSc(AG)"
    BED = "BEd"
    MED = "MEd"
    DELED = "DElEd"


class CourseCategory(str, Enum):
    UNDERGRADUATE = "Undergraduate"
    POSTGRADUATE = "Postgraduate"


def check_phone(value: str) -> str:
    digits = re.sub(r"[\s-]", "", value)
    if not PHONE_PATTERN.match(digits):
        raise ValueError("Valid phone number is required")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


class FormModel(CamelModel):
    """Submitted form; blank inputs count as missing."""

    @model_validator(mode="before")
    @classmethod
    def drop_blank_fields(cls, data):
        if isinstance(data, dict):
            return {
                k: v for k, v in data.items()
                if not (isinstance(v, str) and not v.strip())
            }
        return data

    @field_validator("email", check_fields=False)
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone", check_fields=False)
    @classmethod
    def valid_phone(cls, v: str) -> str:
        return check_phone(v)


class StudentRegistration(FormModel):
    """Admission form submitted by a prospective student"""
    student_name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr = Field(..., description="Email address (unique)")
    phone: str = Field(...)
    date_of_birth: dt.date = Field(...)
    gender: Gender = Field(...)
    father_name: str = Field(...)
    mother_name: Optional[str] = None
    nationality: str = Field("Indian")
    category: Optional[str] = None
    sub_category: Optional[str] = None
    adhaar_no: str = Field(..., description="National ID (unique)")
    father_contact: str = Field(...)

    address: str = Field(...)
    state: str = Field(...)
    district: Optional[str] = None
    city: Optional[str] = None
    pincode: str = Field(...)

    course: CourseCode = Field(..., description="Course applied for")

    qualification: Optional[str] = None
    percentage: Optional[float] = None

    tenth_board: Optional[str] = None
    tenth_year: Optional[str] = None
    tenth_marksheet_no: Optional[str] = None
    tenth_roll_no: Optional[str] = None
    tenth_total_marks: Optional[float] = Field(None, gt=0)
    tenth_marks_obtained: Optional[float] = Field(None, ge=0)
    tenth_percentage: Optional[float] = Field(None, ge=0, le=100)

    twelfth_board: Optional[str] = None
    twelfth_year: Optional[str] = None
    twelfth_marksheet_no: Optional[str] = None
    twelfth_roll_no: Optional[str] = None
    twelfth_total_marks: Optional[float] = Field(None, gt=0)
    twelfth_marks_obtained: Optional[float] = Field(None, ge=0)
    twelfth_percentage: Optional[float] = Field(None, ge=0, le=100)

    graduation_board: Optional[str] = None
    graduation_year: Optional[str] = None
    graduation_marksheet_no: Optional[str] = None
    graduation_roll_no: Optional[str] = None
    graduation_total_marks: Optional[float] = Field(None, gt=0)
    graduation_marks_obtained: Optional[float] = Field(None, ge=0)
    graduation_percentage: Optional[float] = Field(None, ge=0, le=100)

    other_board: Optional[str] = None
    other_year: Optional[str] = None
    other_marksheet_no: Optional[str] = None
    other_roll_no: Optional[str] = None
    other_total_marks: Optional[float] = Field(None, gt=0)
    other_marks_obtained: Optional[float] = Field(None, ge=0)
    other_percentage: Optional[float] = Field(None, ge=0, le=100)

    declaration_accepted: bool = Field(False)

    @model_validator(mode="after")
    def fill_percentages(self):
        for stage in EDUCATION_STAGES:
            total = getattr(self, f"{stage}_total_marks")
            obtained = getattr(self, f"{stage}_marks_obtained")
            if getattr(self, f"{stage}_percentage") is None and total and obtained is not None:
                setattr(self, f"{stage}_percentage", round(obtained / total * 100, 2))
        return self


class StudentDocuments(CamelModel):
    photo: Optional[str] = None
    signature: Optional[str] = None


class Student(StudentRegistration):
    """Stored student record"""
    registration_no: str = Field(...)
    full_name: str = Field(..., description="Mirror of studentName")
    documents: StudentDocuments = Field(default_factory=StudentDocuments)
    status: StudentStatus = Field(StudentStatus.PENDING.value)
    registration_date: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class ContactSubmission(FormModel):
    """Message sent through the public contact form"""
    full_name: str = Field(..., min_length=1)
    email: EmailStr = Field(...)
    phone: str = Field(...)
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class Contact(ContactSubmission):
    status: MessageStatus = Field(MessageStatus.NEW.value)


class Course(CamelModel):
    """Catalog entry"""
    name: str = Field(...)
    code: str = Field(..., description="Course code (unique)")
    duration: str = Field(...)
    eligibility: str = Field(...)
    description: str = Field(...)
    fees: int = Field(..., ge=0)
    seats: int = Field(..., ge=0)
    category: CourseCategory = Field(...)
    image: Optional[str] = None
    is_active: bool = Field(True)


class AdminIdentity(BaseModel):
    username: str
    email: str
    role: str = "admin"


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None
