from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, condecimal, conint, field_validator


class _Body(BaseModel):
    """Request bodies: camelCase on the wire, unknown fields rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class _Filters(BaseModel):
    """Query-string filters: unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _Out(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _reject_null(value):
    if value is None:
        raise ValueError("may not be null")
    return value


def update_fields(model: type) -> frozenset:
    """Wire names a PATCH body may carry; the allow-list handed to the update builder."""
    return frozenset(f.alias or name for name, f in model.model_fields.items())


# =========================
# Auth
# =========================

class TokenRequest(_Body):
    username: str = Field(..., min_length=1, max_length=25)
    password: str = Field(..., min_length=1, max_length=20)


class RegisterRequest(_Body):
    username: str = Field(..., min_length=1, max_length=25)
    password: str = Field(..., min_length=5, max_length=20)
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=30)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=30)
    email: EmailStr = Field(..., description="User email address")


class TokenResponse(BaseModel):
    token: str = Field(..., description="JWT access token")


# =========================
# Companies
# =========================

class CompanyNew(_Body):
    handle: str = Field(..., min_length=1, max_length=25)
    name: str = Field(..., min_length=1)
    description: str = ""
    num_employees: Optional[conint(ge=0)] = Field(None, alias="numEmployees")
    logo_url: Optional[str] = Field(None, alias="logoUrl")


class CompanyUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    num_employees: Optional[conint(ge=0)] = Field(None, alias="numEmployees")
    logo_url: Optional[str] = Field(None, alias="logoUrl")

    @field_validator("name", "description")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class CompanyFilter(_Filters):
    name: Optional[str] = Field(None, min_length=1)
    min_employees: Optional[conint(ge=0)] = Field(None, alias="minEmployees")
    max_employees: Optional[conint(ge=0)] = Field(None, alias="maxEmployees")


class JobSummary(_Out):
    id: int
    title: str
    salary: Optional[int] = None
    equity: Optional[Decimal] = None


class Company(_Out):
    handle: str
    name: str
    description: Optional[str] = None
    num_employees: Optional[int] = Field(None, alias="numEmployees")
    logo_url: Optional[str] = Field(None, alias="logoUrl")


class CompanyDetail(Company):
    jobs: List[JobSummary] = []


class CompanyResponse(BaseModel):
    company: Company


class CompanyDetailResponse(BaseModel):
    company: CompanyDetail


class CompanyListResponse(BaseModel):
    companies: List[Company]


# =========================
# Jobs
# =========================

class JobNew(_Body):
    title: str = Field(..., min_length=1)
    salary: Optional[conint(ge=0)] = None
    equity: Optional[condecimal(ge=0, le=1)] = None
    company_handle: str = Field(..., alias="companyHandle", min_length=1, max_length=25)


class JobUpdate(_Body):
    title: Optional[str] = Field(None, min_length=1)
    salary: Optional[conint(ge=0)] = None
    equity: Optional[condecimal(ge=0, le=1)] = None

    @field_validator("title")
    @classmethod
    def title_not_null(cls, value):
        return _reject_null(value)


class JobFilter(_Filters):
    title: Optional[str] = Field(None, min_length=1)
    min_salary: Optional[conint(ge=0)] = Field(None, alias="minSalary")
    max_salary: Optional[conint(ge=0)] = Field(None, alias="maxSalary")
    has_equity: Optional[bool] = Field(None, alias="hasEquity")


class Job(JobSummary):
    company_handle: str = Field(..., alias="companyHandle")


class CompanySummary(_Out):
    handle: str
    name: str
    description: Optional[str] = None
    num_employees: Optional[int] = Field(None, alias="numEmployees")
    logo_url: Optional[str] = Field(None, alias="logoUrl")


class JobDetail(JobSummary):
    company: CompanySummary


class JobResponse(BaseModel):
    job: Job


class JobDetailResponse(BaseModel):
    job: JobDetail


class JobListResponse(BaseModel):
    jobs: List[Job]


# =========================
# Users
# =========================

class UserNew(RegisterRequest):
    is_admin: bool = Field(False, alias="isAdmin")


class UserUpdate(_Body):
    first_name: Optional[str] = Field(None, alias="firstName", min_length=1, max_length=30)
    last_name: Optional[str] = Field(None, alias="lastName", min_length=1, max_length=30)
    password: Optional[str] = Field(None, min_length=5, max_length=20)
    email: Optional[EmailStr] = None
    is_admin: Optional[bool] = Field(None, alias="isAdmin")

    @field_validator("first_name", "last_name", "password", "email", "is_admin")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class User(_Out):
    username: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    is_admin: bool = Field(..., alias="isAdmin")


class UserDetail(User):
    jobs: List[int] = []


class UserResponse(BaseModel):
    user: User


class UserDetailResponse(BaseModel):
    user: UserDetail


class UserTokenResponse(BaseModel):
    user: User
    token: str


class UserListResponse(BaseModel):
    users: List[UserDetail]


# =========================
# Misc
# =========================

class DeletedResponse(BaseModel):
    deleted: str


class AppliedResponse(BaseModel):
    applied: int


COMPANY_UPDATE_FIELDS = update_fields(CompanyUpdate)
JOB_UPDATE_FIELDS = update_fields(JobUpdate)
USER_UPDATE_FIELDS = update_fields(UserUpdate)
USER_SELF_UPDATE_FIELDS = USER_UPDATE_FIELDS - {"isAdmin"}
