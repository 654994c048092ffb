# matchmycv/schemas.py
"""Request bodies and CV content models.

Bodies arrive camelCased from the browser; fields are snake_case here and
aliased through ``to_camel`` so both spellings validate.
"""
from __future__ import annotations
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- CV content ----------

def _text(v):
    # LLM replies use null for unknown fields and numbers for years
    return "" if v is None else str(v)


class Contact(ApiModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    website: str = ""
    linkedin: str = ""

    _none_to_empty = field_validator("name", "email", "phone", "location", "website", "linkedin", mode="before")(_text)


class ExperienceItem(ApiModel):
    title: str = ""
    company: str = ""
    duration: str = ""
    bullets: list[str] = Field(default_factory=list)

    _none_to_empty = field_validator("title", "company", "duration", mode="before")(_text)

    @field_validator("bullets", mode="before")
    @classmethod
    def _clean_bullets(cls, v):
        if isinstance(v, str):
            v = v.splitlines()
        return [str(b).strip() for b in (v or []) if b is not None and str(b).strip()]


class EducationItem(ApiModel):
    degree: str = ""
    institution: str = ""
    year: str = ""

    _none_to_empty = field_validator("degree", "institution", "year", mode="before")(_text)


class CVContent(ApiModel):
    contact: Contact = Field(default_factory=Contact)
    summary: str = ""
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceItem] = Field(default_factory=list)
    education: list[EducationItem] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def _clean_skills(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return [str(s).strip() for s in (v or []) if s is not None and str(s).strip()]

    @field_validator("summary", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


# ---------- Auth / account ----------

class SignUpRequest(ApiModel):
    name: str = Field(min_length=2)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6)


class SignInRequest(ApiModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class UpdateProfileRequest(ApiModel):
    name: str = Field(min_length=2)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class UpdateUserRequest(ApiModel):
    role: Optional[Literal["USER", "ADMIN"]] = None
    plan: Optional[Literal["FREE", "PRO"]] = None
    credits: Optional[int] = Field(default=None, ge=0)


# ---------- Documents / versions ----------

class RenameDocumentRequest(ApiModel):
    title: str

    @field_validator("title")
    @classmethod
    def _trimmed(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Title is required")
        if len(v) > 100:
            raise ValueError("Title must be 100 characters or less")
        return v


class CreateVersionRequest(ApiModel):
    document_id: str = Field(min_length=1)
    label: str = Field(min_length=1, max_length=200)
    content: Union[str, dict[str, Any]]


class UpdateVersionRequest(ApiModel):
    content: Union[str, dict[str, Any]]


# ---------- Job targets / analysis ----------

class JobTargetRequest(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    company: Optional[str] = None
    description: str = Field(min_length=50)


class AnalysisWeights(ApiModel):
    skills_fit: float = Field(default=35, ge=0, le=100)
    experience: float = Field(default=25, ge=0, le=100)
    keywords_ats: float = Field(default=20, ge=0, le=100, alias="keywordsATS")
    readability: float = Field(default=10, ge=0, le=100)
    seniority: float = Field(default=10, ge=0, le=100)


class AnalysisRequest(ApiModel):
    document_id: str = Field(min_length=1)
    version_id: Optional[str] = None
    job_target_id: str = Field(min_length=1)
    weights: Optional[AnalysisWeights] = None


class CVReviewRequest(ApiModel):
    content: dict[str, Any]
    document_id: str = Field(min_length=1)
    version_id: Optional[str] = None


class ExperienceReviewRequest(ApiModel):
    experience: dict[str, Any]
    experience_index: int = Field(ge=0)
    document_id: str = Field(min_length=1)


class SaveExperienceAnalysisRequest(ApiModel):
    document_id: str = Field(min_length=1)
    version_id: Optional[str] = None
    experience_analysis: list[dict[str, Any]]


class AppliedFixRequest(ApiModel):
    document_id: str = Field(min_length=1)
    version_id: Optional[str] = None
    experience_index: int = Field(ge=0)
    bullet_index: int = Field(ge=0)
    fix_type: Literal["urgent", "critical", "optional"]


EditActionName = Literal["rewrite", "quantify", "keyword_fit", "tone_adjust"]


class EditRequest(ApiModel):
    document_id: str = Field(min_length=1)
    action: EditActionName
    content: str = Field(min_length=1)
    section: Optional[str] = None
    context: Optional[str] = None


# ---------- Export ----------

class ExportSettings(ApiModel):
    font_size: float = Field(default=11, ge=8, le=16)
    line_spacing: float = Field(default=1.2, ge=1.0, le=2.0)
    font_family: Literal["times", "arial", "helvetica", "calibri"] = "times"
    margins: Literal["narrow", "normal", "wide"] = "normal"
    paper_size: Literal["a4", "letter", "legal"] = "a4"


class ExportRequest(ApiModel):
    document_id: str = Field(min_length=1)
    version_id: Optional[str] = None
    format: Literal["pdf", "docx"]
    template: Literal["standard", "compact", "modern"] = "standard"
    content: Optional[dict[str, Any]] = None
    settings: ExportSettings = Field(default_factory=ExportSettings)


class PreviewRequest(ApiModel):
    document_id: Optional[str] = None
    version_id: Optional[str] = None
    template: Literal["standard", "compact", "modern"] = "standard"
    content: Optional[dict[str, Any]] = None
    settings: ExportSettings = Field(default_factory=ExportSettings)


class CheckoutRequest(ApiModel):
    interval: Literal["monthly", "yearly"] = "monthly"
