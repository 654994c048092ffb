# matchmycv/models.py
from __future__ import annotations
import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


class User(UserMixin, Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200))
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String(255))
    role = Column(String(16), nullable=False, default="USER")
    plan = Column(String(16), nullable=False, default="FREE")
    credits = Column(Integer, nullable=False, default=5)
    stripe_customer_id = Column(String(64), index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    documents = relationship("Document", back_populates="user", cascade="all, delete-orphan")
    job_targets = relationship("JobTarget", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return (self.role or "").upper() == "ADMIN"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "plan": self.plan,
            "credits": self.credits,
            "createdAt": _iso(self.created_at),
        }


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    storage_key = Column(String(512))
    mime_type = Column(String(128))
    file_size = Column(Integer, default=0)
    raw_text = Column(Text, default="")
    structured = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="documents")
    versions = relationship(
        "Version", back_populates="document", cascade="all, delete-orphan",
        order_by="Version.created_at.desc()",
    )
    analyses = relationship("Analysis", back_populates="document", cascade="all, delete-orphan")
    cv_analyses = relationship("CVAnalysis", back_populates="document", cascade="all, delete-orphan")

    def to_dict(self, with_versions: bool = False) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "mimeType": self.mime_type,
            "fileSize": self.file_size,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if with_versions:
            data["versions"] = [v.to_dict(with_content=False) for v in self.versions]
        return data


class Version(Base):
    __tablename__ = "versions"

    id = Column(String(32), primary_key=True, default=new_id)
    document_id = Column(String(32), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(200), nullable=False)
    content = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    document = relationship("Document", back_populates="versions")

    def to_dict(self, with_content: bool = True) -> dict:
        data = {
            "id": self.id,
            "documentId": self.document_id,
            "label": self.label,
            "isActive": bool(self.is_active),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if with_content:
            data["content"] = self.content
        return data


class JobTarget(Base):
    __tablename__ = "job_targets"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    company = Column(String(200))
    raw_text = Column(Text, nullable=False)
    skills = Column(JSON, default=list)
    requirements = Column(JSON, default=list)
    seniority = Column(String(16), default="mid")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="job_targets")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "rawText": self.raw_text,
            "skills": self.skills or [],
            "requirements": self.requirements or [],
            "seniority": self.seniority,
            "createdAt": _iso(self.created_at),
        }


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(String(32), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    version_id = Column(String(32), ForeignKey("versions.id", ondelete="SET NULL"))
    job_target_id = Column(String(32), ForeignKey("job_targets.id", ondelete="CASCADE"), nullable=False)
    overall_score = Column(Float, nullable=False, default=0)
    sub_scores = Column(JSON, default=dict)
    gaps = Column(JSON, default=dict)
    suggestions = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    document = relationship("Document", back_populates="analyses")
    job_target = relationship("JobTarget")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "documentId": self.document_id,
            "versionId": self.version_id,
            "jobTargetId": self.job_target_id,
            "overallScore": self.overall_score,
            "subScores": self.sub_scores or {},
            "gaps": self.gaps or {},
            "suggestions": self.suggestions or [],
            "createdAt": _iso(self.created_at),
        }


class CVAnalysis(Base):
    __tablename__ = "cv_analyses"

    id = Column(String(32), primary_key=True, default=new_id)
    document_id = Column(String(32), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    version_id = Column(String(32), ForeignKey("versions.id", ondelete="SET NULL"))
    overall_grade = Column(String(2), nullable=False)
    overall_score = Column(Integer, nullable=False)
    summary = Column(Text, default="")
    urgent_fixes = Column(JSON, default=list)
    critical_fixes = Column(JSON, default=list)
    optional_fixes = Column(JSON, default=list)
    experience_analysis = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    document = relationship("Document", back_populates="cv_analyses")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "documentId": self.document_id,
            "versionId": self.version_id,
            "overallGrade": self.overall_grade,
            "overallScore": self.overall_score,
            "summary": self.summary,
            "urgentFixes": self.urgent_fixes or [],
            "criticalFixes": self.critical_fixes or [],
            "optionalFixes": self.optional_fixes or [],
            "createdAt": _iso(self.created_at),
        }


class Usage(Base):
    __tablename__ = "usage"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(32), nullable=False, index=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
