# matchmycv/services/documents.py
from __future__ import annotations
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import CVAnalysis, Document, JobTarget, Version
from .cv_content import dump_content, normalize_cv_content, parse_version_content
from .storage import StorageError

logger = logging.getLogger(__name__)


def get_owned_document(session: Session, document_id: str | None, user_id: str) -> Document | None:
    if not document_id:
        return None
    return session.execute(
        select(Document).where(Document.id == document_id, Document.user_id == user_id)
    ).scalar_one_or_none()


def get_owned_version(session: Session, version_id: str | None, user_id: str,
                      document_id: str | None = None) -> Version | None:
    if not version_id:
        return None
    stmt = (
        select(Version)
        .join(Document, Document.id == Version.document_id)
        .where(Version.id == version_id, Document.user_id == user_id)
    )
    if document_id:
        stmt = stmt.where(Version.document_id == document_id)
    return session.execute(stmt).scalar_one_or_none()


def get_owned_job_target(session: Session, job_target_id: str | None, user_id: str) -> JobTarget | None:
    if not job_target_id:
        return None
    return session.execute(
        select(JobTarget).where(JobTarget.id == job_target_id, JobTarget.user_id == user_id)
    ).scalar_one_or_none()


def list_documents(session: Session, user_id: str) -> list[Document]:
    return list(session.execute(
        select(Document).where(Document.user_id == user_id).order_by(Document.created_at.desc())
    ).scalars())


def create_document(session: Session, user_id: str, title: str, storage_key: str, mime_type: str,
                    file_size: int, raw_text: str, structured: dict) -> Document:
    """Document plus its active "Original" version holding the structured content."""
    doc = Document(
        user_id=user_id, title=title, storage_key=storage_key, mime_type=mime_type,
        file_size=file_size, raw_text=raw_text, structured=structured,
    )
    doc.versions.append(Version(label="Original", content=dump_content(structured), is_active=True))
    session.add(doc)
    session.commit()
    return doc


def delete_document(session: Session, doc: Document, storage) -> None:
    if doc.storage_key:
        try:
            storage.delete_file(doc.storage_key)
        except StorageError as e:
            logger.warning("Could not delete stored file %s: %s", doc.storage_key, e)
    session.delete(doc)
    session.commit()


def resolve_content(session: Session, user_id: str, doc: Document,
                    content: dict | None = None, version_id: str | None = None) -> dict:
    """Content from the request body, else from the version, else from the document."""
    if content:
        return normalize_cv_content(content)
    if version_id:
        version = get_owned_version(session, version_id, user_id, doc.id)
        if version is None:
            raise LookupError("Version not found")
        return normalize_cv_content(parse_version_content(version.content))
    return normalize_cv_content(doc.structured or {})


def latest_cv_analysis(session: Session, document_id: str, version_id: str | None = None) -> CVAnalysis | None:
    stmt = select(CVAnalysis).where(CVAnalysis.document_id == document_id)
    if version_id:
        stmt = stmt.where(CVAnalysis.version_id == version_id)
    return session.execute(stmt.order_by(CVAnalysis.created_at.desc()).limit(1)).scalar_one_or_none()
