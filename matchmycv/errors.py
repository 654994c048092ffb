# matchmycv/errors.py
from __future__ import annotations
from flask import Flask, current_app, jsonify
from flask_limiter.errors import RateLimitExceeded
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .rendering.pdf_renderer import PDFRenderError
from .services.ai import AIProviderError, AIRateLimitError
from .services.file_processing import UnsupportedFileType
from .services.storage import StorageError


def api_error(error: str, message: str, status: int, **extra):
    return jsonify(error=error, message=message, **extra), status


def _validation_message(err: ValidationError) -> str:
    first = err.errors()[0] if err.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "__root__")
    msg = str(first.get("msg") or "Invalid request").removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(err: ValidationError):
        return api_error("bad_request", _validation_message(err), 400)

    @app.errorhandler(RateLimitExceeded)
    def _too_many_requests(err: RateLimitExceeded):
        return api_error("rate_limited", f"Rate limit exceeded ({err.description}). Please try again later.", 429)

    @app.errorhandler(AIRateLimitError)
    def _ai_rate_limited(err: AIRateLimitError):
        return api_error("rate_limited", str(err), 429)

    @app.errorhandler(AIProviderError)
    def _ai_failed(err: AIProviderError):
        current_app.logger.error("AI provider error: %s", err)
        return api_error("ai_error", "The AI service failed to respond. Please try again.", 502)

    @app.errorhandler(UnsupportedFileType)
    def _unsupported(err: UnsupportedFileType):
        return api_error("unsupported_media_type", str(err), 415)

    @app.errorhandler(StorageError)
    def _storage(err: StorageError):
        current_app.logger.error("Storage error: %s", err)
        return api_error("storage_error", "File storage is unavailable", 500)

    @app.errorhandler(PDFRenderError)
    def _pdf(err: PDFRenderError):
        return api_error("export_failed", str(err), 500)

    @app.errorhandler(HTTPException)
    def _http(err: HTTPException):
        code = (err.name or "error").lower().replace(" ", "_")
        return api_error(code, err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(err: Exception):
        current_app.logger.exception("Unhandled error")
        return api_error("server_error", "Internal server error", 500)
