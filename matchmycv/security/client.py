# matchmycv/security/client.py
from __future__ import annotations
from flask import Request, request
from flask_login import current_user


def client_ip(req: Request) -> str:
    # Prefer Cloudflare header, then common proxy headers, then remote_addr
    return (
        req.headers.get("CF-Connecting-IP")
        or req.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or req.remote_addr
        or "unknown"
    )


def client_ip_key() -> str:
    return client_ip(request)


def user_or_ip_key() -> str:
    """Rate-limit key: the signed-in user, else the caller's IP."""
    if current_user.is_authenticated:
        return f"user:{current_user.get_id()}"
    return client_ip(request)
