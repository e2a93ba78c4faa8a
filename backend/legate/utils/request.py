from fastapi import Request

from legate.config import settings


def public_origin(request: Request) -> str:
    """
    Origin used for links handed to users.

    PUBLIC_BASE_URL wins; otherwise the forwarded proto/host set by a proxy,
    then the URL the request arrived on.
    """
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL.rstrip("/")

    forwarded_host = request.headers.get("x-forwarded-host")
    if forwarded_host:
        proto = request.headers.get("x-forwarded-proto", "http")
        return f"{proto}://{forwarded_host}"

    return str(request.base_url).rstrip("/")
