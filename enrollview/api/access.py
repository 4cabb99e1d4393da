"""Per-request helpers for enrollment endpoints.

Plain functions rather than dependencies: the ownership check needs the
loaded enrollment, so call it in the endpoint body after the lookup.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from enrollview.models.principal import Principal


def check_owner_or_admin(principal: Principal, student_id: str | None) -> None:
    """Raise 403 unless the caller is the enrolled student or an admin."""
    if student_id is not None and principal.user_id == student_id:
        return
    if principal.is_admin():
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only access your own enrollment",
    )


def client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else None
