from fastapi import Request, Response

from app.config import settings


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    if request.client:
        return request.client.host
    return None


def get_outfitter_hint(request: Request) -> str | None:
    return (request.cookies.get(settings.outfitter_cookie_name) or '').strip() or None


def set_outfitter_cookie(response: Response, outfitter_id: str) -> None:
    response.set_cookie(
        key=settings.outfitter_cookie_name,
        value=outfitter_id,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        max_age=settings.outfitter_cookie_max_age,
        path='/',
    )


def set_role_cookie(response: Response, role: str) -> None:
    response.set_cookie(
        key=settings.role_cookie_name,
        value=role,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        max_age=settings.role_cookie_max_age,
        path='/',
    )


def clear_tenant_cookies(response: Response) -> None:
    response.delete_cookie(settings.outfitter_cookie_name, path='/')
    response.delete_cookie(settings.role_cookie_name, path='/')
