from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from app.auth import get_current_principal
from app.routers import auth, hunt_codes, pricing, tenant
from app.security.headers import install_security_headers
from app.security.sessions import install_auth_session_middleware

app = FastAPI(title='Outfitter Portal')

# Security headers wrap the session check, 401 responses included.
install_auth_session_middleware(app)
install_security_headers(app)

app.include_router(auth.router)
app.include_router(tenant.router)
app.include_router(hunt_codes.router)
app.include_router(pricing.router)


@app.get('/')
def root(request: Request):
    principal = get_current_principal(request)
    return {'user': {'id': principal.id, 'email': principal.email}}


@app.get('/healthz')
def healthz() -> dict:
    return {'ok': True}


@app.get('/robots.txt', response_class=PlainTextResponse)
def robots_txt() -> str:
    return 'User-agent: *\nDisallow: /\n'
