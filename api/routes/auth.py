"""
api/routes/auth.py -- Registration, login and current-identity endpoints.

Routes:
  POST /api/auth/register   -- create an account; 201 {token, user}
  POST /api/auth/login      -- password login; 200 {token, user}
  GET  /api/auth/me         -- current identity (requires Bearer token)

Security:
  POST /login and POST /register are rate-limited per client IP.
  Login failures for an unknown email and for a wrong password are the same
  401 response; CredentialService equalizes their timing too.
  Cache-Control: no-store on every response that carries a token.

Handlers are plain def functions: FastAPI runs them in its worker thread
pool, so bcrypt and database calls block only the request that made them.
Every CredentialError raised here is rendered by the handler in api/main.py.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter, login_limit, register_limit
from api.models import AuthResponse, LoginRequest, MeResponse, RegisterRequest, UserInfo
from auth.dependencies import get_credential_service, get_current_identity
from auth.models import Identity
from auth.service import CredentialService

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/auth/me:       requires auth (get_current_identity)
router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit(register_limit)
def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    """Register a new identity and return its first session token.

    An unrecognized role is not an error: the account is created as a
    customer.
    """
    issued = service.register(body.to_registration())
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_issued(issued)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(login_limit)  # brute-force mitigation
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    """Authenticate with email and password."""
    issued = service.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_issued(issued)


@router.get("/auth/me", response_model=MeResponse)
def me(
    identity: Identity = Depends(get_current_identity),
    service: CredentialService = Depends(get_credential_service),
) -> MeResponse:
    """Return the public view of the currently authenticated identity."""
    return MeResponse(user=UserInfo.from_public(service.current_identity(identity)))
