from fastapi import APIRouter, Depends, Request

from app.recon.core.deps import get_bearer_token, get_session_store, require_principal
from app.recon.db.session import get_db
from app.recon.schemas.auth import LoginRequest, LoginResponse, LogoutResponse, MeResponse, UserSummary
from app.recon.services.auth import AuthService

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Exchange admin credentials for an opaque bearer session token.",
)
def login(payload: LoginRequest, db=Depends(get_db), sessions=Depends(get_session_store)):
    service = AuthService(db, sessions)
    principal, token = service.login(payload.username, payload.password)
    return LoginResponse(token=token, user=UserSummary(name=principal.name, username=principal.username))


@router.post("/logout", response_model=LogoutResponse, summary="Logout")
def logout(
    token: str | None = Depends(get_bearer_token),
    _principal=Depends(require_principal),
    db=Depends(get_db),
    sessions=Depends(get_session_store),
):
    AuthService(db, sessions).logout(token)
    return LogoutResponse(message="Logged out")


@router.get("/me", response_model=MeResponse, summary="Current admin")
def me(request: Request, principal=Depends(require_principal)):
    return MeResponse(
        id=principal.admin_id,
        username=principal.username,
        name=principal.name,
        trace_id=getattr(request.state, "trace_id", ""),
    )
