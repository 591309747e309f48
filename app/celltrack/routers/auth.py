from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request

from app.celltrack.db.session import get_db
from app.celltrack.schemas.auth import LoginRequest, OAuth2TokenResponse, TokenResponse
from app.celltrack.schemas.errors import ERROR_RESPONSES
from app.celltrack.services.auth import AuthService

router = APIRouter()


async def _form_credentials(request: Request) -> tuple[str, str]:
    form_data = parse_qs((await request.body()).decode())
    return (form_data.get("username") or [""])[0], (form_data.get("password") or [""])[0]


@router.post(
    "/login",
    response_model=TokenResponse,
    responses=ERROR_RESPONSES,
    summary="Login (JSON)",
)
def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    trace_id = getattr(request.state, "trace_id", "")
    user, token = AuthService(db).login(payload.username, payload.password, trace_id=trace_id)
    return TokenResponse(
        access_token=token,
        role=user.role,
        name=user.display_name or user.username,
        location_id=str(user.location_id) if user.location_id else None,
        trace_id=trace_id,
    )


@router.post(
    "/token",
    response_model=OAuth2TokenResponse,
    summary="OAuth2 Token (Swagger/Auth)",
    description="OAuth2 password flow endpoint for Swagger Authorize using form-data username/password.",
)
def oauth2_token(request: Request, credentials=Depends(_form_credentials), db=Depends(get_db)):
    username, password = credentials
    trace_id = getattr(request.state, "trace_id", "")
    _, token = AuthService(db).login(username, password, trace_id=trace_id)
    return OAuth2TokenResponse(access_token=token)
