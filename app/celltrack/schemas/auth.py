from pydantic import BaseModel


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "admin",
                "password": "change-me",
            }
        }
    }

    username: str
    password: str


class TokenResponse(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "access_token": "<jwt>",
                "token_type": "bearer",
                "role": "ADMIN",
                "location_id": None,
                "trace_id": "trace-123",
            }
        }
    }

    access_token: str
    token_type: str = "bearer"
    role: str
    name: str
    location_id: str | None = None
    trace_id: str


class OAuth2TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
