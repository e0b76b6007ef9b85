from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "admin",
                "password": "secret",
            }
        }
    }

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserSummary(BaseModel):
    name: str | None
    username: str


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserSummary


class LogoutResponse(BaseModel):
    success: bool = True
    message: str


class MeResponse(BaseModel):
    id: int
    username: str
    name: str | None
    trace_id: str
