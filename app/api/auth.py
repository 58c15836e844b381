"""JWT-based stateless authentication."""
from fastapi import APIRouter
from pydantic import BaseModel

from app.api.deps import Reader
from app.models.user import UserCreate
from app.services.auth import login as login_user, register as register_user

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    user: dict


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest):
    result = await login_user(req.username, req.password)
    p = result.principal
    return TokenResponse(
        token=result.token,
        user={
            "id": p.user_id,
            "username": p.username,
            "full_name": p.full_name,
            "role": p.role,
            "access_level": p.access_level.value,
            "is_authorized": True,
        },
    )


@router.post("/register", status_code=201)
async def register(data: UserCreate):
    user = await register_user(data)
    return {
        "message": "User registered successfully",
        "user": {
            "id": str(user.id),
            "username": user.username,
            "full_name": user.full_name,
            "role": user.role,
        },
    }


@router.get("/me")
async def me(principal: Reader):
    return principal.model_dump()
