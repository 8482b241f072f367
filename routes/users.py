from typing import Any, Dict

from fastapi import APIRouter

from dependencies import Identity, CurrentUser
from models.errors import AuthenticationError, NotFoundError
from models.user import LoginRequest, SignupRequest

router = APIRouter()


@router.post("/signup", status_code=201)
async def signup(request: SignupRequest, identity: Identity) -> Dict[str, Any]:
    result = await identity.signup(request.name, request.email, request.password)
    return result.model_dump()


@router.post("/login")
async def login(request: LoginRequest, identity: Identity) -> Dict[str, Any]:
    result = await identity.login(request.email, request.password)
    return result.model_dump()


@router.get("/me")
async def me(current_user: CurrentUser, identity: Identity) -> Dict[str, Any]:
    """Resolve the bearer token to the caller's profile"""
    user = identity.get_user(current_user.user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    return user.model_dump()


@router.get("/{user_id}")
async def get_user(user_id: str, identity: Identity) -> Dict[str, Any]:
    user = identity.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user.model_dump()
