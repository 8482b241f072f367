from typing import Annotated

from fastapi import Request, Depends

from models.errors import AuthenticationError
from models.user import AuthUser
from services.identity import IdentityService
from services.posts import PostService


async def get_identity_service(request: Request) -> IdentityService:
    """Get identity service from app state"""
    return request.app.state.identity_service


async def get_current_user(request: Request) -> AuthUser:
    """
    Verify Firebase ID token from Authorization header and return user info
    """
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header")

    token = authorization.split("Bearer ")[1]
    return request.app.state.identity_service.verify_token(token)


async def get_post_service(request: Request) -> PostService:
    """Get post service from app state"""
    return request.app.state.post_service


# Type annotations for dependency injection
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
Identity = Annotated[IdentityService, Depends(get_identity_service)]
Posts = Annotated[PostService, Depends(get_post_service)]
