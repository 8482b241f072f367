import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from client.tokens import KeyringTokenStore, TokenStore
from models.errors import (
    ERRORS,
    AuthenticationError,
    NotFoundError,
    ServiceError,
    TransportError,
    ValidationError,
)
from models.post import PostView
from models.user import AuthResponse, User


def error_from_response(status: int, payload: Dict[str, Any]) -> ServiceError:
    """Rebuild the server's error from an HTTP error response"""
    message = payload.get("detail") or payload.get("message") or f"Request failed with status {status}"
    if not isinstance(message, str):
        # FastAPI request validation errors carry a list of problems
        message = str(message)

    error_class = ERRORS.get(payload.get("error"))
    if error_class is None:
        if status == 401:
            error_class = AuthenticationError
        elif status == 404:
            error_class = NotFoundError
        elif status < 500:
            error_class = ValidationError
        else:
            error_class = TransportError
    return error_class(message, status_code=status)


class FeedApi:
    """Async client for the social feed HTTP API"""

    def __init__(self, session: aiohttp.ClientSession, base_url: str, tokens: Optional[TokenStore] = None):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens if tokens is not None else KeyringTokenStore()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.tokens.load()
        if not token:
            raise AuthenticationError("User not logged in")
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, auth: bool = False, **kwargs) -> Any:
        headers = self._auth_headers() if auth else {}
        try:
            async with self.session.request(
                    method, f"{self.base_url}{path}", headers=headers, **kwargs
            ) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = None

                if response.status >= 400:
                    raise error_from_response(response.status, payload if isinstance(payload, dict) else {})
                return payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Could not reach the server: {e}") from e

    # --- Auth API ---

    async def signup(self, name: str, email: str, password: str) -> AuthResponse:
        data = await self._request("POST", "/users/signup", json={"name": name, "email": email, "password": password})
        return AuthResponse(**data)

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._request("POST", "/users/login", json={"email": email, "password": password})
        return AuthResponse(**data)

    async def me(self) -> User:
        return User(**await self._request("GET", "/users/me", auth=True))

    async def get_user(self, user_id: str) -> User:
        return User(**await self._request("GET", f"/users/{user_id}"))

    # --- Post API ---

    async def get_posts(self) -> List[PostView]:
        return [PostView(**post) for post in await self._request("GET", "/posts")]

    async def get_posts_by_user(self, user_id: str) -> List[PostView]:
        return [PostView(**post) for post in await self._request("GET", f"/posts/by-author/{user_id}")]

    async def create_post(
            self,
            text: str,
            image: Optional[bytes] = None,
            filename: str = "image.jpg",
            content_type: str = "image/jpeg",
    ) -> PostView:
        form = aiohttp.FormData()
        form.add_field("text", text)
        if image is not None:
            form.add_field("image", image, filename=filename, content_type=content_type)
        return PostView(**await self._request("POST", "/posts", auth=True, data=form))

    async def update_post(self, post_id: str, text: str) -> PostView:
        return PostView(**await self._request("PUT", f"/posts/{post_id}", auth=True, json={"text": text}))

    async def delete_post(self, post_id: str) -> str:
        data = await self._request("DELETE", f"/posts/{post_id}", auth=True)
        return data["id"]

    async def toggle_like(self, post_id: str) -> PostView:
        return PostView(**await self._request("POST", f"/posts/{post_id}/like", auth=True))
