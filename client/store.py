import logging
from dataclasses import dataclass
from typing import List, Optional

from client import state as transitions
from client.api import FeedApi
from client.state import FeedState
from client.tokens import TokenStore
from models.errors import AuthenticationError, ServiceError
from models.post import PostView
from models.user import User

logger = logging.getLogger(__name__)


@dataclass
class Profile:
    user: Optional[User]
    posts: List[PostView]


class FeedStore:
    """
    Owns the client's feed state and routes every mutation through the API.

    Creating a post re-fetches the whole feed so the client sees the server's
    ordering; update, delete and like patch only the affected entry.
    """

    def __init__(self, api: FeedApi, tokens: TokenStore):
        self.api = api
        self.tokens = tokens
        self.state = FeedState()

    @property
    def visible_posts(self) -> List[PostView]:
        return transitions.visible_posts(self.state)

    async def _authenticated(self, call, *args):
        """Run an authenticated API call, logging out if the token is rejected"""
        try:
            return await call(*args)
        except AuthenticationError:
            logger.info("Token rejected, logging out")
            self.logout()
            raise

    async def _fetch_posts(self) -> None:
        posts = await self.api.get_posts()
        self.state = transitions.posts_loaded(self.state, posts)

    async def initialize(self) -> None:
        self.state = transitions.loading(self.state)
        if not self.tokens.load():
            self.state = transitions.logged_out(self.state)
            return

        try:
            user = await self.api.me()
        except ServiceError as e:
            logger.warning("Failed to fetch current user: %s", e)
            self.tokens.clear()
            self.state = transitions.logged_out(self.state)
            return

        self.state = transitions.logged_in(self.state, user)
        try:
            await self._fetch_posts()
        except ServiceError as e:
            logger.warning("Failed to fetch posts: %s", e)

    async def login(self, email: str, password: str) -> None:
        result = await self.api.login(email, password)
        self.tokens.save(result.token)
        self.state = transitions.logged_in(self.state, result.user)
        await self._fetch_posts()

    async def signup(self, name: str, email: str, password: str) -> None:
        result = await self.api.signup(name, email, password)
        self.tokens.save(result.token)
        # A brand new user has nothing in their feed yet
        self.state = transitions.logged_in(self.state, result.user)

    def logout(self) -> None:
        self.tokens.clear()
        self.state = transitions.logged_out(self.state)

    async def create_post(self, text: str, image: Optional[bytes] = None, **image_options) -> None:
        if self.state.current_user is None:
            raise AuthenticationError("User not logged in")
        await self._authenticated(lambda: self.api.create_post(text, image, **image_options))
        await self._fetch_posts()

    async def update_post(self, post_id: str, text: str) -> None:
        post = await self._authenticated(self.api.update_post, post_id, text)
        self.state = transitions.post_replaced(self.state, post)

    async def delete_post(self, post_id: str) -> None:
        await self._authenticated(self.api.delete_post, post_id)
        self.state = transitions.post_removed(self.state, post_id)

    async def toggle_like(self, post_id: str) -> None:
        post = await self._authenticated(self.api.toggle_like, post_id)
        self.state = transitions.post_replaced(self.state, post)

    def set_search_query(self, query: str) -> None:
        self.state = transitions.search_changed(self.state, query)

    async def load_profile(self, user_id: str) -> Profile:
        """Fetch a user and their posts without touching the shared feed"""
        try:
            user = await self.api.get_user(user_id)
        except ServiceError as e:
            logger.warning("Failed to fetch user %s: %s", user_id, e)
            user = None

        posts = await self.api.get_posts_by_user(user_id)
        return Profile(user=user, posts=list(transitions.sort_newest_first(posts)))
