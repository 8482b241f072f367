"""
Client-side feed state.

FeedState is immutable; every change goes through one of the transition
functions below, which return a new state and never touch the network.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from models.post import PostView
from models.user import User


class Status(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    LOGGED_OUT = "logged_out"
    LOGGED_IN = "logged_in"


@dataclass(frozen=True)
class FeedState:
    status: Status = Status.UNINITIALIZED
    current_user: Optional[User] = None
    posts: Tuple[PostView, ...] = ()
    search_query: str = ""


def sort_newest_first(posts: Iterable[PostView]) -> Tuple[PostView, ...]:
    return tuple(sorted(posts, key=lambda post: post.created_at, reverse=True))


def loading(state: FeedState) -> FeedState:
    return replace(state, status=Status.LOADING)


def logged_out(state: FeedState) -> FeedState:
    return replace(state, status=Status.LOGGED_OUT, current_user=None, posts=())


def logged_in(state: FeedState, user: User, posts: Iterable[PostView] = ()) -> FeedState:
    return replace(state, status=Status.LOGGED_IN, current_user=user, posts=sort_newest_first(posts))


def posts_loaded(state: FeedState, posts: Iterable[PostView]) -> FeedState:
    return replace(state, posts=sort_newest_first(posts))


def post_replaced(state: FeedState, post: PostView) -> FeedState:
    return replace(state, posts=tuple(post if p.id == post.id else p for p in state.posts))


def post_removed(state: FeedState, post_id: str) -> FeedState:
    return replace(state, posts=tuple(p for p in state.posts if p.id != post_id))


def search_changed(state: FeedState, query: str) -> FeedState:
    return replace(state, search_query=query)


def visible_posts(state: FeedState) -> List[PostView]:
    """Posts whose text contains the search query, ignoring case"""
    query = state.search_query.lower()
    return [post for post in state.posts if query in post.text.lower()]
