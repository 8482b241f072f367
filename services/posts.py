import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import UploadFile

from models.errors import AuthorizationError, NotFoundError, ValidationError
from models.post import Post, PostView
from services.firestore import FirestoreDB
from services.s3 import S3Service

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"


def clean_text(text: Optional[str]) -> str:
    """Trim surrounding whitespace; the text itself is stored as written"""
    return (text or "").strip()


def ensure_author(post: Dict[str, Any], user_id: str) -> None:
    if post.get("author_uid") != user_id:
        raise AuthorizationError("User not authorized")


def toggle_like(likes: Iterable[str], user_id: str) -> List[str]:
    """Remove user_id from likes if present, otherwise append it"""
    likes = list(dict.fromkeys(likes))
    if user_id in likes:
        return [like for like in likes if like != user_id]
    return likes + [user_id]


def to_view(post: Dict[str, Any], users: Dict[str, Dict[str, Any]]) -> PostView:
    """Project a stored post into its client form, joining the author's name"""
    author = users.get(post["author_uid"]) or {}
    likes = list(post.get("likes") or [])
    return PostView(
        id=post["id"],
        text=post["text"],
        image_url=post.get("image_url"),
        created_at=post["created_at"],
        likes=likes,
        like_count=len(likes),
        user_id=post["author_uid"],
        user_name=author.get("name", UNKNOWN_AUTHOR),
    )


class PostService:
    def __init__(self, db: FirestoreDB, images: S3Service):
        self.db = db
        self.images = images

    def _views(self, posts: List[Dict[str, Any]]) -> List[PostView]:
        users = self.db.get_users(post["author_uid"] for post in posts)
        return [to_view(post, users) for post in posts]

    async def list_posts(self) -> List[PostView]:
        return self._views(self.db.get_all_posts())

    async def list_posts_by_author(self, user_id: str) -> List[PostView]:
        return self._views(self.db.get_posts_by_author(user_id))

    async def create_post(self, user_id: str, text: Optional[str], image: Optional[UploadFile] = None) -> PostView:
        """
        Create a post authored by user_id.

        Text is validated before anything is written. An uploaded image is stored first
        and removed again if the post itself cannot be saved.
        """
        text = clean_text(text)
        if not text:
            raise ValidationError("Please add a text field")

        post = Post(author_uid=user_id, text=text, created_at=datetime.now(timezone.utc).isoformat())

        if image is not None and image.filename:
            post.image_key = await self.images.upload_image(image, user_id)
            post.image_url = self.images.get_public_url(post.image_key)

        post_data = post.model_dump(exclude_none=True, exclude={"id"})
        try:
            post_id = self.db.create_post(post_data)
        except Exception:
            if post.image_key:
                await self.images.delete_file(post.image_key)
            raise

        logger.info("User %s created post %s", user_id, post_id)
        return self._views([{**post_data, "id": post_id}])[0]

    async def update_post(self, user_id: str, post_id: str, text: Optional[str] = None) -> PostView:
        new_text = clean_text(text)

        def mutation(post: Dict[str, Any]) -> Dict[str, Any]:
            ensure_author(post, user_id)
            return {"text": new_text} if new_text else {}

        post = self.db.update_post(post_id, mutation)
        if post is None:
            raise NotFoundError("Post not found")

        logger.info("User %s updated post %s", user_id, post_id)
        return self._views([post])[0]

    async def delete_post(self, user_id: str, post_id: str) -> str:
        post = self.db.delete_post(post_id, lambda stored: ensure_author(stored, user_id))
        if post is None:
            raise NotFoundError("Post not found")

        logger.info("User %s deleted post %s", user_id, post_id)
        image_key = post.get("image_key")
        if image_key and not await self.images.delete_file(image_key):
            logger.warning("Image %s for deleted post %s was not removed", image_key, post_id)
        return post_id

    async def toggle_like(self, user_id: str, post_id: str) -> PostView:
        """Like the post for user_id, or unlike it if already liked"""
        post = self.db.update_post(
            post_id,
            lambda stored: {"likes": toggle_like(stored.get("likes") or [], user_id)},
        )
        if post is None:
            raise NotFoundError("Post not found")

        return self._views([post])[0]
