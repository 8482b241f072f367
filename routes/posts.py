from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, Form, UploadFile

from dependencies import Posts, CurrentUser
from models.errors import NotFoundError
from models.post import PostUpdate

router = APIRouter()


@router.get("")
async def get_posts(posts: Posts) -> List[Dict[str, Any]]:
    """Get all posts, newest first"""
    return [post.model_dump(by_alias=True) for post in await posts.list_posts()]


@router.get("/by-author/{user_id}")
async def get_posts_by_author(posts: Posts, user_id: str) -> List[Dict[str, Any]]:
    """Get one user's posts, newest first"""
    return [post.model_dump(by_alias=True) for post in await posts.list_posts_by_author(user_id)]


@router.post("", status_code=201)
async def create_post(
        posts: Posts,
        current_user: CurrentUser,
        text: str = Form(""),
        image: Optional[UploadFile] = File(None),
) -> Dict[str, Any]:
    """Create a new post with an optional image"""
    post = await posts.create_post(current_user.user_id, text, image)
    return post.model_dump(by_alias=True)


@router.put("/{post_id}")
async def update_post(
        posts: Posts,
        post_id: str,
        current_user: CurrentUser,
        post_update: Optional[PostUpdate] = None,
) -> Dict[str, Any]:
    """Replace the text of a post owned by the current user"""
    text = post_update.text if post_update else None
    try:
        post = await posts.update_post(current_user.user_id, post_id, text)
    except NotFoundError as e:
        raise NotFoundError(e.message, status_code=400) from e
    return post.model_dump(by_alias=True)


@router.delete("/{post_id}")
async def delete_post(posts: Posts, post_id: str, current_user: CurrentUser) -> Dict[str, Any]:
    """Delete a post owned by the current user"""
    try:
        deleted_id = await posts.delete_post(current_user.user_id, post_id)
    except NotFoundError as e:
        raise NotFoundError(e.message, status_code=400) from e
    return {"id": deleted_id}


@router.post("/{post_id}/like")
async def toggle_like(posts: Posts, post_id: str, current_user: CurrentUser) -> Dict[str, Any]:
    """Toggle like status for a post"""
    post = await posts.toggle_like(current_user.user_id, post_id)
    return post.model_dump(by_alias=True)
