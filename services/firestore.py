from typing import Any, Callable, Dict, Iterable, List, Optional

import firebase_admin
from firebase_admin import firestore as fs
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

PostMutation = Callable[[Dict[str, Any]], Dict[str, Any]]
PostCheck = Callable[[Dict[str, Any]], None]


class FirestoreDB:
    def __init__(self, app: firebase_admin.App):
        self.db = fs.client(app)

    def collection(self, name: str):
        return self.db.collection(name)

    @staticmethod
    def _stream_posts(query) -> List[Dict[str, Any]]:
        posts = []
        for doc in query.stream():
            post_data = doc.to_dict()
            post_data["id"] = doc.id
            posts.append(post_data)
        return posts

    def get_all_posts(self) -> List[Dict[str, Any]]:
        """Get all posts sorted by creation date descending"""
        query = self.collection("posts").order_by("created_at", direction=firestore.Query.DESCENDING)
        return self._stream_posts(query)

    def get_posts_by_author(self, user_id: str) -> List[Dict[str, Any]]:
        """Get one user's posts sorted by creation date descending"""
        query = self.collection("posts").where(
            filter=FieldFilter("author_uid", "==", user_id)
        ).order_by(
            "created_at", direction=firestore.Query.DESCENDING
        )
        return self._stream_posts(query)

    def create_post(self, post_data: Dict[str, Any]) -> str:
        """Create a new post and return its generated ID"""
        new_post_ref = self.collection("posts").document()
        new_post_ref.set(post_data)
        return new_post_ref.id

    def update_post(self, post_id: str, mutation: PostMutation) -> Optional[Dict[str, Any]]:
        """
        Apply a mutation to a post inside a transaction.

        The mutation receives the stored post and returns the fields to change; it may
        raise to abort the transaction without writing. Returns the updated post, or
        None when the post does not exist.
        """
        post_ref = self.collection("posts").document(post_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def update_in_transaction(transaction, post_ref):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None

            post_data = snapshot.to_dict()
            changes = mutation(post_data)
            if changes:
                transaction.update(post_ref, changes)
            return {**post_data, **changes, "id": snapshot.id}

        return update_in_transaction(transaction, post_ref)

    def delete_post(self, post_id: str, check: PostCheck) -> Optional[Dict[str, Any]]:
        """
        Delete a post inside a transaction after running check against it.

        Returns the deleted post, or None when the post does not exist.
        """
        post_ref = self.collection("posts").document(post_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def delete_in_transaction(transaction, post_ref):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None

            post_data = snapshot.to_dict()
            check(post_data)
            transaction.delete(post_ref)
            return {**post_data, "id": snapshot.id}

        return delete_in_transaction(transaction, post_ref)

    def create_user_profile(self, user_id: str, name: str, email: str) -> Dict[str, Any]:
        """Store the public profile for a newly registered user"""
        profile = {"name": name, "email": email}
        self.collection("users").document(user_id).set(profile)
        return {"id": user_id, **profile}

    def delete_user_profile(self, user_id: str) -> None:
        self.collection("users").document(user_id).delete()

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.collection("users").document(user_id).get()
        if not snapshot.exists:
            return None
        return {"id": snapshot.id, **snapshot.to_dict()}

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Batch fetch user profiles
        Returns a dictionary mapping user IDs to profiles; unknown IDs are left out
        """
        refs = [self.collection("users").document(user_id) for user_id in set(user_ids)]
        if not refs:
            return {}

        users = {}
        for snapshot in self.db.get_all(refs):
            if snapshot.exists:
                users[snapshot.id] = {"id": snapshot.id, **snapshot.to_dict()}
        return users
