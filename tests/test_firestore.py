from unittest.mock import MagicMock

import pytest

from fakes import FakeImageStore
from models.errors import AuthorizationError, NotFoundError
from services import firestore as firestore_module
from services.firestore import FirestoreDB
from services.posts import PostService

STORED = {
    "author_uid": "alice",
    "text": "hello",
    "created_at": "2024-01-01T00:00:00+00:00",
    "likes": [],
}


@pytest.fixture
def firestore_client(monkeypatch):
    """Firestore client double; the transactional decorator runs the body once against it"""
    firestore_client = MagicMock()
    monkeypatch.setattr(firestore_module.fs, "client", lambda app: firestore_client)
    monkeypatch.setattr(firestore_module.firestore, "transactional", lambda fn: fn)
    return firestore_client


@pytest.fixture
def firestore_db(firestore_client):
    return FirestoreDB(app=None)


@pytest.fixture
def transaction(firestore_client):
    return firestore_client.transaction.return_value


@pytest.fixture
def post_ref(firestore_client):
    return firestore_client.collection.return_value.document.return_value


@pytest.fixture
def snapshot(post_ref):
    snapshot = post_ref.get.return_value
    snapshot.exists = True
    snapshot.id = "p1"
    snapshot.to_dict.side_effect = lambda: dict(STORED)
    return snapshot


@pytest.fixture
def post_service(firestore_db, firestore_client):
    firestore_client.get_all.return_value = []
    return PostService(firestore_db, FakeImageStore())


def test_update_reads_and_writes_in_one_transaction(firestore_db, firestore_client, transaction, post_ref, snapshot):
    post = firestore_db.update_post("p1", lambda stored: {"text": "edited"})

    firestore_client.collection.assert_called_with("posts")
    firestore_client.collection.return_value.document.assert_called_with("p1")
    post_ref.get.assert_called_once_with(transaction=transaction)
    transaction.update.assert_called_once_with(post_ref, {"text": "edited"})
    assert post == {**STORED, "text": "edited", "id": "p1"}


def test_update_with_no_changes_writes_nothing(firestore_db, transaction, snapshot):
    post = firestore_db.update_post("p1", lambda stored: {})

    transaction.update.assert_not_called()
    assert post == {**STORED, "id": "p1"}


def test_update_missing_post_returns_none(firestore_db, transaction, snapshot):
    snapshot.exists = False
    mutation = MagicMock()

    assert firestore_db.update_post("missing", mutation) is None
    mutation.assert_not_called()
    transaction.update.assert_not_called()


def test_delete_removes_post_in_transaction(firestore_db, transaction, post_ref, snapshot):
    check = MagicMock()

    post = firestore_db.delete_post("p1", check)

    check.assert_called_once_with(STORED)
    transaction.delete.assert_called_once_with(post_ref)
    assert post == {**STORED, "id": "p1"}


def test_delete_missing_post_returns_none(firestore_db, transaction, snapshot):
    snapshot.exists = False

    assert firestore_db.delete_post("missing", MagicMock()) is None
    transaction.delete.assert_not_called()


@pytest.mark.asyncio
async def test_non_author_update_and_delete_never_write(post_service, transaction, snapshot):
    with pytest.raises(AuthorizationError):
        await post_service.update_post("bob", "p1", "mine now")
    with pytest.raises(AuthorizationError):
        await post_service.delete_post("bob", "p1")

    transaction.update.assert_not_called()
    transaction.delete.assert_not_called()


@pytest.mark.asyncio
async def test_author_like_and_missing_post(post_service, transaction, post_ref, snapshot):
    view = await post_service.toggle_like("bob", "p1")

    transaction.update.assert_called_once_with(post_ref, {"likes": ["bob"]})
    assert view.like_count == 1
    assert view.user_name == "Unknown"

    snapshot.exists = False
    with pytest.raises(NotFoundError):
        await post_service.delete_post("alice", "p1")
    transaction.delete.assert_not_called()


def test_get_users_skips_unknown_ids(firestore_db, firestore_client):
    known = MagicMock(exists=True, id="alice")
    known.to_dict.return_value = {"name": "Alice", "email": "alice@example.com"}
    firestore_client.get_all.return_value = [known, MagicMock(exists=False, id="ghost")]

    users = firestore_db.get_users(["alice", "ghost", "alice"])

    assert users == {"alice": {"id": "alice", "name": "Alice", "email": "alice@example.com"}}
    assert len(firestore_client.get_all.call_args.args[0]) == 2


def test_get_users_with_no_ids_skips_the_read(firestore_db, firestore_client):
    assert firestore_db.get_users([]) == {}
    firestore_client.get_all.assert_not_called()


def test_delete_user_profile(firestore_db, firestore_client):
    firestore_db.delete_user_profile("uid-1")

    firestore_client.collection.assert_called_with("users")
    firestore_client.collection.return_value.document.return_value.delete.assert_called_once_with()
