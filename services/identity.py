import logging
from typing import Optional

import aiohttp
from fastapi import HTTPException
from firebase_admin import auth, exceptions

from models.errors import AuthenticationError, ValidationError
from models.user import AuthResponse, AuthUser, User
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"


class IdentityService:
    """
    User accounts backed by Firebase Authentication.

    Firebase holds the password hash and enforces unique emails; the display name and
    email are mirrored into the users collection so posts can be joined to their
    author at read time.
    """

    def __init__(
            self,
            db: FirestoreDB,
            session: aiohttp.ClientSession,
            api_key: str,
            base_url: str = IDENTITY_TOOLKIT_URL,
    ):
        self.db = db
        self.session = session
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def _sign_in(self, email: str, password: str) -> dict:
        """Exchange email and password for a Firebase ID token"""
        try:
            async with self.session.post(
                    url=f"{self.base_url}/accounts:signInWithPassword",
                    params={"key": self.api_key},
                    json={
                        "email": email,
                        "password": password,
                        "returnSecureToken": True,
                    },
            ) as response:
                if response.status == 400:
                    raise AuthenticationError("Invalid credentials")
                if response.status != 200:
                    logger.error("Password sign-in failed with status %s", response.status)
                    raise HTTPException(status_code=502, detail="Identity provider unavailable")
                return await response.json()
        except aiohttp.ClientError as e:
            logger.error("Password sign-in request failed: %s", e)
            raise HTTPException(status_code=502, detail="Identity provider unavailable")

    def _remove_account(self, user_id: str) -> None:
        """Undo a partial signup so the email can be registered again"""
        try:
            auth.delete_user(user_id)
        except exceptions.FirebaseError as e:
            logger.error("Could not delete account %s: %s", user_id, e)
        self.db.delete_user_profile(user_id)

    async def signup(self, name: str, email: str, password: str) -> AuthResponse:
        """
        Register an account, mirror its profile, and sign it in.

        When the profile write or the sign-in fails, the new account is removed again
        before the error propagates, so a retry with the same email can succeed.
        """
        name = name.strip()
        if not name:
            raise ValidationError("Please add a name")

        try:
            record = auth.create_user(email=email, password=password, display_name=name)
        except auth.EmailAlreadyExistsError:
            raise ValidationError("Email already registered")
        except ValueError as e:
            raise ValidationError(str(e))

        try:
            profile = self.db.create_user_profile(record.uid, name, email)
            data = await self._sign_in(email, password)
        except Exception:
            logger.error("Signup for %s did not complete, removing the new account", record.uid)
            self._remove_account(record.uid)
            raise

        logger.info("Registered user %s", record.uid)
        return AuthResponse(user=User(**profile), token=data["idToken"])

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._sign_in(email, password)
        user_id = data["localId"]

        profile = self.db.get_user(user_id)
        if profile is None:
            profile = self.db.create_user_profile(user_id, data.get("displayName") or email, email)
        return AuthResponse(user=User(**profile), token=data["idToken"])

    def verify_token(self, token: str) -> AuthUser:
        """
        Verify a Firebase ID token and return the identity it asserts

        Raises:
            AuthenticationError: If the token is malformed, expired, revoked or otherwise rejected
        """
        try:
            decoded_token = auth.verify_id_token(token, check_revoked=True, clock_skew_seconds=10)
        except Exception as e:
            logger.warning("Invalid authentication token: %s", e)
            raise AuthenticationError(f"Invalid authentication token: {str(e)}")

        return AuthUser(user_id=decoded_token["uid"], email=decoded_token.get("email"))

    def get_user(self, user_id: str) -> Optional[User]:
        profile = self.db.get_user(user_id)
        if profile is None:
            return None
        return User(**profile)
