import logging
from typing import Optional, Union

import keyring
from keyring.errors import PasswordDeleteError

logger = logging.getLogger(__name__)

SERVICE_NAME = "social-feed"
TOKEN_KEY = "authToken"


class KeyringTokenStore:
    """Persist the bearer token in the OS keyring between sessions"""

    def __init__(self, service_name: str = SERVICE_NAME):
        self.service_name = service_name

    def load(self) -> Optional[str]:
        return keyring.get_password(self.service_name, TOKEN_KEY)

    def save(self, token: str) -> None:
        keyring.set_password(self.service_name, TOKEN_KEY, token)

    def clear(self) -> None:
        try:
            keyring.delete_password(self.service_name, TOKEN_KEY)
        except PasswordDeleteError:
            logger.debug("No stored token to clear for %s", self.service_name)


class MemoryTokenStore:
    def __init__(self, token: Optional[str] = None):
        self.token = token

    def load(self) -> Optional[str]:
        return self.token

    def save(self, token: str) -> None:
        self.token = token

    def clear(self) -> None:
        self.token = None


TokenStore = Union[KeyringTokenStore, MemoryTokenStore]
