from __future__ import annotations
import logging

from .kv_store import KeyValueStore

log = logging.getLogger(__name__)

CREDENTIAL_KEY= "github_token"


class CredentialStore:
    """
    The bearer token's home in the key-value store.

    The token is kept as a plain string, not JSON-wrapped. Its presence is
    the only thing that decides live vs guest mode, and it is read fresh on
    every call: nothing here caches it.

    save() is for the login collaborator; the repository itself only reads,
    except for clear() when the API reports the token as invalid.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def token(self) -> str | None:
        value = self._store.get_raw(CREDENTIAL_KEY)
        return value or None

    def has_token(self) -> bool:
        return self.token() is not None

    def save(self, token: str) -> bool:
        token = token.strip()
        if not token:
            return False
        return self._store.set_raw(CREDENTIAL_KEY, token)

    def clear(self) -> bool:
        log.info("Clearing stored GitHub credential")
        return self._store.remove(CREDENTIAL_KEY)
