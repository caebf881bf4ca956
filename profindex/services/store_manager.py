"""
Scoped store lifecycle: lazy creation and overwrite upload of institution profiles.

Every institution gets its own store named "{base}-{key}". The retrieval path
computes names with the same scoped_store_name(), so both sides always agree.
"""

import logging
from typing import Any, Protocol

from profindex.core.config import PROFILES_FILENAME, PROFILES_KIND, STORE_BASE_NAME
from profindex.core.errors import StoreNotFoundError
from profindex.core.locks import KeyedLocks
from profindex.services.profiles import join_profiles, split_profiles

logger = logging.getLogger(__name__)


class StoreBackend(Protocol):
    def retrieve_store(self, store: str) -> dict[str, Any]: ...

    def create_store(self, store: str, description: str = "") -> dict[str, Any]: ...

    def upload_file(
        self,
        store: str,
        *,
        filename: str,
        chunks: list[str],
        external_id: str,
        overwrite: bool = True,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...

    def read_file(self, store: str, external_id: str) -> list[str]: ...

    def search(self, store_identifiers: list[str], query: str, top_k: int, rerank: bool = True) -> dict[str, Any]: ...

    def question_answering(
        self, store_identifiers: list[str], query: str, top_k: int, rerank: bool = True
    ) -> dict[str, Any]: ...


def scoped_store_name(base_name: str, organization_key: str) -> str:
    return f"{base_name}-{organization_key}"


def profiles_external_id(store_name: str) -> str:
    return f"{store_name}-professors"


class StoreManager:
    def __init__(
        self,
        backend: StoreBackend,
        base_name: str = STORE_BASE_NAME,
        locks: KeyedLocks | None = None,
    ) -> None:
        self.backend = backend
        self.base_name = base_name
        self.locks = locks or KeyedLocks()

    def store_name(self, organization_key: str) -> str:
        return scoped_store_name(self.base_name, organization_key)

    def ensure_store(self, organization_key: str) -> dict[str, Any]:
        """
        Return the institution's store, creating it only when retrieval says it
        does not exist. Any other retrieval error propagates unchanged.
        """
        name = self.store_name(organization_key)
        try:
            return self.backend.retrieve_store(name)
        except StoreNotFoundError:
            logger.info("[store_manager:ensure_store] creating store=%s", name)
            return self.backend.create_store(name, description="Professor profiles from OpenAlex")

    def upload_profiles(self, organization_key: str, text: str) -> dict[str, Any]:
        """Replace the institution's profiles file with `text` (never appends)."""
        name = self.store_name(organization_key)
        with self.locks.hold(organization_key):
            self.ensure_store(organization_key)
            result = self.backend.upload_file(
                name,
                filename=PROFILES_FILENAME,
                chunks=split_profiles(text),
                external_id=profiles_external_id(name),
                overwrite=True,
                metadata={"kind": PROFILES_KIND},
            )
        logger.info("[store_manager:upload_profiles] OUT store=%s chunks=%s", name, result.get("chunks"))
        return result

    def read_profiles(self, organization_key: str) -> str:
        """The stored profiles file, re-joined from its chunks."""
        name = self.store_name(organization_key)
        return join_profiles(self.backend.read_file(name, profiles_external_id(name)))
