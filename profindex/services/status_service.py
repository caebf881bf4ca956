"""
Status probe: store existence and metadata for observability.
"""

import logging
from functools import lru_cache

from profindex.core.config import STORE_BASE_NAME
from profindex.core.result import Err, Ok, Result
from profindex.services.identity import institution_key
from profindex.services.store_manager import StoreBackend, scoped_store_name
from profindex.services.vector_store import get_backend

logger = logging.getLogger(__name__)


class StatusProbe:
    def __init__(self, backend: StoreBackend, base_name: str = STORE_BASE_NAME) -> None:
        self.backend = backend
        self.base_name = base_name

    def status(self, organization_key: str | None = None) -> Result:
        """Metadata for the institution's store, or for the base store when no key is given."""
        store = self.base_name
        try:
            if organization_key and organization_key.strip():
                store = scoped_store_name(self.base_name, institution_key(organization_key))
            info = self.backend.retrieve_store(store)
        except Exception as e:
            logger.warning("[status:status] store=%s failed: %s", store, e)
            return Err(f"Status check failed: {e}")
        return Ok({"status": "store is accessible", "store": store, "info": info})


@lru_cache(maxsize=1)
def get_status_probe() -> StatusProbe:
    return StatusProbe(get_backend())


def store_status(institution: str | None = None) -> Result:
    return get_status_probe().status(institution)
