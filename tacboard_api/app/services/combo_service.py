"""
Repository for combos.

``ComboRepository`` sits between the HTTP handlers and the
:class:`~tacboard_api.app.core.db.ComboStore`.  It checks that the
required fields are present, fills in the default author and maps
stored documents to :class:`ComboRead` instances.  It keeps no state
between calls; every operation goes to the store.

Store calls are blocking SQLite work, so they are executed in the
thread pool to keep the event loop free while waiting on the database.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from tacboard_api.app.core.db import ComboStore
from tacboard_api.app.core.exceptions import ValidationError
from tacboard_api.app.schemas.combo import ComboRead

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Coach"


class ComboRepository:
    """Create, list and delete combos in a :class:`ComboStore`."""

    def __init__(self, store: ComboStore) -> None:
        self.store = store

    async def create(
        self,
        name: Optional[str],
        author: Optional[str] = None,
        frames: Optional[List[Any]] = None,
    ) -> ComboRead:
        """Persist a new combo and return it with its identifier and timestamp.

        Raises ``ValidationError`` when ``name`` is missing or empty or
        ``frames`` is missing, and ``StoreError`` when the store cannot
        be reached or rejects the write.
        """
        if not name:
            raise ValidationError("Combo name is required")
        if frames is None:
            raise ValidationError("Combo frames are required")
        document = {
            "name": name,
            "author": author if author is not None else DEFAULT_AUTHOR,
            "frames": list(frames),
        }
        stored = await run_in_threadpool(self.store.insert, document)
        logger.info("Created combo %s (%d frames)", stored["id"], len(stored["frames"]))
        return self._document_to_combo(stored)

    async def list_all(self) -> List[ComboRead]:
        """Return all combos, newest first."""
        documents = await run_in_threadpool(self.store.find_all)
        return [self._document_to_combo(document) for document in documents]

    async def delete_by_id(self, identifier: str) -> None:
        """Delete a combo.  Deleting a combo that does not exist is not an error."""
        deleted = await run_in_threadpool(self.store.delete_by_id, identifier)
        if deleted:
            logger.info("Deleted combo %s", identifier)
        else:
            logger.debug("Combo %s not found; nothing to delete", identifier)

    @staticmethod
    def _document_to_combo(document: Dict[str, Any]) -> ComboRead:
        return ComboRead(
            id=document["id"],
            name=document["name"],
            author=document["author"],
            frames=document["frames"],
            created_at=document["created_at"],
        )
