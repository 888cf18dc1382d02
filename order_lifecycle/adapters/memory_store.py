"""In-memory order store.

Holds raw (camelCase) documents keyed by order id and applies document-store
update semantics: dotted field paths, intermediate objects created on demand,
last write wins per field. Used by tests, the CLI (loaded from a JSON export)
and as a reference for real store adapters.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from order_lifecycle.core.domain.errors import OrderNotFound, OrderStoreError
from order_lifecycle.core.domain.types import Order

LOGGER = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_document_value(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_to_document_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(k): _to_document_value(v) for k, v in value.items()}
    return value


def apply_field_update(document: dict[str, Any], path: str, value: Any) -> None:
    """Set ``path`` (dotted) on ``document``, creating intermediate objects."""
    parts = path.split(".")
    if not all(parts):
        raise ValueError(f"invalid field path: {path!r}")

    target = document
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = _to_document_value(value)


class InMemoryOrderStore:
    """Dict-backed ``OrderStore``."""

    def __init__(self, records: Iterable[Mapping[str, Any]] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        # Export documents dropped by from_json_file.
        self.skipped_documents = 0
        for record in records or ():
            self.create(record)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryOrderStore:
        """Load a JSON export: a list of documents, {"orders": [...]}, or {id: document}.

        Documents that cannot be loaded as orders (duplicate or missing id,
        invalid fields) are skipped with a warning and counted in
        ``skipped_documents``; the rest of the export still loads.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))

        if isinstance(data, dict) and isinstance(data.get("orders"), list):
            records = data["orders"]
        elif isinstance(data, dict):
            records = [{"id": key, **value} for key, value in data.items() if isinstance(value, dict)]
        elif isinstance(data, list):
            records = data
        else:
            raise OrderStoreError(f"unsupported export format in {path}")

        store = cls()
        for record in records:
            if not isinstance(record, Mapping):
                store.skipped_documents += 1
                LOGGER.warning("Skipping non-object export entry", extra={"path": str(path)})
                continue
            try:
                store.create(record)
            except OrderStoreError as exc:
                store.skipped_documents += 1
                LOGGER.warning(
                    "Skipping invalid order document",
                    extra={"order_id": record.get("id"), "error": str(exc)},
                )

        if store.skipped_documents:
            LOGGER.warning(
                "Export loaded with skipped documents",
                extra={"path": str(path), "loaded": len(store), "skipped": store.skipped_documents},
            )
        return store

    def __len__(self) -> int:
        return len(self._documents)

    def _snapshot(self, document: dict[str, Any]) -> Order:
        try:
            return Order.from_record(copy.deepcopy(document))
        except ValidationError as exc:
            raise OrderStoreError(f"invalid order document {document.get('id')!r}: {exc}") from exc

    def get(self, order_id: str) -> Order | None:
        document = self._documents.get(order_id)
        if document is None:
            return None
        return self._snapshot(document)

    def query(
        self,
        *,
        buyer_id: str | None = None,
        seller_id: str | None = None,
        statuses: Iterable[str] | None = None,
    ) -> list[Order]:
        wanted = None if statuses is None else set(statuses)

        matches: list[Order] = []
        for document in self._documents.values():
            if buyer_id is not None and document.get("buyerId") != buyer_id:
                continue
            if seller_id is not None and document.get("sellerId") != seller_id:
                continue
            if wanted is not None and document.get("status") not in wanted:
                continue
            matches.append(self._snapshot(document))

        matches.sort(key=lambda order: order.purchase_date or _EPOCH, reverse=True)
        return matches

    def create(self, record: Mapping[str, Any]) -> Order:
        document = _to_document_value(dict(record))
        order_id = document.get("id")
        if not isinstance(order_id, str) or not order_id:
            raise OrderStoreError("order document requires a non-empty 'id'")
        if order_id in self._documents:
            raise OrderStoreError(f"order {order_id!r} already exists")

        snapshot = self._snapshot(document)
        self._documents[order_id] = document
        return snapshot

    def update(self, order_id: str, fields: Mapping[str, Any]) -> None:
        document = self._documents.get(order_id)
        if document is None:
            raise OrderNotFound(order_id)

        for path, value in fields.items():
            apply_field_update(document, path, value)

        LOGGER.debug("Order updated", extra={"order_id": order_id, "fields": sorted(fields)})

    def records(self) -> list[dict[str, Any]]:
        """Deep copies of all stored documents."""
        return [copy.deepcopy(document) for document in self._documents.values()]
