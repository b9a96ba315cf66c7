"""
In-memory document store

Stands in for the hosted document database. Collections are addressed by
path ("questions", "sessions", "sessions/<id>/teams", ...), documents are
plain dicts carrying "id" and "version". Every committed write is published
on the event bus under the collection path.
"""
import copy
import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from codequiz.core.errors import ConflictError, NotFoundError, StoreError
from codequiz.core.events import ADDED, MODIFIED, REMOVED, EventBus, Subscription


logger = logging.getLogger(__name__)

Document = Dict[str, Any]


def new_id() -> str:
    return uuid.uuid4().hex


class WriteBatch:
    """
    Group of writes applied all-or-nothing on commit()

    Preconditions (document exists, expected version) are checked for every
    operation before any of them is applied.
    """

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._ops: List[Tuple[str, str, str, Optional[Dict[str, Any]], Optional[int]]] = []
        self.committed = False

    def set(self, path: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self._ops.append(("set", path, doc_id, data, None))
        return self

    def update(
        self,
        path: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> "WriteBatch":
        self._ops.append(("update", path, doc_id, fields, expected_version))
        return self

    def delete(self, path: str, doc_id: str) -> "WriteBatch":
        self._ops.append(("delete", path, doc_id, None, None))
        return self

    def __len__(self) -> int:
        return len(self._ops)

    def commit(self) -> List[Document]:
        if self.committed:
            raise StoreError("Batch already committed")
        results = self._store._apply(self._ops)
        self.committed = True
        return results


class DocumentStore:
    """Thread-safe collection store with compare-and-swap updates"""

    def __init__(self, bus: Optional[EventBus] = None):
        self.bus = bus or EventBus()
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()

    # ==================== READS ====================

    def get(self, path: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._collections.get(path, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def require(self, path: str, doc_id: str, kind: str = "Document") -> Document:
        doc = self.get(path, doc_id)
        if doc is None:
            raise NotFoundError(f"{kind} {doc_id} not found")
        return doc

    def list(
        self,
        path: str,
        where: Optional[Callable[[Document], bool]] = None,
        order_by: Optional[str] = None,
        descending: bool = False
    ) -> List[Document]:
        """
        List documents of a collection

        Args:
            path: Collection path
            where: Optional predicate applied to each document
            order_by: Optional field to sort on (missing values sort first)
            descending: Reverse the sort order

        Returns:
            Copies of the matching documents
        """
        with self._lock:
            docs = [copy.deepcopy(d) for d in self._collections.get(path, {}).values()]
        if where is not None:
            docs = [d for d in docs if where(d)]
        if order_by:
            docs.sort(
                key=lambda d: (d.get(order_by) is not None, d.get(order_by) or 0),
                reverse=descending
            )
        return docs

    def watch(self, path: str) -> Subscription:
        """Subscribe to a collection, snapshot and registration taken atomically"""
        with self._lock:
            return self.bus.subscribe(path, snapshot=self.list(path))

    # ==================== WRITES ====================

    def add(self, path: str, data: Dict[str, Any]) -> Document:
        doc_id = new_id()
        return self.set(path, doc_id, data)

    def set(self, path: str, doc_id: str, data: Dict[str, Any]) -> Document:
        return self.batch().set(path, doc_id, data).commit()[0]

    def update(
        self,
        path: str,
        doc_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> Document:
        return self.batch().update(path, doc_id, fields, expected_version).commit()[0]

    def delete(self, path: str, doc_id: str) -> None:
        self.batch().delete(path, doc_id).commit()

    def delete_collection(self, path: str, batch: Optional[WriteBatch] = None) -> int:
        """Queue deletion of every document in a collection (commits immediately without a batch)"""
        own = batch is None
        if batch is None:
            batch = self.batch()
        docs = self.list(path)
        for doc in docs:
            batch.delete(path, doc["id"])
        if own and len(batch):
            batch.commit()
        return len(docs)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def _apply(self, ops) -> List[Document]:
        events = []
        results = []
        with self._lock:
            # Stage against a shallow working copy so a failing precondition leaves nothing applied
            staged: Dict[Tuple[str, str], Optional[Document]] = {}

            def current(path: str, doc_id: str) -> Optional[Document]:
                key = (path, doc_id)
                if key in staged:
                    return staged[key]
                return self._collections.get(path, {}).get(doc_id)

            for op, path, doc_id, data, expected_version in ops:
                existing = current(path, doc_id)
                if op == "set":
                    version = (existing["version"] + 1) if existing else 1
                    doc = copy.deepcopy(data)
                    doc.update({"id": doc_id, "version": version})
                    staged[(path, doc_id)] = doc
                    events.append((path, doc_id, MODIFIED if existing else ADDED))
                elif op == "update":
                    if existing is None:
                        raise NotFoundError(f"Document {path}/{doc_id} not found")
                    if expected_version is not None and existing["version"] != expected_version:
                        raise ConflictError(
                            f"Version mismatch on {path}/{doc_id}: "
                            f"expected {expected_version}, found {existing['version']}"
                        )
                    doc = copy.deepcopy(existing)
                    doc.update(copy.deepcopy(data))
                    doc.update({"id": doc_id, "version": existing["version"] + 1})
                    staged[(path, doc_id)] = doc
                    events.append((path, doc_id, MODIFIED))
                elif op == "delete":
                    staged[(path, doc_id)] = None
                    if existing is not None:
                        events.append((path, doc_id, REMOVED))
                else:
                    raise StoreError(f"Unknown batch operation: {op}")

            for (path, doc_id), doc in staged.items():
                collection = self._collections.setdefault(path, {})
                if doc is None:
                    collection.pop(doc_id, None)
                    if not collection:
                        self._collections.pop(path, None)
                else:
                    collection[doc_id] = doc

            for op, path, doc_id, _, _ in ops:
                doc = staged[(path, doc_id)]
                results.append(copy.deepcopy(doc) if doc is not None else None)

            # Published under the store lock so sequence numbers follow commit order
            for path, doc_id, kind in events:
                doc = staged[(path, doc_id)]
                self.bus.publish(path, doc_id, kind, copy.deepcopy(doc) if doc is not None else None)

        if len(ops) > 1:
            logger.debug(f"Committed batch of {len(ops)} writes")
        return results

    def reset(self) -> int:
        """Drop every collection (testing only)"""
        with self._lock:
            count = sum(len(c) for c in self._collections.values())
            self._collections.clear()
        return count
