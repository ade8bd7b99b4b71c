"""
テスト用のフェイク実装（Firestore・認証プロバイダ）
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from google.cloud import firestore

from salesmail.errors import AuthError
from salesmail.models import SessionUser

# 呼び出し側がretryを指定しなかったことを示す
DEFAULT_RETRY = object()


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict):
        self.id = doc_id
        self._data = data

    def to_dict(self) -> dict:
        return dict(self._data)


class FakeDocumentRef:
    def __init__(self, store: "FakeFirestoreClient", collection: str, doc_id: str):
        self._store = store
        self._collection = collection
        self.id = doc_id

    def delete(self, retry=DEFAULT_RETRY):
        self._store._check("delete", retry)
        self._store.docs.setdefault(self._collection, {}).pop(self.id, None)


class FakeQuery:
    def __init__(self, store: "FakeFirestoreClient", collection: str, filters=(), order=None):
        self._store = store
        self._collection = collection
        self._filters = tuple(filters)
        self._order = order

    def where(self, *, filter):
        assert filter.op_string == "=="
        return FakeQuery(self._store, self._collection,
                         self._filters + ((filter.field_path, filter.value),), self._order)

    def order_by(self, field_path, direction=firestore.Query.ASCENDING):
        return FakeQuery(self._store, self._collection, self._filters, (field_path, direction))

    def stream(self, retry=DEFAULT_RETRY):
        self._store._check("stream", retry)
        self._store.stream_calls += 1
        items = [
            (doc_id, data) for doc_id, data in self._store.docs.get(self._collection, {}).items()
            if all(data.get(k) == v for k, v in self._filters)
        ]
        if self._order:
            field, direction = self._order
            items.sort(key=lambda kv: kv[1][field],
                       reverse=direction == firestore.Query.DESCENDING)
        for doc_id, data in items:
            yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    def add(self, data: dict, retry=DEFAULT_RETRY):
        self._store._check("add", retry)
        doc = dict(data)
        for k, v in doc.items():
            if v is firestore.SERVER_TIMESTAMP:
                doc[k] = self._store.next_timestamp()
        doc_id = uuid.uuid4().hex
        self._store.docs.setdefault(self._collection, {})[doc_id] = doc
        return doc.get("createdAt"), FakeDocumentRef(self._store, self._collection, doc_id)

    def document(self, doc_id: str):
        return FakeDocumentRef(self._store, self._collection, doc_id)


class FakeFirestoreClient:
    """インメモリFirestore（where / order_by / stream / add / delete のみ）"""

    def __init__(self):
        self.docs = {}
        self.fail_on = {}
        self.stream_calls = 0
        self.retry_args = {}
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def next_timestamp(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _check(self, op: str, retry):
        self.retry_args[op] = retry
        if op in self.fail_on:
            raise self.fail_on[op]


class FakeIdentityProvider:
    def __init__(self, user: Optional[SessionUser] = None, fail_sign_in: bool = False):
        self.user = user
        self.fail_sign_in = fail_sign_in
        self.next_user = SessionUser(uid="user123", name="テストユーザー")
        self.sign_out_calls = 0

    def current_user(self) -> Optional[SessionUser]:
        return self.user

    def sign_in(self) -> None:
        if self.fail_sign_in:
            raise AuthError("popup closed")
        self.user = self.next_user

    def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.user = None
