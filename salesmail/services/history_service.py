"""
履歴サービスモジュール
Firestoreへの生成履歴の保存・取得・削除を提供
"""
import logging
from typing import List

import pydantic
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from salesmail.errors import StoreError
from salesmail.models import ALL, SORT_ASC, SORT_DESC, GenerationRequest, HistoryRecord

logger = logging.getLogger(__name__)

# API・リトライ期限切れ・認証トークン更新の失敗
_BACKEND_ERRORS = (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)

_DIRECTIONS = {
    SORT_DESC: firestore.Query.DESCENDING,
    SORT_ASC: firestore.Query.ASCENDING,
}


def filter_records(records: List[HistoryRecord], keyword: str = "", tone: str = ALL,
                   purpose: str = ALL) -> List[HistoryRecord]:
    """
    取得済みの履歴を絞り込む（順序は維持）

    - keyword: 会社名・サービス名の部分一致（空白のみなら絞り込みなし）
    - tone / purpose: 完全一致（「すべて」なら絞り込みなし）
    """
    if keyword.strip():
        records = [r for r in records if keyword in r.form.company or keyword in r.form.product]
    if tone != ALL:
        records = [r for r in records if r.form.tone == tone]
    if purpose != ALL:
        records = [r for r in records if r.form.purpose == purpose]
    return records


class HistoryStore:
    """ユーザーごとの生成履歴（コレクション: email_histories）"""

    def __init__(self, client: firestore.Client, collection: str = "email_histories"):
        self.client = client
        self.collection = collection

    def _col(self):
        return self.client.collection(self.collection)

    def add(self, user_id: str, form: GenerationRequest, result: str) -> str:
        """
        履歴を1件追加（createdAtはサーバー時刻）

        Returns:
            採番されたドキュメントID
        """
        data = {
            "userId": user_id,
            "form": form.model_dump(),
            "result": result,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        try:
            _, ref = self._col().add(data, retry=None)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"履歴の保存に失敗しました: {e}") from e
        logger.info("[History] Added %s for user %s", ref.id, user_id)
        return ref.id

    def list(self, user_id: str, sort_order: str = SORT_DESC, keyword: str = "",
             tone: str = ALL, purpose: str = ALL) -> List[HistoryRecord]:
        """
        ユーザーの履歴を作成日時順に取得し、キーワード・トーン・目的で絞り込む
        """
        direction = _DIRECTIONS.get(sort_order)
        if direction is None:
            raise ValueError(f"Unknown sort order: {sort_order}")

        query = (
            self._col()
            .where(filter=FieldFilter("userId", "==", user_id))
            .order_by("createdAt", direction=direction)
        )
        try:
            snapshots = list(query.stream(retry=None))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"履歴の取得に失敗しました: {e}") from e

        records = []
        for snap in snapshots:
            try:
                records.append(HistoryRecord.model_validate({"id": snap.id, **snap.to_dict()}))
            except pydantic.ValidationError as e:
                logger.warning("[History] Skipping malformed document %s: %s", snap.id, e)
        return filter_records(records, keyword=keyword, tone=tone, purpose=purpose)

    def remove(self, record_id: str) -> None:
        try:
            self._col().document(record_id).delete(retry=None)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"履歴の削除に失敗しました: {e}") from e
        logger.info("[History] Deleted %s", record_id)
