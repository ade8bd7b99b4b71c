"""
画面の状態管理
フォーム・生成結果・履歴一覧・フィルターを保持し、画面操作を処理する
描画はstreamlit_app.pyが担当
"""
import logging
from dataclasses import replace
from typing import List, Optional

from salesmail.errors import GenerationApiError, StoreError, UpstreamError, ValidationError
from salesmail.models import ALL, SORT_DESC, FormState, GenerationRequest, HistoryRecord, SessionUser
from salesmail.services.api_client import GenerationApiClient
from salesmail.services.auth_service import IdentityGate
from salesmail.services.history_service import HistoryStore
from salesmail.utils.export import history_to_csv, mailto_link

logger = logging.getLogger(__name__)

COPY_MESSAGE = "コピーしました！"
COPY_FAILED_MESSAGE = "コピーに失敗しました"
DELETE_CONFIRM_MESSAGE = "この履歴を削除しますか？"
EMPTY_HISTORY_MESSAGE = "🔍 条件に一致する履歴は見つかりませんでした。"


class MailComposer:
    def __init__(self, api: GenerationApiClient, gate: IdentityGate, store: HistoryStore):
        self.api = api
        self.gate = gate
        self.store = store

        self.form = FormState()
        self.result = ""
        self.loading = False
        self.history: List[HistoryRecord] = []

        # 履歴フィルター
        self.keyword = ""
        self.filter_tone = ALL
        self.filter_purpose = ALL
        self.sort_order = SORT_DESC

        self.pending_delete: Optional[str] = None
        self._history_uid: Optional[str] = None

        self._unsubscribe = gate.subscribe(self._on_session_change)

    @property
    def session(self) -> Optional[SessionUser]:
        return self.gate.session

    def close(self) -> None:
        self._unsubscribe()

    def _on_session_change(self, user: Optional[SessionUser]) -> None:
        uid = user.uid if user else None
        if uid != self._history_uid:
            # 別ユーザーの履歴・削除対象を残さない
            self.history = []
            self.pending_delete = None
            self._history_uid = uid
        if user is not None:
            self.refresh_history()

    # =========================
    # 生成
    # =========================
    def update_form(self, **fields) -> None:
        self.form = replace(self.form, **fields)

    def request_generate(self) -> None:
        """生成中表示に切り替える（生成は次の描画で実行）"""
        self.loading = True

    def generate(self) -> None:
        """
        メールを生成して表示。ログイン中なら履歴に保存して一覧を更新
        """
        self.loading = True
        self.result = ""
        payload = self.form.to_payload()
        try:
            text = self.api.generate(payload)
        except (GenerationApiError, UpstreamError) as e:
            logger.error("[UI] 生成エラー: %s", e)
            self.result = f"⚠️ エラーが発生しました。詳細: {e}"
            return
        finally:
            self.loading = False

        self.result = text
        user = self.session
        if user is None:
            return
        try:
            self.store.add(user.uid, GenerationRequest.from_payload(payload), text)
        except (StoreError, ValidationError) as e:
            logger.error("[UI] 履歴保存エラー: %s", e)
            return
        self.refresh_history()

    def restore(self, record: HistoryRecord) -> None:
        """履歴の入力内容と本文を画面に復元（履歴自体は変更しない）"""
        self.form = FormState.from_request(record.form)
        self.result = record.result

    # =========================
    # 履歴
    # =========================
    def refresh_history(self) -> None:
        user = self.session
        if user is None:
            return
        try:
            records = self.store.list(
                user.uid,
                sort_order=self.sort_order,
                keyword=self.keyword,
                tone=self.filter_tone,
                purpose=self.filter_purpose,
            )
        except StoreError as e:
            logger.error("[UI] 履歴取得エラー: %s", e)
            return
        self.history = records

    def set_sort_order(self, order: str) -> None:
        self.sort_order = order
        self.refresh_history()

    def request_delete(self, record_id: str) -> None:
        self.pending_delete = record_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> None:
        record_id, self.pending_delete = self.pending_delete, None
        if record_id is None:
            return
        try:
            self.store.remove(record_id)
        except StoreError as e:
            logger.error("[UI] 削除エラー: %s", e)
            return
        self.refresh_history()

    def export_csv(self) -> Optional[str]:
        """表示中（絞り込み後）の履歴をCSV化。履歴が空ならNone"""
        if not self.history:
            return None
        return history_to_csv(self.history)

    # =========================
    # 生成結果の操作
    # =========================
    def copy_text(self) -> str:
        return self.result

    def mailto_url(self) -> str:
        return mailto_link(self.result)

    # =========================
    # 認証
    # =========================
    def login(self) -> None:
        self.gate.login()

    def logout(self) -> None:
        self.gate.logout()
