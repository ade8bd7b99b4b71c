"""
HistoryStore（Firestore）のテスト
"""
import pytest
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions

from salesmail.errors import StoreError
from salesmail.models import ALL, GenerationRequest


def _req(company="Acme", product="WidgetPro", tone="丁寧", purpose="初回提案"):
    return GenerationRequest(
        company=company, product=product, target="中小企業", benefit="コスト削減",
        tone=tone, purpose=purpose,
    )


class TestHistoryStore:
    @pytest.fixture(autouse=True)
    def seed(self, store):
        self.store = store
        self.ids = [
            store.add("user123", _req("Acme", "WidgetPro"), "本文1"),
            store.add("user123", _req("Globex", "AcmeCloud", tone="カジュアル"), "本文2"),
            store.add("user123", _req("Initech", "Stapler", purpose="デモ案内"), "本文3"),
            store.add("other", _req("Acme", "WidgetPro"), "他人の本文"),
        ]

    def test_add_document_shape(self, firestore_client):
        """userId・form・result・createdAt（サーバー時刻）を保存"""
        doc = firestore_client.docs["email_histories"][self.ids[0]]

        assert doc["userId"] == "user123"
        assert doc["form"] == _req().model_dump()
        assert doc["result"] == "本文1"
        assert doc["createdAt"] is not None

    def test_list_only_own_records(self):
        records = self.store.list("user123")

        assert len(records) == 3
        assert all(r.user_id == "user123" for r in records)

    def test_sort_desc(self):
        records = self.store.list("user123", sort_order="desc")

        assert [r.result for r in records] == ["本文3", "本文2", "本文1"]
        stamps = [r.created_at for r in records]
        assert stamps == sorted(stamps, reverse=True)

    def test_sort_asc(self):
        records = self.store.list("user123", sort_order="asc")

        stamps = [r.created_at for r in records]
        assert stamps == sorted(stamps)

    def test_unknown_sort_order(self):
        with pytest.raises(ValueError):
            self.store.list("user123", sort_order="random")

    def test_list_is_idempotent(self):
        first = self.store.list("user123", keyword="Acme")
        second = self.store.list("user123", keyword="Acme")

        assert first == second

    # =============================================================================
    # フィルター
    # =============================================================================

    def test_keyword_matches_company_or_product(self):
        """会社名またはサービス名の部分一致"""
        records = self.store.list("user123", keyword="Acme")

        assert {r.result for r in records} == {"本文1", "本文2"}

    def test_keyword_is_case_sensitive(self):
        assert self.store.list("user123", keyword="acme") == []

    def test_blank_keyword_means_no_filter(self):
        assert len(self.store.list("user123", keyword="   ")) == 3

    def test_tone_all_sentinel(self):
        assert len(self.store.list("user123", tone=ALL)) == 3

    def test_tone_exact_match(self):
        records = self.store.list("user123", tone="カジュアル")

        assert [r.result for r in records] == ["本文2"]

    def test_purpose_exact_match(self):
        records = self.store.list("user123", purpose="デモ案内")

        assert [r.result for r in records] == ["本文3"]

    def test_combined_filters(self):
        records = self.store.list("user123", keyword="Acme", tone="丁寧", purpose="初回提案")

        assert [r.result for r in records] == ["本文1"]

    # =============================================================================
    # 削除
    # =============================================================================

    def test_remove_only_target(self):
        before = self.store.list("user123")

        self.store.remove(self.ids[1])

        after = self.store.list("user123")
        assert [r.id for r in after] == [r.id for r in before if r.id != self.ids[1]]
        assert len(self.store.list("other")) == 1

    # =============================================================================
    # 異常系
    # =============================================================================

    @pytest.mark.parametrize("error", [
        gcp_exceptions.ServiceUnavailable("down"),
        gcp_exceptions.RetryError("deadline exceeded", cause=None),
        auth_exceptions.RefreshError("token refresh failed"),
    ])
    @pytest.mark.parametrize("op,call", [
        ("add", lambda s: s.add("user123", _req(), "本文")),
        ("stream", lambda s: s.list("user123")),
        ("delete", lambda s: s.remove("x")),
    ])
    def test_backend_errors_become_store_error(self, firestore_client, op, call, error):
        """API・リトライ期限切れ・認証の失敗はすべてStoreError"""
        firestore_client.fail_on[op] = error

        with pytest.raises(StoreError):
            call(self.store)

    def test_no_client_side_retry(self, firestore_client):
        """add / stream / delete はretry=Noneで呼び出す"""
        self.store.list("user123")
        self.store.remove(self.ids[0])

        assert firestore_client.retry_args == {"add": None, "stream": None, "delete": None}

    def test_malformed_document_is_skipped(self, firestore_client):
        firestore_client.docs["email_histories"]["broken"] = {
            "userId": "user123", "form": {"company": "X"}, "result": "壊れた履歴",
            "createdAt": firestore_client.next_timestamp(),
        }

        records = self.store.list("user123")

        assert "broken" not in [r.id for r in records]
        assert len(records) == 3
