"""
データモデル定義
"""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Literal, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from salesmail.errors import ValidationError

# 選択肢
TONES = ("丁寧", "カジュアル")
PURPOSES = ("初回提案", "再提案", "デモ案内")

# フィルターの「すべて」（絞り込みなし）
ALL = "すべて"

SORT_DESC = "desc"  # 新しい順
SORT_ASC = "asc"    # 古い順

FORM_FIELDS = ("company", "product", "target", "benefit", "tone", "purpose")


class GenerationRequest(BaseModel):
    """営業メール生成リクエスト（6項目すべて必須）"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    company: str     # 貴社名
    product: str     # サービス名
    target: str      # ターゲット
    benefit: str     # アピールポイント
    tone: Literal["丁寧", "カジュアル"]
    purpose: Literal["初回提案", "再提案", "デモ案内"]

    @field_validator(*FORM_FIELDS, mode="before")
    @classmethod
    def _non_blank_string(cls, v):
        if not isinstance(v, str) or v.strip() == "":
            raise ValueError("空でない文字列が必要です")
        return v

    @classmethod
    def from_payload(cls, data: Any) -> "GenerationRequest":
        """
        JSONボディからリクエストを生成

        Raises:
            ValidationError: 項目の欠落・型不正・空文字
        """
        if not isinstance(data, dict):
            raise ValidationError("リクエストボディはJSONオブジェクトである必要があります")
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ValidationError(f"不正な項目: {', '.join(fields)}") from e


@dataclass
class FormState:
    """画面上の入力フォーム（未入力を許容）"""
    company: str = ""
    product: str = ""
    target: str = ""
    benefit: str = ""
    tone: str = "丁寧"
    purpose: str = "初回提案"

    def to_payload(self) -> dict:
        return asdict(self)

    @classmethod
    def from_request(cls, req: GenerationRequest) -> "FormState":
        return cls(**req.model_dump())


class HistoryRecord(BaseModel):
    """生成履歴（Firestoreの1ドキュメント）"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    form: GenerationRequest
    result: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def preview(self) -> str:
        """履歴一覧の見出し"""
        return f"{self.form.company} - {self.form.product} ({self.form.purpose})"

    def snippet(self, length: int = 80) -> str:
        """本文の先頭部分"""
        return f"{self.result[:length]}..."


@dataclass(frozen=True)
class SessionUser:
    """ログイン中のユーザー"""
    uid: str
    name: str = ""
    email: str = ""
