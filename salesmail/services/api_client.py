"""
生成APIクライアント
画面側から POST /api/generate を呼び出す
"""
import logging

import httpx

from salesmail.errors import GenerationApiError, UpstreamError

logger = logging.getLogger(__name__)


class GenerationApiClient:
    def __init__(self, http: httpx.Client):
        self.http = http

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 60) -> "GenerationApiClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def generate(self, payload: dict) -> str:
        """
        フォーム内容を送信し、生成されたメール本文を返す

        Raises:
            GenerationApiError: 2xx以外のレスポンス
            UpstreamError: 通信エラー・不正なレスポンス
        """
        try:
            res = self.http.post("/api/generate", json=payload)
        except httpx.HTTPError as e:
            raise UpstreamError(f"生成APIに接続できません: {e}") from e

        if not res.is_success:
            raise GenerationApiError(res.status_code, res.text)

        try:
            return res.json()["result"]
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamError(f"生成APIのレスポンスが不正です: {res.text[:200]}") from e

    def close(self) -> None:
        self.http.close()
