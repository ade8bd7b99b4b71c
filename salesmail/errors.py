"""
例外定義モジュール
"""


class SalesMailError(Exception):
    """アプリケーション共通の基底例外"""


class ValidationError(SalesMailError):
    """フォーム入力が不正（HTTP 400）"""


class UpstreamError(SalesMailError):
    """生成API・ネットワークの失敗（HTTP 500）"""


class AuthError(SalesMailError):
    """認証プロバイダの失敗"""


class StoreError(SalesMailError):
    """履歴データベース（Firestore）の失敗"""


class GenerationApiError(SalesMailError):
    """生成エンドポイントが2xx以外を返した"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"APIエラー: {status_code} - {body}")
