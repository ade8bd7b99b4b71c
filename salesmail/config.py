"""
アプリケーション設定管理モジュール
環境変数の読み込み、ログ設定、クライアント生成
"""
import json
import logging
import os
from typing import Optional

import httpx
from dotenv import load_dotenv
from google.cloud import firestore
from google.oauth2 import service_account
from openai import OpenAI

# 環境変数の読み込み
load_dotenv()

# =========================
# 環境変数から設定を読み込み
# =========================

# OpenAI設定
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))

# 生成API（UIから呼び出す先）
GENERATE_API_URL = os.getenv("GENERATE_API_URL", "http://localhost:8000")
GENERATE_API_TIMEOUT = float(os.getenv("GENERATE_API_TIMEOUT", "60"))

# Firestore設定
FIRESTORE_PROJECT_ID = os.getenv("FIRESTORE_PROJECT_ID", "")
FIRESTORE_COLLECTION = os.getenv("FIRESTORE_COLLECTION", "email_histories")
# サービスアカウント認証情報（JSONファイルの内容を文字列として設定可能・推奨）
GOOGLE_SERVICE_ACCOUNT_JSON = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")
# サービスアカウント認証情報（ファイルパス指定）
GOOGLE_SERVICE_ACCOUNT_PATH = os.getenv("GOOGLE_SERVICE_ACCOUNT_PATH", "")

# 認証（.streamlit/secrets.toml の [auth.<provider>]）
AUTH_PROVIDER = os.getenv("AUTH_PROVIDER", "google")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

logger = logging.getLogger(__name__)


def setup_logging(level: str = LOG_LEVEL) -> None:
    """ルートロガーを初期化（起動時に1回）"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =========================
# クライアント生成
# =========================
def create_openai_client(http_client: Optional[httpx.Client] = None) -> OpenAI:
    """リトライなし（SDK既定の自動リトライを無効化）"""
    if not OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY が未設定です。")
    return OpenAI(api_key=OPENAI_API_KEY, max_retries=0, http_client=http_client)


def create_firestore_client() -> firestore.Client:
    """
    Firestoreクライアントを生成（サービスアカウント認証）
    どちらも未設定の場合はApplication Default Credentialsを使用
    """
    project = FIRESTORE_PROJECT_ID or None

    # 方法1: 環境変数からJSONを読み込む（推奨）
    if GOOGLE_SERVICE_ACCOUNT_JSON:
        try:
            info = json.loads(GOOGLE_SERVICE_ACCOUNT_JSON)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in GOOGLE_SERVICE_ACCOUNT_JSON: {e}") from e
        creds = service_account.Credentials.from_service_account_info(info)
        logger.info("[Firestore] Service account: %s", info.get("client_email", "unknown"))
        return firestore.Client(project=project or info.get("project_id"), credentials=creds)

    # 方法2: ファイルパスから読み込む
    if GOOGLE_SERVICE_ACCOUNT_PATH:
        if not os.path.exists(GOOGLE_SERVICE_ACCOUNT_PATH):
            raise FileNotFoundError(f"Service account file not found: {GOOGLE_SERVICE_ACCOUNT_PATH}")
        creds = service_account.Credentials.from_service_account_file(GOOGLE_SERVICE_ACCOUNT_PATH)
        logger.info("[Firestore] Credentials loaded from file: %s", GOOGLE_SERVICE_ACCOUNT_PATH)
        return firestore.Client(project=project or creds.project_id, credentials=creds)

    logger.info("[Firestore] Using application default credentials")
    return firestore.Client(project=project)
