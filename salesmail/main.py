"""
営業メール生成API
POST /api/generate でフォーム入力から営業メールの下書きを返す
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from salesmail import config
from salesmail.errors import UpstreamError, ValidationError
from salesmail.models import GenerationRequest
from salesmail.services.openai_service import CompletionClient, build_prompt

logger = logging.getLogger(__name__)


def create_app(completion_client: Optional[CompletionClient] = None) -> FastAPI:
    """
    FastAPIアプリを生成

    Args:
        completion_client: 注入するクライアント（未指定なら起動時に環境変数から生成）
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if completion_client is None:
            app.state.completion_client = CompletionClient(
                config.create_openai_client(),
                model=config.OPENAI_MODEL,
                temperature=config.OPENAI_TEMPERATURE,
            )
            logger.info("[Generate] OpenAI client initialized (model=%s)", config.OPENAI_MODEL)
        else:
            app.state.completion_client = completion_client
        yield

    app = FastAPI(title="Sales Mail Generator", lifespan=lifespan)

    # =========================
    # 例外ハンドラ
    # =========================
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("[Generate] Invalid request: %s", exc)
        return JSONResponse({"error": "リクエストが不正です"}, status_code=400)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error("[Generate] Upstream failure: %s", exc, exc_info=exc)
        return JSONResponse({"error": "サーバーエラー"}, status_code=500)

    # =========================
    # FastAPIエンドポイント
    # =========================
    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/api/generate")
    async def generate(request: Request):
        try:
            body = await request.json()
        except ValueError as e:
            raise ValidationError("JSONの解析に失敗しました") from e

        form = GenerationRequest.from_payload(body)
        prompt = build_prompt(form)
        client: CompletionClient = request.app.state.completion_client
        try:
            result = await run_in_threadpool(client.complete, prompt)
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(f"Unexpected error: {e}") from e
        return {"result": result}

    return app


config.setup_logging()
app = create_app()
