"""
OpenAIサービスモジュール
営業メール用プロンプトの組み立てとChat Completions呼び出しを提供
"""
import logging

import openai
from openai import OpenAI

from salesmail.errors import UpstreamError
from salesmail.models import GenerationRequest

logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = """
以下の条件に基づいて、自然な営業メールを日本語で生成してください。

- 貴社名: {company}
- サービス名: {product}
- ターゲット: {target}
- アピールポイント: {benefit}
- トーン: {tone}
- メールの目的: {purpose}

件名と本文を含めてください。"""


def build_prompt(req: GenerationRequest) -> str:
    """
    フォーム入力から生成用プロンプトを組み立てる

    Args:
        req: 検証済みの生成リクエスト

    Returns:
        件名と本文の生成を指示する日本語プロンプト
    """
    return PROMPT_TEMPLATE.format(
        company=req.company,
        product=req.product,
        target=req.target,
        benefit=req.benefit,
        tone=req.tone,
        purpose=req.purpose,
    )


class CompletionClient:
    """Chat Completions APIの薄いラッパー（リトライ・ストリーミングなし）"""

    def __init__(self, client: OpenAI, model: str = "gpt-4", temperature: float = 0.7):
        self.client = client
        self.model = model
        self.temperature = temperature

    def complete(self, prompt: str) -> str:
        """
        プロンプトを1件のuserメッセージとして送信し、最初の候補の本文を返す

        Raises:
            UpstreamError: 通信エラー・APIエラー・候補なし
        """
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            raise UpstreamError(f"OpenAI API call failed: {e}") from e

        if not resp.choices:
            raise UpstreamError("OpenAI API returned no choices")
        content = resp.choices[0].message.content
        logger.debug("[OpenAI] %d chars generated (model=%s)", len(content or ""), self.model)
        return content or ""
