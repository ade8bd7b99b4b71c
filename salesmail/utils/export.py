"""
エクスポートユーティリティ
履歴のCSV化とメーラー起動用リンクの生成
"""
import csv
import io
import json
import re
from typing import Iterable
from urllib.parse import quote

from salesmail.models import HistoryRecord

CSV_FILENAME = "email_history.csv"
CSV_HEADER = ["会社名", "サービス名", "ターゲット", "アピールポイント", "トーン", "目的", "メール本文"]

MAIL_SUBJECT = "営業のご提案"

# encodeURIComponent と同じく英数字と -_.!~*'() 以外をエスケープ
_URI_COMPONENT_SAFE = "-_.!~*'()"

_NEWLINES = re.compile(r"\r\n|\r|\n")


def history_to_csv(records: Iterable[HistoryRecord]) -> str:
    """
    履歴をCSV文字列に変換（全項目をダブルクォートで囲む）

    メール本文の改行はスペースに置き換える
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in records:
        f = r.form
        writer.writerow([
            f.company,
            f.product,
            f.target,
            f.benefit,
            f.tone,
            f.purpose,
            _NEWLINES.sub(" ", r.result),  # 改行をスペースに
        ])
    # 最終行の後ろに改行を付けない
    return buf.getvalue().removesuffix("\n")


def mailto_link(body: str, subject: str = MAIL_SUBJECT) -> str:
    return (
        f"mailto:?subject={quote(subject, safe=_URI_COMPONENT_SAFE)}"
        f"&body={quote(body, safe=_URI_COMPONENT_SAFE)}"
    )


def _js_string(s: str) -> str:
    # <script>内に埋め込むため "</" もエスケープ
    return json.dumps(s, ensure_ascii=False).replace("</", "<\\/")


def clipboard_script(text: str, done_message: str, failed_message: str) -> str:
    """
    クリップボードへ書き込むスクリプト（完了メッセージは書き込み成功時のみ）

    コンポーネントのiframeはフォーカスを持たないため、親ドキュメントの
    clipboardを優先して使う
    """
    done, failed = _js_string(done_message), _js_string(failed_message)
    return f"""<script>
(function () {{
  var clip = null;
  try {{ clip = window.parent.navigator.clipboard; }} catch (e) {{}}
  clip = clip || navigator.clipboard;
  if (!clip) {{ alert({failed}); return; }}
  clip.writeText({_js_string(text)})
    .then(function () {{ alert({done}); }})
    .catch(function (err) {{ alert({failed} + "\\n" + err); }});
}})();
</script>"""
