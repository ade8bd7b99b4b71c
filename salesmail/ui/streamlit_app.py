"""
営業メール自動生成 画面
streamlit run salesmail/ui/streamlit_app.py
"""

import streamlit as st
import streamlit.components.v1 as components

from salesmail import config
from salesmail.models import ALL, PURPOSES, SORT_ASC, SORT_DESC, TONES
from salesmail.services.api_client import GenerationApiClient
from salesmail.services.auth_service import IdentityGate, StreamlitIdentityProvider
from salesmail.services.history_service import HistoryStore
from salesmail.ui.shell import (
    COPY_FAILED_MESSAGE,
    COPY_MESSAGE,
    DELETE_CONFIRM_MESSAGE,
    EMPTY_HISTORY_MESSAGE,
    MailComposer,
)
from salesmail.utils.export import CSV_FILENAME, clipboard_script


SORT_LABELS = {SORT_DESC: "新しい順", SORT_ASC: "古い順"}


@st.cache_resource
def get_services():
    """プロセス内で1回だけ生成するクライアント"""
    config.setup_logging()
    api = GenerationApiClient.from_url(config.GENERATE_API_URL, timeout=config.GENERATE_API_TIMEOUT)
    store = HistoryStore(config.create_firestore_client(), collection=config.FIRESTORE_COLLECTION)
    return api, store


def get_composer() -> MailComposer:
    if "composer" not in st.session_state:
        api, store = get_services()
        gate = IdentityGate(StreamlitIdentityProvider(config.AUTH_PROVIDER))
        st.session_state.composer = MailComposer(api, gate, store)
    return st.session_state.composer


def copy_to_clipboard(text: str):
    components.html(clipboard_script(text, COPY_MESSAGE, COPY_FAILED_MESSAGE), height=0)


def render_header(c: MailComposer):
    left, right = st.columns([4, 1])
    left.title("📬 営業メール自動生成")
    if c.session:
        if right.button("ログアウト"):
            c.logout()
            st.rerun()
    elif right.button("Googleでログイン"):
        c.login()


def render_form(c: MailComposer):
    f = c.form
    c.update_form(
        company=st.text_input("貴社名", value=f.company),
        product=st.text_input("サービス名", value=f.product),
        target=st.text_input("ターゲット", value=f.target),
        benefit=st.text_input("アピールポイント", value=f.benefit),
        tone=st.selectbox("トーン", TONES, index=TONES.index(f.tone)),
        purpose=st.selectbox("メールの目的", PURPOSES, index=PURPOSES.index(f.purpose)),
    )

    # 押下 → 再描画でボタンを無効化 → 生成
    label = "生成中..." if c.loading else "生成する"
    if st.button(label, disabled=c.loading, type="primary"):
        c.request_generate()
        st.rerun()
    if c.loading:
        with st.spinner("生成中..."):
            c.generate()
        st.rerun()

    if c.result:
        st.text_area("生成結果", value=c.result, height=320)
        col1, col2 = st.columns(2)
        if col1.button("📋 コピー"):
            copy_to_clipboard(c.copy_text())
        col2.link_button("📤 Gmailで開く", c.mailto_url())


def render_history(c: MailComposer):
    st.subheader("📂 履歴フィルター")
    c.keyword = st.text_input("キーワード検索（会社名やサービス名）", value=c.keyword)
    col1, col2 = st.columns(2)
    tones = (ALL,) + TONES
    purposes = (ALL,) + PURPOSES
    c.filter_tone = col1.selectbox("トーン", tones, index=tones.index(c.filter_tone), key="filter_tone")
    c.filter_purpose = col2.selectbox("目的", purposes, index=purposes.index(c.filter_purpose), key="filter_purpose")

    orders = list(SORT_LABELS)
    order = st.selectbox("並び順", orders, index=orders.index(c.sort_order), format_func=SORT_LABELS.get)
    if order != c.sort_order:
        c.set_sort_order(order)

    if st.button("🔍 検索する"):
        c.refresh_history()

    csv_text = c.export_csv()
    st.download_button(
        "📥 CSVエクスポート",
        data=(csv_text or "").encode("utf-8"),
        file_name=CSV_FILENAME,
        mime="text/csv",
        disabled=csv_text is None,
    )

    if c.pending_delete:
        st.warning(DELETE_CONFIRM_MESSAGE)
        ok, cancel = st.columns(2)
        if ok.button("削除する"):
            c.confirm_delete()
            st.rerun()
        if cancel.button("キャンセル"):
            c.cancel_delete()
            st.rerun()

    if not c.history:
        st.caption(EMPTY_HISTORY_MESSAGE)
        return

    for record in c.history:
        with st.container(border=True):
            main, side = st.columns([6, 1])
            if main.button(record.preview(), key=f"restore-{record.id}"):
                c.restore(record)
                st.rerun()
            main.caption(record.snippet())
            if side.button("🗑️", key=f"delete-{record.id}"):
                c.request_delete(record.id)
                st.rerun()


def main():
    st.set_page_config(page_title="営業メール自動生成", page_icon="📬")
    c = get_composer()
    c.gate.refresh()

    render_header(c)
    render_form(c)
    if c.session:
        render_history(c)


main()
