"""
認証サービスモジュール
ログイン状態の保持と変更通知、ログイン・ログアウト操作を提供
"""
import logging
from typing import Callable, List, Optional, Protocol

import streamlit as st
from streamlit.errors import StreamlitAPIException

from salesmail.errors import AuthError
from salesmail.models import SessionUser

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[SessionUser]], None]


class IdentityProvider(Protocol):
    def current_user(self) -> Optional[SessionUser]: ...

    def sign_in(self) -> None: ...

    def sign_out(self) -> None: ...


class StreamlitIdentityProvider:
    """
    Streamlitの組み込みOIDC認証（st.login / st.user / st.logout）
    プロバイダ設定は .streamlit/secrets.toml の [auth] に記述する
    """

    def __init__(self, provider: str = "google"):
        self.provider = provider

    def current_user(self) -> Optional[SessionUser]:
        if not st.user.is_logged_in:
            return None
        return SessionUser(
            uid=str(st.user.get("sub") or st.user.get("email")),
            name=st.user.get("name") or "",
            email=st.user.get("email") or "",
        )

    def sign_in(self) -> None:
        try:
            st.login(self.provider)
        except StreamlitAPIException as e:
            raise AuthError(f"Login error: {e}") from e

    def sign_out(self) -> None:
        try:
            st.logout()
        except StreamlitAPIException as e:
            raise AuthError(f"Logout error: {e}") from e


class IdentityGate:
    """現在のセッションを保持し、変化をリスナーへ通知する"""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._session: Optional[SessionUser] = None
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> Optional[SessionUser]:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        セッション変更リスナーを登録

        Returns:
            登録解除用の関数
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_session(self, user: Optional[SessionUser]) -> None:
        if user == self._session:
            return
        self._session = user
        for listener in list(self._listeners):
            listener(user)

    def refresh(self) -> Optional[SessionUser]:
        """プロバイダの認証状態を読み直し、変化があれば通知"""
        try:
            user = self.provider.current_user()
        except AuthError as e:
            logger.error("[Auth] Failed to read auth state: %s", e)
            return self._session
        self._set_session(user)
        return self._session

    def login(self) -> None:
        """失敗時はログのみ（セッションは変更しない）"""
        try:
            self.provider.sign_in()
        except AuthError as e:
            logger.error("[Auth] %s", e)
            return
        self.refresh()

    def logout(self) -> None:
        try:
            self.provider.sign_out()
        except AuthError as e:
            logger.error("[Auth] %s", e)
        finally:
            self._set_session(None)
