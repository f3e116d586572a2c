from datetime import timedelta
from types import SimpleNamespace

from app.utils.auth import TokenIdentity, create_access_token, decode_access_token, identity_from_token
from app.websockets.auth import extract_token


class TestAccessToken:
    """JWT 토큰 테스트"""

    def test_round_trip_identity(self):
        token = create_access_token(data={"sub": "650000000000000000000001", "email": "alice@example.com"})

        payload = decode_access_token(token)
        assert payload["sub"] == "650000000000000000000001"
        assert "exp" in payload

        assert identity_from_token(token) == TokenIdentity(
            user_id="650000000000000000000001",
            email="alice@example.com",
        )

    def test_expired_token(self):
        token = create_access_token(data={"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        assert decode_access_token(token) is None
        assert identity_from_token(token) is None

    def test_invalid_tokens(self):
        assert identity_from_token(None) is None
        assert identity_from_token("") is None
        assert identity_from_token("not.a.jwt") is None

    def test_token_without_subject(self):
        token = create_access_token(data={"email": "alice@example.com"})

        assert identity_from_token(token) is None

    def test_missing_email_is_empty_string(self):
        token = create_access_token(data={"sub": "user-1"})

        assert identity_from_token(token).email == ""


def handshake(headers=None, cookies=None, query=None) -> SimpleNamespace:
    return SimpleNamespace(headers=headers or {}, cookies=cookies or {}, query_params=query or {})


class TestExtractToken:
    """WebSocket 핸드셰이크 토큰 추출 테스트"""

    def test_bearer_header_first(self):
        websocket = handshake(
            headers={"authorization": "Bearer header-token"},
            cookies={"token": "cookie-token"},
            query={"token": "query-token"},
        )
        assert extract_token(websocket) == "header-token"

    def test_cookie_before_query(self):
        websocket = handshake(cookies={"token": "cookie-token"}, query={"token": "query-token"})
        assert extract_token(websocket) == "cookie-token"

    def test_query_parameter(self):
        assert extract_token(handshake(query={"token": "query-token"})) == "query-token"

    def test_non_bearer_header_falls_through_to_cookie(self):
        """Bearer가 아닌 Authorization 헤더는 무시하고 쿠키 사용"""
        websocket = handshake(headers={"authorization": "Basic dXNlcjpwdw=="}, cookies={"token": "cookie-token"})
        assert extract_token(websocket) == "cookie-token"

    def test_empty_bearer_falls_through_to_query(self):
        websocket = handshake(headers={"authorization": "Bearer "}, query={"token": "query-token"})
        assert extract_token(websocket) == "query-token"

    def test_no_token(self):
        assert extract_token(handshake(headers={"authorization": "Basic abc"})) is None
