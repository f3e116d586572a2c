from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.core.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

DEFAULT_TOKEN_EXPIRE = timedelta(days=7)


@dataclass(frozen=True)
class TokenIdentity:
    """JWT에서 꺼낸 사용자 식별 정보"""
    user_id: str
    email: str


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or DEFAULT_TOKEN_EXPIRE)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """토큰 검증 후 payload 반환. 유효하지 않으면 None."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def identity_from_token(token: Optional[str]) -> Optional[TokenIdentity]:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return TokenIdentity(user_id=str(user_id), email=str(payload.get("email") or ""))


async def get_current_identity(
    request: Request,
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
) -> TokenIdentity:
    """Bearer 헤더 또는 다이어리 API가 발급한 쿠키로 인증"""
    identity = identity_from_token(token or request.cookies.get(settings.token_cookie_name))
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
