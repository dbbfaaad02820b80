from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Session:
    """Сессия пользователя хостинга: нам нужен только access token."""
    access_token: str


def session_from_header(authorization: Optional[str]) -> Optional[Session]:
    """
    Достаёт токен из заголовка "Authorization: Bearer <token>".
    Нет заголовка или токена — нет сессии (None), а не ошибка.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    if not token:
        return None
    return Session(access_token=token)
