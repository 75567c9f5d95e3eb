from __future__ import annotations

from typing import Any, Dict, Literal, Optional

ErrorKind = Literal["InvalidInput", "NotFound"]


class CommandRejectedError(Exception):
    """
    Команда отклонена валидацией; состояние не менялось.
    message пригоден для показа пользователю.
    """

    def __init__(
        self,
        kind: ErrorKind,
        code: str,
        message: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.message = message
        self.meta = meta or {}

    def __repr__(self) -> str:
        return f"CommandRejectedError({self.kind!r}, {self.code!r}, {self.message!r})"
