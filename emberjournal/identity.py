# -*- coding: utf-8 -*-
"""Current-user resolution.

Authentication itself happens elsewhere; the journal only needs to ask
"who is signed in right now?".
"""
from __future__ import annotations

from typing import Optional, Protocol
import logging

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    async def current_user_id(self) -> Optional[str]:
        ...


class LocalSession:
    """An in-process session holding the signed-in user's id."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = user_id

    async def current_user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id required")
        self._user_id = user_id
        logger.info("Signed in user %s", user_id)

    def sign_out(self) -> None:
        if self._user_id is not None:
            logger.info("Signed out user %s", self._user_id)
        self._user_id = None
