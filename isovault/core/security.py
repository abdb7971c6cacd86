# isovault/core/security.py
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from isovault.core.config import ApiClient

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class ApiCaller:
    user_id: int
    username: str
    reveal_pan: bool


class TokenRegistry:
    """Tabla token -> cliente, construida una vez desde Settings.API_TOKENS."""

    def __init__(self, tokens: Dict[str, ApiClient]):
        self._tokens = dict(tokens)

    def lookup(self, token: str) -> Optional[ApiCaller]:
        client = self._tokens.get(token)
        if client is None:
            return None
        return ApiCaller(
            user_id=client.user_id,
            username=client.username,
            reveal_pan=client.reveal_pan,
        )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> ApiCaller:
    if credentials is not None:
        token = credentials.credentials
    else:
        # también se acepta el token sin el prefijo "Bearer "
        token = request.headers.get("Authorization", "").strip()
        if " " in token:
            token = ""
    if not token:
        raise _unauthorized("Bearer token required")

    caller = request.app.state.token_registry.lookup(token)
    if caller is None:
        logger.warning("Token inválido rechazado")
        raise _unauthorized("Invalid token")
    return caller
