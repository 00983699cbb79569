import threading
from typing import Optional

from fastapi import Header, HTTPException

from davemode.cli.main import build_orchestrator
from davemode.config import load_config
from davemode.services.orchestrator import OrchestratorService

_orchestrator: Optional[OrchestratorService] = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> OrchestratorService:
    """Process-wide orchestrator; the learning store is loaded once at first use."""
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = build_orchestrator()
    return _orchestrator


def require_api_token(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    x_davemode_token: Optional[str] = Header(None, alias="X-DaveMode-Token"),
) -> None:
    """
    Require an API bearer token if `DAVEMODE_API_TOKEN` is set.

    Accepted headers:
    - `Authorization: Bearer <token>`
    - `X-DaveMode-Token: <token>`
    """
    config = load_config()
    expected = config.api_token
    if not expected:
        return

    if x_davemode_token and x_davemode_token == expected:
        return

    if authorization:
        parts = authorization.strip().split(None, 1)
        if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1] == expected:
            return

    raise HTTPException(status_code=401, detail="Unauthorized")
