"""
DaveMode Service Base

Defines the base Service class and ServiceContext that all services inherit from.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from davemode.config import Config
from davemode.logging import get_logger


@dataclass
class ServiceContext:
    """
    Context object providing shared dependencies and runtime state to services.

    Attributes:
        config: Application configuration
        request_id: Optional request correlation ID for tracing
        metadata: Additional contextual metadata
    """
    config: Config
    request_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class Service:
    """
    Base class for all DaveMode services.

    Each service receives a ServiceContext providing access to configuration
    and a logger named after the concrete class.
    """

    def __init__(self, context: ServiceContext) -> None:
        self.context = context
        self.config = context.config
        self.logger = get_logger(self.__class__.__name__)

    def log_extra(
        self,
        *,
        request_id: Optional[str] = None,
        interaction_id: Optional[str] = None,
        task_kind: Optional[str] = None,
        project_type: Optional[str] = None,
        agent_id: Optional[str] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        """
        Build a consistent extra dict for structured logging.

        Uses context request_id by default, but can be overridden.
        Only non-None values are included.
        """
        payload: Dict[str, Any] = {}

        effective_request_id = request_id or self.context.request_id
        if effective_request_id is not None:
            payload["request_id"] = effective_request_id

        if interaction_id is not None:
            payload["interaction_id"] = interaction_id
        if task_kind is not None:
            payload["task_kind"] = task_kind
        if project_type is not None:
            payload["project_type"] = project_type
        if agent_id is not None:
            payload["agent_id"] = agent_id

        payload.update({k: v for k, v in extra.items() if v is not None})
        return payload
