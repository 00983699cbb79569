"""
DaveMode Error Hierarchy

Base error and specific error types for all DaveMode components.
Errors carry metadata for structured logging.
"""

from typing import Any, Dict, Optional


class DaveModeError(RuntimeError):
    """
    Base error for DaveMode components. Carries metadata for structured logging.

    Attributes:
        category: Error category for classification (e.g., "agent", "storage")
        retryable: Whether the operation can be retried by the caller
        metadata: Additional context for logging and debugging
    """

    category: str = "runtime"
    retryable: bool = True

    def __init__(
        self,
        message: str,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.metadata = metadata or {}
        if retryable is not None:
            self.retryable = retryable


# Validation Errors
class ValidationError(DaveModeError):
    """Raised when input or persisted payload validation fails."""

    category = "validation"
    retryable = False


# Configuration Errors
class ConfigError(DaveModeError):
    """Raised when configuration is invalid or missing."""

    category = "config"
    retryable = False


# Agent Errors
class AgentError(DaveModeError):
    """Raised when an inference call fails in transport."""

    category = "agent"


class UnknownAgentError(AgentError):
    """Raised when an agent id is not part of the registry."""

    category = "agent"
    retryable = False


class MalformedAgentResponse(AgentError):
    """
    Raised when an agent reply cannot be parsed into the expected shape.

    Agent clients catch this and substitute the empty result for the task kind.
    """

    category = "agent"
    retryable = False


# Sandbox Errors
class SandboxError(DaveModeError):
    """Raised when the validation sandbox fails or never becomes ready."""

    category = "sandbox"


# Storage Errors
class StorageError(DaveModeError):
    """Raised when database operations fail."""

    category = "storage"


class EntityNotFoundError(StorageError):
    """Raised when a requested entity is not found in storage."""

    category = "storage"
    retryable = False


class ClarificationRequestNotFoundError(EntityNotFoundError):
    """Raised when resuming an interaction id with no stored clarification request."""

    category = "clarification"
    retryable = False

    def __init__(self, interaction_id: str) -> None:
        super().__init__(
            f"Clarification request {interaction_id} not found",
            metadata={"interaction_id": interaction_id},
        )
        self.interaction_id = interaction_id
