"""
DaveMode Validation Sandbox

Validates generated projects in a remote code-execution sandbox. The
sandbox service is opaque: a sandbox is created, polled until ready within
a bounded wait, loaded with the project files, exercised with install,
test and start commands, and deleted.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import httpx

from davemode.config import Config
from davemode.errors import SandboxError
from davemode.logging import get_logger, log_extra
from davemode.models.domain import ValidationResult

logger = get_logger(__name__)

PROJECT_ROOT = "/project/sandbox"


class ProjectValidator(Protocol):
    def validate_project(self, files: Sequence[Dict[str, Any]]) -> ValidationResult: ...


class SkippedValidator:
    """Used when no sandbox is configured. Nothing is validated, so nothing succeeds."""

    def validate_project(self, files: Sequence[Dict[str, Any]]) -> ValidationResult:
        logger.info("sandbox_validation_skipped", extra=log_extra(files=len(files)))
        return ValidationResult(success=False, errors=[], skipped=True)


def extract_errors(install: Dict[str, Any], test: Optional[Dict[str, Any]], start: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if install.get("exitCode", 0) != 0:
        errors.append(f"Installation failed: {install.get('stderr', '')}")
    if test is not None and test.get("exitCode", 0) != 0:
        errors.append(f"Tests failed: {test.get('stderr', '')}")
    if start.get("exitCode", 0) != 0:
        errors.append(f"Application failed to start: {start.get('stderr', '')}")
    return errors


class RemoteSandboxValidator:
    """
    httpx client for the sandbox service.

    Example:
        validator = RemoteSandboxValidator(config)
        result = validator.validate_project([{"path": "package.json", "content": "{}"}])
    """

    def __init__(
        self,
        config: Config,
        *,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not config.sandbox_url:
            raise SandboxError("DAVEMODE_SANDBOX_URL is not configured", retryable=False)
        self.config = config
        self._client = client
        self._sleep = sleep
        self._clock = clock

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.sandbox_url,
                timeout=30.0,
                headers={"Authorization": f"Bearer {self.config.sandbox_api_key or ''}"},
            )
        return self._client

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = self._get_client().request(method, path, **kwargs)
            resp.raise_for_status()
            return resp.json() if resp.content else {}
        except httpx.HTTPError as exc:
            raise SandboxError(f"Sandbox request {method} {path} failed: {exc}") from exc

    def create_sandbox(self, name: str, template: str = "node") -> str:
        data = self._request("POST", "/sandboxes", json={"name": name, "template": template})
        sandbox_id = data.get("id")
        if not sandbox_id:
            raise SandboxError("Sandbox service returned no id", metadata={"response": data})
        return sandbox_id

    def wait_until_ready(self, sandbox_id: str) -> None:
        """Poll the sandbox status until ready; SandboxError after the configured timeout."""
        deadline = self._clock() + self.config.sandbox_ready_timeout_seconds
        while self._clock() < deadline:
            status = self._request("GET", f"/sandboxes/{sandbox_id}").get("status")
            if status == "ready":
                return
            if status == "failed":
                raise SandboxError(f"Sandbox {sandbox_id} failed to start", retryable=True)
            self._sleep(self.config.sandbox_poll_interval_seconds)
        raise SandboxError(
            f"Sandbox {sandbox_id} was not ready after {self.config.sandbox_ready_timeout_seconds}s",
            metadata={"sandbox_id": sandbox_id},
        )

    def upload_files(self, sandbox_id: str, files: Sequence[Dict[str, Any]]) -> None:
        payload = [
            {"path": f"{PROJECT_ROOT}/{f['path']}", "content": f.get("content", "")}
            for f in files
        ]
        self._request("PUT", f"/sandboxes/{sandbox_id}/files", json={"files": payload})

    def execute(self, sandbox_id: str, command: str) -> Dict[str, Any]:
        data = self._request("POST", f"/sandboxes/{sandbox_id}/exec", json={"command": command})
        return {
            "stdout": data.get("stdout", ""),
            "stderr": data.get("stderr", ""),
            "exitCode": data.get("exitCode", 0),
        }

    def delete_sandbox(self, sandbox_id: str) -> None:
        self._request("DELETE", f"/sandboxes/{sandbox_id}")

    def _discard_sandbox(self, sandbox_id: str) -> None:
        """Best-effort delete; a failure here must not mask the validation outcome."""
        try:
            self.delete_sandbox(sandbox_id)
        except SandboxError as exc:
            logger.warning(
                "sandbox_cleanup_failed",
                extra=log_extra(sandbox_id=sandbox_id, error=str(exc)),
            )

    def validate_project(self, files: Sequence[Dict[str, Any]]) -> ValidationResult:
        sandbox_id = self.create_sandbox("validation")
        try:
            self.wait_until_ready(sandbox_id)
            self.upload_files(sandbox_id, files)
            install = self.execute(sandbox_id, f"cd {PROJECT_ROOT} && npm install")
            test = self.execute(sandbox_id, f"cd {PROJECT_ROOT} && npm test --if-present")
            start = self.execute(
                sandbox_id,
                f"cd {PROJECT_ROOT} && (npm start > /tmp/app.log 2>&1 &) && sleep 5 "
                "&& ps aux | grep 'npm start' | grep -v grep",
            )
        finally:
            self._discard_sandbox(sandbox_id)

        errors = extract_errors(install, test, start)
        result = ValidationResult(success=start["exitCode"] == 0 and install["exitCode"] == 0, errors=errors)
        logger.info(
            "sandbox_validation_finished",
            extra=log_extra(sandbox_id=sandbox_id, success=result.success, errors=len(errors)),
        )
        return result


def get_validator(config: Config) -> ProjectValidator:
    if config.sandbox_enabled:
        return RemoteSandboxValidator(config)
    return SkippedValidator()
