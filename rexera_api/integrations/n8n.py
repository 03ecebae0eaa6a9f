"""
Integration with the n8n workflow orchestrator.

The API triggers n8n executions for payoff workflows, queries and stops
executions, and receives results back through the n8n webhook route.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import Settings, get_settings
from ..primitives import utc_now

logger = structlog.get_logger()

DEFAULT_PAYOFF_WORKFLOW_ID = "payoff-workflow"


class N8nError(Exception):
    """n8n integration failure with a machine-readable code."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


class N8nApiError(Exception):
    """Non-2xx response from the n8n REST API."""

    def __init__(self, message: str, status_code: int, data: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.data = data


class N8nClient:
    """
    Client for the n8n REST API (``{base_url}/api/v1``).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        payoff_workflow_id: Optional[str] = None,
        webhook_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.payoff_workflow_id = payoff_workflow_id
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "N8nClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.n8n_base_url,
            api_key=settings.n8n_api_key,
            payoff_workflow_id=settings.n8n_payoff_workflow_id,
            webhook_url=settings.n8n_webhook_url,
            timeout=settings.n8n_timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        """n8n is enabled only when both the API key and base URL are set."""
        return bool(self.api_key) and bool(self.base_url)

    def _require_enabled(self) -> None:
        if not self.enabled:
            raise N8nError("n8n integration is not enabled", "N8N_DISABLED")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v1",
            timeout=self.timeout,
            headers={
                "Content-Type": "application/json",
                "X-N8N-API-KEY": self.api_key,
            },
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request to the n8n API and return the decoded JSON body."""
        if not self.enabled:
            raise N8nError("n8n is not properly configured", "N8N_NOT_CONFIGURED")

        logger.debug("n8n API request", method=method, endpoint=endpoint)
        try:
            async with self._client() as client:
                response = await client.request(method, endpoint, json=json, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                data = e.response.json()
            except ValueError:
                data = {"message": e.response.text}
            message = data.get("message") if isinstance(data, dict) else None
            raise N8nApiError(
                f"n8n API error: {message or e.response.reason_phrase}",
                e.response.status_code,
                data,
            ) from e
        except httpx.RequestError as e:
            logger.error("n8n API request failed", endpoint=endpoint, error=str(e))
            raise N8nError(
                f"Failed to communicate with n8n: {e}", "N8N_CONNECTION_ERROR"
            ) from e

        if not response.content:
            return {}
        return response.json()

    async def trigger_payoff_workflow(
        self,
        rexera_workflow_id: str,
        workflow_type: str,
        client_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Start the payoff workflow in n8n for a Rexera workflow."""
        self._require_enabled()
        workflow_id = self.payoff_workflow_id or DEFAULT_PAYOFF_WORKFLOW_ID
        payload = {
            "rexeraWorkflowId": rexera_workflow_id,
            "workflowType": workflow_type,
            "clientId": client_id,
            "metadata": metadata or {},
            "webhookUrl": self.webhook_url,
            "timestamp": utc_now().isoformat(),
        }
        execution = await self.request("POST", f"/workflows/{workflow_id}/execute", json=payload)
        logger.info(
            "n8n payoff workflow triggered",
            workflow_id=rexera_workflow_id,
            execution_id=execution.get("id"),
        )
        return execution

    async def get_execution(self, execution_id: str) -> Dict[str, Any]:
        """Fetch an execution and reduce it to its status fields."""
        self._require_enabled()
        execution = await self.request("GET", f"/executions/{execution_id}")
        result_data = (execution.get("data") or {}).get("resultData") or {}
        return {
            "id": execution.get("id"),
            "status": execution.get("status"),
            "finished": execution.get("finished"),
            "startedAt": execution.get("startedAt"),
            "stoppedAt": execution.get("stoppedAt"),
            "error": result_data.get("error"),
        }

    async def cancel_execution(self, execution_id: str) -> bool:
        self._require_enabled()
        await self.request("POST", f"/executions/{execution_id}/stop")
        logger.info("n8n execution canceled", execution_id=execution_id)
        return True

    async def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        self._require_enabled()
        return await self.request("GET", f"/workflows/{workflow_id}")

    async def test_connection(self) -> bool:
        """Return True when the n8n API answers a trivial request."""
        if not self.enabled:
            return False
        try:
            await self.request("GET", "/workflows", params={"limit": 1})
        except (N8nError, N8nApiError) as e:
            logger.warning("n8n connection test failed", error=str(e))
            return False
        return True

    def config_status(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "baseUrl": self.base_url or None,
            "hasApiKey": bool(self.api_key),
            "hasWebhookUrl": bool(self.webhook_url),
            "payoffWorkflowId": self.payoff_workflow_id,
        }


def get_n8n_client() -> N8nClient:
    """FastAPI dependency returning a client built from current settings."""
    return N8nClient.from_settings()
