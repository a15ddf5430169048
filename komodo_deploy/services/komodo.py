"""Komodo control-plane client.

Komodo exposes three RPC endpoints, ``/read``, ``/write`` and ``/execute``,
each taking ``{"type": <request kind>, "params": {...}}``. This module wraps
them and adds one typed helper per request kind the deployer uses. There
are no retries here; callers decide their own poll and retry policy.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from komodo_deploy.core.exceptions import ApiError
from komodo_deploy.services.request_logging import RequestLogger
from komodo_deploy.utils.logging import get_logger

logger = get_logger(__name__)

Resource = dict[str, Any]


def resource_id(resource: Resource | None) -> str | None:
    """Identifier of a resource descriptor, whichever shape it came in."""
    if not resource:
        return None
    if resource.get("id"):
        return resource["id"]
    raw = resource.get("_id")
    if isinstance(raw, dict):
        return raw.get("$oid")
    return raw


def find_by_name(resources: list[Resource], name: str) -> Resource | None:
    """Exact name match, first hit wins."""
    return next((r for r in resources if r.get("name") == name), None)


class ControlPlane(ABC):
    """Call contract the deployer relies on.

    Subclasses supply ``read``, ``write`` and ``execute``; the typed helpers
    are shared.
    """

    @abstractmethod
    async def read(self, kind: str, params: dict[str, Any] | None = None) -> Any:
        """Run a read request (list resources)."""
        pass

    @abstractmethod
    async def write(self, kind: str, params: dict[str, Any]) -> Any:
        """Run a write request (create, update or delete a resource)."""
        pass

    @abstractmethod
    async def execute(self, kind: str, params: dict[str, Any]) -> Any:
        """Trigger an asynchronous action. Returns the update, with its id."""
        pass

    @asynccontextmanager
    async def request_logging(
        self, request_logger: RequestLogger | None = None
    ) -> AsyncIterator[RequestLogger | None]:
        """Scope in which requests are logged. No-op unless overridden."""
        yield request_logger

    # Reads

    async def list_stacks(self) -> list[Resource]:
        return await self.read("ListStacks", {})

    async def list_builders(self) -> list[Resource]:
        return await self.read("ListBuilders", {})

    async def list_builds(self) -> list[Resource]:
        return await self.read("ListBuilds", {})

    async def list_deployments(self) -> list[Resource]:
        return await self.read("ListDeployments", {})

    # Writes

    async def create_builder(self, name: str, config: dict[str, Any]) -> Resource:
        return await self.write("CreateBuilder", {"name": name, "config": config})

    async def create_build(self, name: str, config: dict[str, Any]) -> Resource:
        return await self.write("CreateBuild", {"name": name, "config": config})

    async def update_build(self, build_id: str, config: dict[str, Any]) -> Resource:
        return await self.write("UpdateBuild", {"id": build_id, "config": config})

    async def create_deployment(self, name: str, config: dict[str, Any]) -> Resource:
        return await self.write("CreateDeployment", {"name": name, "config": config})

    async def update_deployment(
        self, deployment_id: str, config: dict[str, Any]
    ) -> Resource:
        return await self.write(
            "UpdateDeployment", {"id": deployment_id, "config": config}
        )

    async def create_stack(self, name: str, config: dict[str, Any]) -> Resource:
        return await self.write("CreateStack", {"name": name, "config": config})

    async def delete_stack(self, stack_id: str) -> Resource:
        return await self.write("DeleteStack", {"id": stack_id})

    # Executions

    async def run_build(self, build: str) -> Resource:
        return await self.execute("RunBuild", {"build": build})

    async def deploy(self, deployment: str) -> Resource:
        return await self.execute("Deploy", {"deployment": deployment})

    async def stop_deployment(self, deployment: str) -> Resource:
        return await self.execute("StopDeployment", {"deployment": deployment})

    async def remove_deployment(self, deployment: str) -> Resource:
        return await self.execute("RemoveDeployment", {"deployment": deployment})

    async def pull_repo(self, repo: str) -> Resource:
        return await self.execute("PullRepo", {"repo": repo})

    async def deploy_stack(self, stack: str) -> Resource:
        return await self.execute("DeployStack", {"stack": stack})


class KomodoClient(ControlPlane):
    """Async HTTP client for the Komodo core API, authenticated by API key."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Content-Type": "application/json",
            "X-Api-Key": api_key,
            "X-Api-Secret": api_secret,
        }

    async def __aenter__(self) -> "KomodoClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @asynccontextmanager
    async def request_logging(
        self, request_logger: RequestLogger | None = None
    ) -> AsyncIterator[RequestLogger]:
        """Log every request made inside the block.

        The client's previous event hooks are restored on exit.
        """
        hooks = request_logger or RequestLogger()
        previous = {name: list(funcs) for name, funcs in self._http.event_hooks.items()}
        self._http.event_hooks = {
            "request": [*previous.get("request", []), hooks.on_request],
            "response": [*previous.get("response", []), hooks.on_response],
        }
        try:
            yield hooks
        finally:
            self._http.event_hooks = previous

    async def read(self, kind: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("read", kind, params or {})

    async def write(self, kind: str, params: dict[str, Any]) -> Any:
        return await self._request("write", kind, params)

    async def execute(self, kind: str, params: dict[str, Any]) -> Any:
        return await self._request("execute", kind, params)

    async def _request(self, endpoint: str, kind: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{endpoint}"
        logger.debug("komodo.request", endpoint=endpoint, kind=kind)

        try:
            response = await self._http.post(
                url,
                json={"type": kind, "params": params},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise ApiError(f"{kind} request failed: {e}", kind=kind) from e

        if response.is_error:
            body = self._decode(response)
            raise ApiError(
                f"{kind} failed with status {response.status_code}: {self._error_message(body)}",
                status=response.status_code,
                body=body,
                kind=kind,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            # Success status with a non-JSON body, usually a proxy page
            raise ApiError(
                f"{kind} returned a non-JSON response: {response.text[:200]}",
                status=response.status_code,
                body=response.text,
                kind=kind,
            ) from e

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(body: Any) -> str:
        # Komodo serializes errors as {"error": ..., "trace": [...]}
        if isinstance(body, dict):
            return str(body.get("error") or body.get("message") or body)
        return str(body)[:200] if body else "no response body"
