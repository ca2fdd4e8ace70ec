"""
Dispatcher: routes a call, validates its payload, negotiates credentials,
runs the bound executor and the optional resolver.

``invoke`` never raises. Every pipeline error is turned into an error
``ExecutionResult`` whose body is the user-facing diagnostic.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from seitrace_mcp.auth import CredentialStore, SecurityNegotiator, TokenCache
from seitrace_mcp.config import SeitraceConfig, default_config
from seitrace_mcp.errors import ConfigurationError, ExecutorError, InputError, SchemaValidationError, SeitraceMcpError
from seitrace_mcp.executors import Executor, ExecutionContext, get_executor
from seitrace_mcp.metrics import default_metrics
from seitrace_mcp.resolvers import Resolver, get_resolver
from seitrace_mcp.router import Router
from seitrace_mcp.schema import Validator, compile_schema
from seitrace_mcp.snippets import GENERATORS
from seitrace_mcp.types import EndpointDescription, ExecutionResult, OutboundRequest, Topic

logger = logging.getLogger(__name__)

INVOKE_TOOL_NAME = "invoke_resource_action"
PAYLOAD_ERROR = (
    f"Invalid or missing 'payload' for tool '{INVOKE_TOOL_NAME}'. Provide an object matching the action schema."
)

ActionKey = Tuple[str, str]


class Dispatcher:
    """Orchestrates one action invocation end to end."""

    def __init__(
        self,
        router: Router,
        topics: Iterable[Topic],
        config: SeitraceConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
        negotiator: Optional[SecurityNegotiator] = None,
        token_cache: Optional[TokenCache] = None,
        credentials: Optional[CredentialStore] = None,
    ) -> None:
        self.config = config or default_config
        self.router = router
        self.topics: Dict[str, Topic] = {topic.key: topic for topic in topics}
        self.negotiator = negotiator or SecurityNegotiator(credentials, token_cache, config=self.config)
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

        self._executors: Dict[ActionKey, Executor] = {}
        self._resolvers: Dict[ActionKey, Optional[Resolver]] = {}
        self._validators: Dict[ActionKey, Validator] = {}
        for resource in router.resources():
            for action_name, endpoint in resource.actions.items():
                key = (resource.name, action_name)
                self._executors[key] = get_executor(endpoint.executor)
                self._resolvers[key] = get_resolver(endpoint.resolver)
                self._validators[key] = compile_schema(endpoint.input_schema, name=f"{resource.name}.{action_name}")
                if endpoint.snippet_generator is not None and endpoint.snippet_generator not in GENERATORS:
                    raise ConfigurationError(
                        f"Unknown snippet generator '{endpoint.snippet_generator}' for {resource.name}.{action_name}"
                    )

    @classmethod
    def from_catalog(cls, config: SeitraceConfig | None = None, **kwargs: Any) -> "Dispatcher":
        """Build a dispatcher over the bundled catalog."""
        from seitrace_mcp.catalog import build_topics

        config = config or default_config
        topics = build_topics(config)
        return cls(Router.from_topics(topics), topics, config, **kwargs)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout, follow_redirects=True)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def list_resources(self) -> Dict[str, List[str]]:
        return {"resources": self.router.resource_names()}

    def describe_resources(self) -> Dict[str, List[Dict[str, str]]]:
        """Sorted ``{"name", "description"}`` entries; uncurated resources list their actions."""
        described = []
        for resource in self.router.resources():
            description = resource.description
            if not description:
                names = sorted(resource.actions)
                preview = ", ".join(names[:6])
                description = f"Actions: {preview}{', etc' if len(names) > 6 else ''}."
            described.append({"name": resource.name, "description": description})
        return {"resources": described}

    def list_resource_actions(self, resource: str) -> Dict[str, Any]:
        found = self.router.find_resource(resource)
        actions = [
            {"name": name, "description": (found.actions[name].description or "").strip()}
            for name in sorted(found.actions)
        ]
        return {"resource": resource, "actions": actions}

    def get_resource_action_schema(self, resource: str, action: str) -> Dict[str, Any]:
        endpoint = self.router.find_action(resource, action)
        return {"resource": resource, "action": action, "schema": endpoint.input_schema}

    def _base_url(self, topic: Topic, payload: Dict[str, Any]) -> str:
        if not topic.chain_routed:
            return topic.base_url
        chain = payload.get("chain") or self.config.default_chain
        base_url = self.config.gateway_urls.get(chain)
        if not base_url:
            supported = ", ".join(self.config.gateway_urls)
            raise ExecutorError(f"Invalid chain '{chain}'. Supported chains: {supported}")
        return base_url

    async def invoke(self, resource: str, action: str, payload: Any) -> ExecutionResult:
        """Run one action; errors come back as ``ExecutionResult.is_error``."""
        tool_name = f"{resource}.{action}"
        try:
            return await self._invoke(resource, action, payload, tool_name)
        except SeitraceMcpError as exc:
            return ExecutionResult.error(exc.message, exc.kind)
        except Exception:
            logger.exception("Unexpected error while invoking %s", tool_name, extra={"tool": tool_name})
            return ExecutionResult.error(f"Unexpected error while invoking '{tool_name}'.", "executor")

    async def invoke_text(self, resource: str, action: str, payload: Any) -> str:
        result = await self.invoke(resource, action, payload)
        return result.render()

    async def _invoke(self, resource: str, action: str, payload: Any, tool_name: str) -> ExecutionResult:
        endpoint = self.router.find_action(resource, action)
        if not isinstance(payload, dict):
            raise InputError(PAYLOAD_ERROR)

        key = (resource, action)
        try:
            validated = self._validators[key].validate(payload)
        except SchemaValidationError as exc:
            return ExecutionResult.error(f"Invalid arguments for tool '{tool_name}': {exc.message}", exc.kind)

        found = self.router.find_resource(resource)
        topic = self.topics.get(found.topic) or Topic(key=found.topic)
        base_url = self._base_url(topic, validated)

        if endpoint.static_response is not None:
            return ExecutionResult(body=json.dumps(endpoint.static_response))

        client = await self._get_client()
        request = OutboundRequest()
        await self.negotiator.apply(
            endpoint.security_requirements,
            topic.security_schemes,
            request,
            client,
            tool_name=tool_name,
        )

        executor = self._executors[key]
        context = ExecutionContext(
            tool_name=tool_name,
            endpoint=endpoint,
            payload=validated,
            client=client,
            config=self.config,
            security_schemes=topic.security_schemes,
            base_url=base_url,
            request=request,
            action_name=action,
        )
        try:
            result = await executor.execute(context)
        except SeitraceMcpError:
            default_metrics.record_executor(executor.name, success=False)
            raise
        default_metrics.record_executor(executor.name, success=not result.is_error)

        return self._resolve(key, endpoint, result, validated, tool_name)

    def _resolve(
        self,
        key: ActionKey,
        endpoint: EndpointDescription,
        result: ExecutionResult,
        payload: Dict[str, Any],
        tool_name: str,
    ) -> ExecutionResult:
        resolver = self._resolvers.get(key)
        if resolver is None or result.is_error:
            return result
        try:
            return resolver(result, payload)
        except Exception as exc:
            logger.warning(
                "Resolver %s failed for tool=%s, returning unresolved result: %s",
                endpoint.resolver,
                tool_name,
                exc,
                extra={"tool": tool_name, "error": str(exc)},
            )
            default_metrics.record_resolver_fallback(endpoint.resolver or "")
            return result


_default_dispatcher: Optional[Dispatcher] = None


def get_default_dispatcher() -> Dispatcher:
    """Return the process-wide dispatcher, building it on first use."""
    global _default_dispatcher
    if _default_dispatcher is None:
        _default_dispatcher = Dispatcher.from_catalog(default_config)
    return _default_dispatcher


async def close_default_dispatcher() -> None:
    if _default_dispatcher is not None:
        await _default_dispatcher.aclose()
