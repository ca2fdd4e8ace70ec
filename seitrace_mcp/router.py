"""Resource and action lookup over the built catalog."""

from __future__ import annotations

from typing import Dict, Iterable, List

from seitrace_mcp.errors import ConfigurationError, RoutingError
from seitrace_mcp.types import EndpointDescription, Resource, Topic


class Router:
    """Exact, case-sensitive lookup of resources and their actions."""

    def __init__(self, resources: Iterable[Resource]) -> None:
        self._resources: Dict[str, Resource] = {}
        for resource in resources:
            if resource.name in self._resources:
                raise ConfigurationError(f"Duplicate resource '{resource.name}'")
            self._resources[resource.name] = resource

    @classmethod
    def from_topics(cls, topics: Iterable[Topic]) -> "Router":
        return cls(resource for topic in topics for resource in topic.resources.values())

    def resource_names(self) -> List[str]:
        return sorted(self._resources)

    def resources(self) -> List[Resource]:
        return [self._resources[name] for name in self.resource_names()]

    def find_resource(self, name: str) -> Resource:
        resource = self._resources.get(name) if isinstance(name, str) else None
        if resource is None:
            available = self.resource_names()
            raise RoutingError(
                f"Unknown or missing resource '{name}'. Available resources: {', '.join(available)}",
                alternatives=available,
            )
        return resource

    def find_action(self, resource_name: str, action_name: str) -> EndpointDescription:
        resource = self.find_resource(resource_name)
        endpoint = resource.actions.get(action_name) if isinstance(action_name, str) else None
        if endpoint is None:
            available = sorted(resource.actions)
            raise RoutingError(
                f"Unknown action '{action_name}' for resource '{resource_name}'. "
                f"Available actions: {', '.join(available)}",
                alternatives=available,
            )
        return endpoint

    def topic_of(self, resource_name: str) -> str:
        return self.find_resource(resource_name).topic
