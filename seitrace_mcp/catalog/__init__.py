"""
Bundled endpoint catalog.

Each topic module declares its endpoints keyed ``<Controller>-<actionCamel>``;
the key is turned into a resource name ``<topic>_<controller>`` and an action
name in snake case.
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional

from seitrace_mcp.config import SeitraceConfig, default_config
from seitrace_mcp.errors import ConfigurationError
from seitrace_mcp.types import EndpointDescription, Resource, SecurityScheme, Topic

_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_UPPER_WORD = re.compile(r"([A-Z])([A-Z][a-z])")
_WHITESPACE = re.compile(r"\s+")


def camel_to_snake(name: str) -> str:
    """``getErc20TokenInfo`` -> ``get_erc20_token_info``."""
    name = _LOWER_UPPER.sub(r"\1_\2", name)
    name = _UPPER_WORD.sub(r"\1_\2", name)
    name = _WHITESPACE.sub("_", name)
    return name.lower()


def controller_to_resource(controller: str) -> str:
    stripped = re.sub(r"Controller$", "", controller).replace("Token", "")
    return camel_to_snake(stripped)


def build_topic(
    key: str,
    endpoints: Mapping[str, EndpointDescription],
    *,
    base_url: str = "",
    chain_routed: bool = False,
    security_schemes: Optional[Mapping[str, SecurityScheme]] = None,
    descriptions: Optional[Mapping[str, str]] = None,
) -> Topic:
    """Group ``endpoints`` into resources under the topic ``key``."""
    descriptions = descriptions or {}
    resources: Dict[str, Resource] = {}
    for full_name, endpoint in endpoints.items():
        controller, _, action_camel = full_name.partition("-")
        suffix = controller_to_resource(controller)
        resource_name = f"{key}_{suffix}" if suffix else key
        action_name = camel_to_snake(action_camel)

        resource = resources.get(resource_name)
        if resource is None:
            resource = Resource(
                name=resource_name,
                topic=key,
                description=descriptions.get(resource_name, ""),
            )
            resources[resource_name] = resource
        if action_name in resource.actions:
            raise ConfigurationError(f"Duplicate action '{action_name}' for resource '{resource_name}'")
        resource.actions[action_name] = endpoint

    return Topic(
        key=key,
        base_url=base_url,
        chain_routed=chain_routed,
        security_schemes=dict(security_schemes or {}),
        resources=resources,
    )


def build_topics(config: Optional[SeitraceConfig] = None) -> List[Topic]:
    """Build every bundled topic against ``config``."""
    from seitrace_mcp.catalog import general, insights, smart_contract

    config = config or default_config
    return [insights.build(config), general.build(config), smart_contract.build(config)]


__all__ = ["build_topic", "build_topics", "camel_to_snake", "controller_to_resource"]
