"""
Illustrative client code for catalog actions.

Each action names a generator (``oas``, ``general``, ``rpc`` or ``ethers``)
or opts out with ``None``. Generators build a ``SnippetRequest`` that is then
rendered as curl, Python (httpx), fetch or a raw HTTP message.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional
from urllib.parse import quote, urlencode, urlsplit

from seitrace_mcp.executors.gateway import ROUTING_PARAMETERS
from seitrace_mcp.executors.rpc import is_cosmos_action
from seitrace_mcp.types import EndpointDescription, Topic

if TYPE_CHECKING:
    from seitrace_mcp.dispatcher import Dispatcher

SUPPORTED_LANGUAGES = ("http", "javascript", "node", "python", "shell")
SNIPPET_NOT_SUPPORTED = "SNIPPET_GENERATION_NOT_SUPPORTED"
API_KEY_PLACEHOLDER = "<should-insert-seitrace-api-key-here>"

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


@dataclass(slots=True)
class SnippetRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=lambda: {"accept": "application/json"})
    body: Any = None


@dataclass(slots=True)
class SnippetContext:
    endpoint: EndpointDescription
    action: str
    topic: Topic
    payload: Dict[str, Any]
    dispatcher: "Dispatcher"


def _with_query(url: str, query: Dict[str, Any]) -> str:
    if not query:
        return url
    return f"{url}?{urlencode(query, doseq=True, safe='<>')}"


def _query_value(value: Any) -> Any:
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _oas_request(ctx: SnippetContext) -> SnippetRequest:
    endpoint, payload = ctx.endpoint, ctx.payload
    required = set((endpoint.input_schema or {}).get("required") or [])

    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in payload:
            return quote(str(payload[name]), safe="")
        return f"<{name}>"

    path = _PLACEHOLDER.sub(substitute, endpoint.path_template)
    base = "" if path.startswith(("http://", "https://")) else ctx.topic.base_url.rstrip("/")

    query: Dict[str, Any] = {}
    headers = {"accept": "application/json"}
    for param in endpoint.execution_parameters:
        if param.location not in ("query", "header"):
            continue
        if param.name in payload:
            value = payload[param.name]
        elif param.name in required:
            value = f"<{param.name}>"
        else:
            continue
        if param.location == "query":
            query[param.name] = _query_value(value)
        else:
            headers[param.name] = str(value)

    for requirement in endpoint.security_requirements[:1]:
        for scheme_name, _scopes in requirement.schemes:
            scheme = ctx.topic.security_schemes.get(scheme_name)
            if scheme is not None and scheme.kind == "apiKey" and scheme.location == "header" and scheme.parameter_name:
                headers[scheme.parameter_name] = API_KEY_PLACEHOLDER

    body = None
    if endpoint.request_body_content_type:
        headers["content-type"] = endpoint.request_body_content_type
        routed = {param.name for param in endpoint.execution_parameters}
        body = payload.get("requestBody", {k: v for k, v in payload.items() if k not in routed})
    return SnippetRequest(endpoint.method.upper(), _with_query(f"{base}{path}", query), headers, body)


def _general_request(ctx: SnippetContext) -> SnippetRequest:
    endpoint, payload = ctx.endpoint, ctx.payload
    config = ctx.dispatcher.config
    path = endpoint.path_template or "/"
    if path.startswith(("http://", "https://")):
        url = path
    elif endpoint.executor == "gateway":
        chain_id = payload.get("chain_id")
        base = payload.get("endpoint") or (config.gateway_urls.get(chain_id) if chain_id else None)
        url = f"{(base or '<GATEWAY_ENDPOINT>').rstrip('/')}/{path.lstrip('/')}"
    else:
        url = f"{(ctx.topic.base_url or '<BASE_URL>').rstrip('/')}/{path.lstrip('/')}"

    query: Dict[str, Any] = {}
    for param in endpoint.parameters_in("query"):
        if param.name in ROUTING_PARAMETERS:
            continue
        value = payload.get(param.name)
        if value is not None:
            query[param.name] = [_query_value(v) for v in value] if isinstance(value, list) else _query_value(value)
    return SnippetRequest("GET", _with_query(url, query))


def _rpc_request(ctx: SnippetContext) -> SnippetRequest:
    payload = ctx.payload
    config = ctx.dispatcher.config
    cosmos = is_cosmos_action(ctx.action, ctx.endpoint.name)
    url = payload.get("endpoint")
    if not url:
        chain = payload.get("chain_id") or config.default_chain
        family = (config.connections.get(chain) or {}).get("cosmos" if cosmos else "evm") or {}
        urls = family.get("rpc") or []
        url = urls[0] if urls else "<RPC_ENDPOINT>"
    method = payload.get("rpc_method") or ("status" if cosmos else "eth_blockNumber")
    params = payload.get("params") if isinstance(payload.get("params"), list) else []
    return SnippetRequest(
        "POST",
        url,
        {"content-type": "application/json", "accept": "application/json"},
        {"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
    )


def _render_shell(request: SnippetRequest) -> str:
    lines = ["curl -s" + ("" if request.method == "GET" else f" -X {request.method}"), f"  '{request.url}'"]
    lines.extend(f"  -H '{name}: {value}'" for name, value in request.headers.items())
    if request.body is not None:
        lines.append(f"  --data '{json.dumps(request.body)}'")
    return " \\\n".join(lines)


def _render_python(request: SnippetRequest) -> str:
    lines = [
        "import httpx",
        "",
        "response = httpx.request(",
        f"    {request.method!r},",
        f"    {request.url!r},",
        f"    headers={request.headers!r},",
    ]
    if request.body is not None:
        lines.append(f"    json={request.body!r},")
    lines.extend([")", "response.raise_for_status()", "print(response.text)"])
    return "\n".join(lines)


def _render_fetch(request: SnippetRequest) -> str:
    options = [f"  method: '{request.method}'", f"  headers: {json.dumps(request.headers)}"]
    if request.body is not None:
        options.append(f"  body: JSON.stringify({json.dumps(request.body)})")
    return (
        f"const url = '{request.url}';\n"
        "const options = {\n" + ",\n".join(options) + "\n};\n\n"
        "fetch(url, options)\n"
        "  .then(res => res.json())\n"
        "  .then(json => console.log(json))\n"
        "  .catch(err => console.error(err));"
    )


def _render_http(request: SnippetRequest) -> str:
    parts = urlsplit(request.url)
    target = parts.path or "/"
    if parts.query:
        target = f"{target}?{parts.query}"
    lines = [f"{request.method} {target} HTTP/1.1"]
    if parts.netloc:
        lines.append(f"Host: {parts.netloc}")
    lines.extend(f"{name}: {value}" for name, value in request.headers.items())
    text = "\n".join(lines) + "\n"
    if request.body is not None:
        text += "\n" + json.dumps(request.body) + "\n"
    return text


RENDERERS: Dict[str, Callable[[SnippetRequest], str]] = {
    "http": _render_http,
    "javascript": _render_fetch,
    "node": _render_fetch,
    "python": _render_python,
    "shell": _render_shell,
}


def _sample_multicall(ctx: SnippetContext) -> Dict[str, Any]:
    if ctx.payload:
        return ctx.payload
    return {
        "abi": [
            {
                "inputs": [],
                "name": "totalSupply",
                "outputs": [{"name": "", "type": "uint256"}],
                "stateMutability": "view",
                "type": "function",
            }
        ],
        "contract_address": "0x<CONTRACT_ADDRESS>",
        "payload": [{"methodName": "totalSupply", "arguments": []}],
        "chain_id": ctx.dispatcher.config.default_chain,
    }


def _ethers_snippet(ctx: SnippetContext, language: str) -> str:
    config = ctx.dispatcher.config
    sample = _sample_multicall(ctx)
    chain_id = sample.get("chain_id") or config.default_chain
    rpc_map = json.dumps(config.evm_rpc_urls, indent=2)
    multicall = config.multicall3_address(chain_id)

    if language in ("javascript", "node"):
        return (
            "// Contract state query via Multicall3 aggregate3\n"
            "import { ethers } from 'ethers';\n\n"
            f"const CHAIN_RPC_MAP = {rpc_map};\n"
            f"const MULTICALL3_ADDRESS = '{multicall}';\n"
            "const MULTICALL3_ABI = [\n"
            "  'function aggregate3((address target, bool allowFailure, bytes callData)[] calls) "
            "payable returns ((bool success, bytes returnData)[] returnData)',\n"
            "];\n\n"
            f"const config = {json.dumps(sample, indent=2)};\n\n"
            "async function queryContractState() {\n"
            "  const provider = new ethers.JsonRpcProvider(CHAIN_RPC_MAP[config.chain_id]);\n"
            "  const iface = new ethers.Interface(config.abi);\n"
            "  const calls = config.payload.map(call => ({\n"
            "    target: config.contract_address,\n"
            "    allowFailure: true,\n"
            "    callData: iface.encodeFunctionData(call.methodName, call.arguments || []),\n"
            "  }));\n"
            "  const multicall = new ethers.Contract(MULTICALL3_ADDRESS, MULTICALL3_ABI, provider);\n"
            "  const results = await multicall.aggregate3.staticCall(calls);\n"
            "  return results.map((result, index) => {\n"
            "    const call = config.payload[index];\n"
            "    if (!result.success) {\n"
            "      return { success: false, method: call.methodName, error: 'execution reverted' };\n"
            "    }\n"
            "    const decoded = iface.decodeFunctionResult(call.methodName, result.returnData);\n"
            "    return { success: true, method: call.methodName, result: decoded.toArray().map(String) };\n"
            "  });\n"
            "}\n\n"
            "queryContractState().then(console.log).catch(console.error);"
        )

    if language == "python":
        return (
            "# Contract state query via Multicall3 aggregate3\n"
            "import json\n\n"
            "import httpx\n"
            "from eth_abi import decode, encode\n"
            "from eth_utils import function_signature_to_4byte_selector, to_checksum_address\n\n"
            f"CHAIN_RPC_MAP = {json.dumps(config.evm_rpc_urls, indent=4)}\n"
            f"MULTICALL3_ADDRESS = {multicall!r}\n"
            f"config = json.loads({json.dumps(json.dumps(sample))})\n\n\n"
            "def signature(entry):\n"
            "    return f\"{entry['name']}({','.join(i['type'] for i in entry['inputs'])})\"\n\n\n"
            "functions = {entry['name']: entry for entry in config['abi'] if entry.get('type') == 'function'}\n"
            "calls = []\n"
            "for call in config['payload']:\n"
            "    entry = functions[call['methodName']]\n"
            "    data = function_signature_to_4byte_selector(signature(entry)) + encode(\n"
            "        [i['type'] for i in entry['inputs']], call.get('arguments', [])\n"
            "    )\n"
            "    calls.append((to_checksum_address(config['contract_address']), True, data))\n\n"
            "calldata = function_signature_to_4byte_selector('aggregate3((address,bool,bytes)[])') + encode(\n"
            "    ['(address,bool,bytes)[]'], [calls]\n"
            ")\n"
            "response = httpx.post(\n"
            "    CHAIN_RPC_MAP[config['chain_id']],\n"
            "    json={\n"
            "        'jsonrpc': '2.0',\n"
            "        'id': 1,\n"
            "        'method': 'eth_call',\n"
            "        'params': [{'to': MULTICALL3_ADDRESS, 'data': '0x' + calldata.hex()}, 'latest'],\n"
            "    },\n"
            ")\n"
            "(results,) = decode(['(bool,bytes)[]'], bytes.fromhex(response.json()['result'][2:]))\n"
            "for call, (success, data) in zip(config['payload'], results):\n"
            "    entry = functions[call['methodName']]\n"
            "    value = decode([o['type'] for o in entry['outputs']], data) if success else None\n"
            "    print(call['methodName'], success, value)"
        )

    comment = "#" if language == "shell" else "//"
    body = "\n".join(f"{comment} {line}" for line in json.dumps(sample, indent=2).splitlines())
    return (
        f"{comment} Contract state queries need ABI encoding; use the python or node snippet.\n"
        f"{comment} Config:\n{body}"
    )


def _rendered(build: Callable[[SnippetContext], SnippetRequest]) -> Callable[[SnippetContext, str], str]:
    def generate(ctx: SnippetContext, language: str) -> str:
        return RENDERERS[language](build(ctx))

    return generate


GENERATORS: Dict[str, Callable[[SnippetContext, str], str]] = {
    "oas": _rendered(_oas_request),
    "general": _rendered(_general_request),
    "rpc": _rendered(_rpc_request),
    "ethers": _ethers_snippet,
}


def generate_snippet(
    dispatcher: "Dispatcher",
    resource: str,
    action: str,
    language: Optional[str],
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Return ``{"resource", "action", "language", "snippet"}`` or an ``error`` dict.

    Unknown resources and actions raise ``RoutingError``.
    """
    endpoint = dispatcher.router.find_action(resource, action)
    if endpoint.snippet_generator is None:
        return {
            "error": SNIPPET_NOT_SUPPORTED,
            "message": f"Snippet generation is not supported for '{resource}.{action}'.",
            "resource": resource,
            "action": action,
        }
    if not isinstance(language, str) or language not in SUPPORTED_LANGUAGES:
        return {
            "error": (
                f"Unsupported or missing language '{language}'. "
                f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        }

    topic_key = dispatcher.router.topic_of(resource)
    ctx = SnippetContext(
        endpoint=endpoint,
        action=action,
        topic=dispatcher.topics.get(topic_key) or Topic(key=topic_key),
        payload=dict(payload) if isinstance(payload, dict) else {},
        dispatcher=dispatcher,
    )
    snippet = GENERATORS[endpoint.snippet_generator](ctx, language)
    return {"resource": resource, "action": action, "language": language, "snippet": snippet}
