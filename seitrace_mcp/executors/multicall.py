"""
Contract state reads batched through Multicall3 ``aggregate3``.

Every call is sent with ``allowFailure=true`` so a reverting call is reported
on its own without failing the batch. A leading ``getBlockNumber()`` call on
the Multicall3 contract records the block the batch executed against.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError, ParseError
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from seitrace_mcp.errors import ExecutorError, NetworkError
from seitrace_mcp.executors.base import ExecutionContext, Executor, merged_headers, send
from seitrace_mcp.types import ExecutionResult

logger = logging.getLogger(__name__)

AGGREGATE3_SELECTOR = function_signature_to_4byte_selector("aggregate3((address,bool,bytes)[])")
GET_BLOCK_NUMBER_SELECTOR = function_signature_to_4byte_selector("getBlockNumber()")
ERROR_STRING_SELECTOR = function_signature_to_4byte_selector("Error(string)")
PANIC_SELECTOR = function_signature_to_4byte_selector("Panic(uint256)")


def canonical_type(param: Dict[str, Any]) -> str:
    """Return the ABI type string, expanding tuples into ``(a,b)[]`` form."""
    abi_type = str(param.get("type", "")).strip()
    if abi_type.startswith("tuple"):
        inner = ",".join(canonical_type(component) for component in param.get("components") or [])
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def function_signature(entry: Dict[str, Any]) -> str:
    inputs = entry.get("inputs") or []
    return f"{entry.get('name')}({','.join(canonical_type(item) for item in inputs)})"


def find_function(abi: Sequence[Any], method_name: str, arg_count: int) -> Dict[str, Any]:
    """Resolve a method by name, or by full signature when it contains ``(``."""
    functions = [
        entry
        for entry in abi
        if isinstance(entry, dict) and entry.get("type", "function") == "function" and entry.get("name")
    ]
    if "(" in method_name:
        wanted = method_name.replace(" ", "")
        for entry in functions:
            if function_signature(entry) == wanted:
                return entry
        raise ValueError(f"no function with signature {method_name} in ABI")

    candidates = [entry for entry in functions if entry["name"] == method_name]
    if not candidates:
        raise ValueError(f"function '{method_name}' not found in ABI")
    if len(candidates) == 1:
        return candidates[0]
    for entry in candidates:
        if len(entry.get("inputs") or []) == arg_count:
            return entry
    raise ValueError(f"no overload of '{method_name}' takes {arg_count} argument(s)")


def cast_single(arg: Any, abi_type: str) -> Any:
    """Cast a single JSON value to its Solidity ABI type."""
    if abi_type == "bool":
        if isinstance(arg, bool):
            return arg
        if isinstance(arg, str):
            return arg.lower() in ("true", "1", "yes")
        return bool(arg)

    if abi_type.startswith("uint") or abi_type.startswith("int"):
        if isinstance(arg, str) and arg.lower().startswith("0x"):
            return int(arg, 16)
        return int(arg)

    if abi_type == "address":
        return to_checksum_address(str(arg))

    if abi_type == "string":
        return str(arg)

    if abi_type.startswith("bytes"):
        if isinstance(arg, (bytes, bytearray)):
            return bytes(arg)
        text = str(arg)
        if text.startswith("0x"):
            return bytes.fromhex(text[2:])
        return text.encode("utf-8")

    return arg


def cast_args(args: Sequence[Any], abi_inputs: Sequence[Dict[str, Any]]) -> List[Any]:
    if len(args) != len(abi_inputs):
        raise ValueError(f"argument count mismatch: got {len(args)}, expected {len(abi_inputs)}")
    return [_cast_value(arg, item) for arg, item in zip(args, abi_inputs)]


def _cast_value(arg: Any, param: Dict[str, Any]) -> Any:
    abi_type = str(param.get("type", "")).strip()
    components = param.get("components")

    if abi_type.endswith("]"):
        element = {"type": abi_type[: abi_type.rindex("[")]}
        if components:
            element["components"] = components
        if not isinstance(arg, (list, tuple)):
            raise TypeError(f"expected list for {abi_type}, got {type(arg).__name__}")
        return [_cast_value(item, element) for item in arg]

    if abi_type == "tuple":
        components = components or []
        if isinstance(arg, dict):
            ordered = [arg.get(c.get("name"), arg.get(str(i))) for i, c in enumerate(components)]
            return tuple(cast_args(ordered, components))
        if isinstance(arg, (list, tuple)):
            return tuple(cast_args(list(arg), components))
        raise TypeError(f"expected object or list for tuple, got {type(arg).__name__}")

    return cast_single(arg, abi_type)


def encode_call(entry: Dict[str, Any], args: Sequence[Any]) -> bytes:
    inputs = entry.get("inputs") or []
    selector = function_signature_to_4byte_selector(function_signature(entry))
    return selector + encode([canonical_type(item) for item in inputs], cast_args(args, inputs))


def decode_outputs(entry: Dict[str, Any], data: bytes) -> Any:
    outputs = entry.get("outputs") or []
    if not outputs:
        return None
    values = decode([canonical_type(item) for item in outputs], data)
    if len(values) == 1:
        return values[0]
    return list(values)


def to_json_safe(value: Any) -> Any:
    """Render integers as decimal strings and bytes as hex, recursively."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json_safe(item) for key, item in value.items()}
    return value


def revert_reason(data: bytes) -> str:
    if not data:
        return "execution reverted"
    if data[:4] == ERROR_STRING_SELECTOR:
        try:
            (reason,) = decode(["string"], data[4:])
            return f"execution reverted: {reason}"
        except DecodingError:
            pass
    if data[:4] == PANIC_SELECTOR:
        try:
            (code,) = decode(["uint256"], data[4:])
            return f"execution reverted: panic code {hex(code)}"
        except DecodingError:
            pass
    return f"execution reverted (data: 0x{data.hex()})"


def _eth_call_result(payload: Any) -> bytes:
    if not isinstance(payload, dict):
        raise ValueError("malformed JSON-RPC response")
    error = payload.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise NetworkError(f"RPC error: {message}")
    result = payload.get("result")
    if not isinstance(result, str) or not result.startswith("0x"):
        raise ValueError("eth_call returned no data")
    return bytes.fromhex(result[2:])


class MulticallExecutor(Executor):
    name = "ethers"

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        payload = context.payload
        chain_id = payload.get("chain_id")
        contract_address = payload.get("contract_address")
        calls = payload.get("payload") or []

        rpc_url = context.config.evm_rpc_urls.get(chain_id) if chain_id else None
        if not rpc_url:
            supported = ", ".join(context.config.evm_rpc_urls)
            raise ExecutorError(f"Unsupported chain_id: {chain_id}. Supported chains: {supported}")

        abi = payload.get("abi")
        if isinstance(abi, str):
            try:
                abi = json.loads(abi)
            except ValueError as exc:
                raise ExecutorError(f"Invalid ABI: {exc}") from exc
        if not isinstance(abi, list):
            raise ExecutorError("Invalid ABI: expected a list of ABI entries")

        try:
            target = to_checksum_address(str(contract_address))
        except ValueError as exc:
            raise ExecutorError(f"Invalid contract_address '{contract_address}': {exc}") from exc

        prepared: List[Tuple[str, List[Any], Dict[str, Any], bytes]] = []
        for call in calls:
            method = str(call.get("methodName", ""))
            args = list(call.get("arguments") or [])
            try:
                entry = find_function(abi, method, len(args))
                calldata = encode_call(entry, args)
            except (ValueError, TypeError, EncodingError) as exc:
                raise ExecutorError(f"Failed to encode function call for {method}: {exc}") from exc
            prepared.append((method, args, entry, calldata))

        multicall = to_checksum_address(context.config.multicall3_address(chain_id))
        batch = [(multicall, True, GET_BLOCK_NUMBER_SELECTOR)]
        batch.extend((target, True, calldata) for _method, _args, _entry, calldata in prepared)
        data = AGGREGATE3_SELECTOR + encode(["(address,bool,bytes)[]"], [batch])
        envelope = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [{"to": multicall, "data": "0x" + data.hex()}, "latest"],
        }

        try:
            response = await send(
                context,
                "POST",
                rpc_url,
                headers=merged_headers(context, {"Content-Type": "application/json"}),
                json_body=envelope,
            )
            (results,) = decode(["(bool,bytes)[]"], _eth_call_result(response.json()))
            if len(results) != len(batch):
                raise ValueError(f"expected {len(batch)} results, got {len(results)}")
        except (NetworkError, DecodingError, ValueError) as exc:
            logger.warning(
                "Multicall execution failed tool=%s chain=%s: %s",
                context.tool_name,
                chain_id,
                exc,
                extra={"tool": context.tool_name, "error": str(exc)},
            )
            failure = {
                "success": False,
                "error": "Multicall execution failed",
                "details": str(exc),
                "chain_id": chain_id,
                "contract_address": contract_address,
                "calls": [{"method": method, "arguments": args} for method, args, _entry, _data in prepared],
            }
            return ExecutionResult.error(json.dumps(failure), "network")

        block_number: Optional[str] = None
        block_ok, block_data = results[0]
        if block_ok:
            try:
                block_number = str(decode(["uint256"], block_data)[0])
            except DecodingError:
                block_number = None

        outcomes: List[Dict[str, Any]] = []
        for (method, args, entry, _calldata), (ok, return_data) in zip(prepared, results[1:]):
            outcome: Dict[str, Any] = {"success": ok, "method": method, "arguments": args}
            if not ok:
                outcome["error"] = revert_reason(return_data)
            else:
                try:
                    outcome["result"] = to_json_safe(decode_outputs(entry, return_data))
                except (DecodingError, ParseError, ValueError) as exc:
                    outcome["success"] = False
                    outcome["error"] = f"Failed to decode result: {exc}"
            outcomes.append(outcome)

        body = {
            "success": True,
            "blockNumber": block_number,
            "chain_id": chain_id,
            "contract_address": contract_address,
            "calls": outcomes,
        }
        return ExecutionResult(body=json.dumps(body), status_code=response.status_code)
