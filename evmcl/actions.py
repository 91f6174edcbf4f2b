from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Sequence, Tuple, Union

from eth_abi import encode
from eth_abi.exceptions import ABITypeError
from eth_abi.exceptions import ParseError as ABIParseError
from eth_abi.grammar import ABIType, TupleType, normalize, parse
from eth_utils import (
    decode_hex,
    encode_hex,
    function_signature_to_4byte_selector,
    is_address,
    is_hexstr,
    keccak,
    to_checksum_address,
)

ANY_ENTITY = to_checksum_address("0x" + "ff" * 20)
CALLS_SCRIPT_ID = "0x00000001"


@dataclass(frozen=True)
class Action:
    to: str
    data: str
    value: int = 0


@dataclass(frozen=True)
class ScriptEncodedAction(Action):
    forwarder_path: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderAction:
    method: str
    params: List[Dict[str, Any]] = field(default_factory=list)


AnyAction = Union[Action, ProviderAction]


def is_provider_action(action: AnyAction) -> bool:
    return isinstance(action, ProviderAction)


def normalize_address(value: Any) -> Union[str, None]:
    """Return the checksummed form of ``value`` or ``None`` if it isn't an address."""
    if isinstance(value, str) and is_address(value):
        return to_checksum_address(value)
    return None


def role_hash(role: str) -> str:
    """Return the keccak256 hash of a role name; raw 32-byte hashes pass through."""
    if is_hexstr(role) and len(role) == 66:
        return role.lower()
    return encode_hex(keccak(text=role))


def parse_signature(signature: str) -> Tuple[str, List[str]]:
    """Split ``name(type,...)`` into its function name and canonical ABI types."""
    signature = signature.strip()
    open_index = signature.find("(")
    if open_index <= 0 or not signature.endswith(")"):
        raise ValueError(f"Invalid function signature: {signature}")
    name = signature[:open_index]
    inner = signature[open_index + 1:-1].replace(" ", "")
    if not inner:
        return name, []
    try:
        params = parse(normalize(f"({inner})"))
        params.validate()
    except (ABIParseError, ABITypeError) as exc:
        raise ValueError(f"Invalid function signature: {signature}: {exc}") from exc
    return name, [component.to_type_str() for component in params.components]


def _coerce_param(abi_type: ABIType, value: Any) -> Any:
    if abi_type.is_array:
        return [_coerce_param(abi_type.item_type, item) for item in value]
    if isinstance(abi_type, TupleType):
        if len(value) != len(abi_type.components):
            raise ValueError(
                f"Expected {len(abi_type.components)} values for {abi_type.to_type_str()}, "
                f"got {len(value)}"
            )
        return tuple(
            _coerce_param(component, item)
            for component, item in zip(abi_type.components, value)
        )
    if abi_type.base == "bytes" and isinstance(value, str):
        return decode_hex(value)
    if abi_type.base == "address" and isinstance(value, str):
        return to_checksum_address(value)
    if abi_type.base in ("uint", "int"):
        if isinstance(value, Decimal):
            if value != value.to_integral_value():
                raise ValueError(f"Expected an integer for {abi_type.to_type_str()}, got {value}")
            return int(value)
        if isinstance(value, str):
            return int(value, 0)
    return value


def encode_function_call(signature: str, params: Sequence[Any]) -> str:
    """ABI-encode a call to ``signature`` with ``params`` as hex calldata."""
    name, types = parse_signature(signature)
    if len(types) != len(params):
        raise ValueError(
            f"Signature {signature} expects {len(types)} parameters, got {len(params)}"
        )
    selector = function_signature_to_4byte_selector(f"{name}({','.join(types)})")
    coerced = [_coerce_param(parse(abi_type), value) for abi_type, value in zip(types, params)]
    return encode_hex(selector + encode(types, coerced))


def encode_action(to: str, signature: str, params: Sequence[Any]) -> Action:
    return Action(to=to_checksum_address(to), data=encode_function_call(signature, params))


def encode_call_script(actions: Sequence[Action]) -> str:
    """Encode actions as an EVM call script (script id 1).

    Each call is laid out as the 20-byte target, the calldata length as a
    4-byte big-endian integer, then the calldata itself.
    """
    script = decode_hex(CALLS_SCRIPT_ID)
    for action in actions:
        calldata = decode_hex(action.data)
        script += decode_hex(action.to) + len(calldata).to_bytes(4, "big") + calldata
    return encode_hex(script)
