import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from evmcl.actions import AnyAction, ProviderAction, ScriptEncodedAction


def action_to_dict(action: AnyAction) -> Dict[str, Any]:
    if isinstance(action, ProviderAction):
        return {"method": action.method, "params": list(action.params)}
    payload: Dict[str, Any] = {
        "to": action.to,
        "data": action.data,
        "value": action.value,
    }
    if isinstance(action, ScriptEncodedAction):
        payload["forwarderPath"] = list(action.forwarder_path)
    return payload


def actions_to_dict(actions: Sequence[AnyAction]) -> List[Dict[str, Any]]:
    """Serialize an action list into the JSON payload handed to executors."""
    return [action_to_dict(action) for action in actions]


def export_actions(actions: Sequence[AnyAction], output_path: str) -> Path:
    """Write ``actions`` as JSON to ``output_path`` and return the path."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(actions_to_dict(actions), indent=2) + "\n", encoding="utf-8")
    return path
