import logging
from typing import List, Sequence

from evmcl.actions import (
    Action,
    AnyAction,
    ScriptEncodedAction,
    encode_call_script,
    encode_function_call,
    is_provider_action,
)

from .dao import App

logger = logging.getLogger(__name__)

FORWARD_SIGNATURE = "forward(bytes)"


def encode_forwarding_action(
    actions: Sequence[AnyAction],
    forwarders: Sequence[App],
    forwarder_path: Sequence[str],
) -> List[AnyAction]:
    """Wrap ``actions`` through ``forwarders`` into a single forwarded call.

    The last forwarder receives the call script of the raw actions; every
    forwarder before it forwards the call made to the next one. The result is
    addressed to the first forwarder. Provider actions are never wrapped and
    are returned ahead of the forwarded call.
    """
    if not forwarders:
        return list(actions)

    provider_actions = [action for action in actions if is_provider_action(action)]
    calls = [action for action in actions if not is_provider_action(action)]
    if not calls:
        return provider_actions

    script = encode_call_script(calls)
    forwarded: Action = calls[0]
    for forwarder in reversed(forwarders):
        forwarded = Action(
            to=forwarder.address,
            data=encode_function_call(FORWARD_SIGNATURE, [script]),
        )
        script = encode_call_script([forwarded])

    logger.debug(
        "Forwarded %d action(s) through %s", len(calls), " -> ".join(forwarder_path)
    )
    return provider_actions + [
        ScriptEncodedAction(
            to=forwarded.to,
            data=forwarded.data,
            value=forwarded.value,
            forwarder_path=tuple(forwarder_path),
        )
    ]
