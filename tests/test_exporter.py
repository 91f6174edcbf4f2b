import json

from evmcl.actions import Action, ProviderAction, ScriptEncodedAction
from evmcl.exporter import action_to_dict, actions_to_dict, export_actions

VOTING = "0x1000000000000000000000000000000000000005"


def test_action_to_dict_shapes():
    assert action_to_dict(Action(to=VOTING, data="0x1234")) == {
        "to": VOTING,
        "data": "0x1234",
        "value": 0,
    }
    assert action_to_dict(
        ScriptEncodedAction(to=VOTING, data="0x1234", forwarder_path=("token-manager", "voting"))
    ) == {
        "to": VOTING,
        "data": "0x1234",
        "value": 0,
        "forwarderPath": ["token-manager", "voting"],
    }
    assert action_to_dict(ProviderAction("wallet_switchEthereumChain", [{"chainId": "0x64"}])) == {
        "method": "wallet_switchEthereumChain",
        "params": [{"chainId": "0x64"}],
    }


def test_export_actions_writes_json(tmp_path):
    actions = [
        ProviderAction("wallet_switchEthereumChain", [{"chainId": "0x1"}]),
        Action(to=VOTING, data="0xabcdef", value=5),
    ]

    path = export_actions(actions, str(tmp_path / "out" / "actions.json"))

    assert path.exists()
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == actions_to_dict(actions)
    assert payload[1]["value"] == 5
