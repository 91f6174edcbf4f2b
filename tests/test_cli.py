import json
import textwrap

from dao_fixture import DAO as ADDRESSES
from dao_fixture import KERNEL, SIGNER
from evmcl.cli import main


def write_fixtures(tmp_path):
    script = tmp_path / "grant.evm"
    script.write_text(
        textwrap.dedent(
            """
            load aragonos as ar
            ar:connect my-dao voting (
              grant @me vault TRANSFER_ROLE
            )
            """
        ),
        encoding="utf-8",
    )
    apps = tmp_path / "apps.json"
    apps.write_text(
        json.dumps(
            {
                KERNEL: {
                    "apps": [
                        {"name": "acl", "address": ADDRESSES["acl"], "roles": ["CREATE_PERMISSIONS_ROLE"]},
                        {
                            "name": "vault",
                            "address": ADDRESSES["vault"],
                            "roles": ["TRANSFER_ROLE"],
                            "permissions": {
                                "TRANSFER_ROLE": {
                                    "grantees": [ADDRESSES["finance"]],
                                    "manager": ADDRESSES["voting"],
                                }
                            },
                        },
                        {"name": "voting", "address": ADDRESSES["voting"]},
                    ]
                }
            }
        ),
        encoding="utf-8",
    )
    names = tmp_path / "names.json"
    names.write_text(json.dumps({"my-dao.aragonid.eth": KERNEL}), encoding="utf-8")
    return script, apps, names


def test_cli_prints_actions(tmp_path, capsys):
    script, apps, names = write_fixtures(tmp_path)

    code = main([str(script), "--signer", SIGNER, "--apps", str(apps), "--names", str(names)])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload) == 1
    assert payload[0]["to"] == ADDRESSES["voting"]
    assert payload[0]["forwarderPath"] == ["voting"]


def test_cli_writes_output_file(tmp_path, capsys):
    script, apps, names = write_fixtures(tmp_path)
    output = tmp_path / "build" / "actions.json"

    code = main(
        [
            str(script),
            "--signer",
            SIGNER,
            "--apps",
            str(apps),
            "--names",
            str(names),
            "--output",
            str(output),
        ]
    )

    assert code == 0
    assert "Wrote 1 action(s)" in capsys.readouterr().out
    assert json.loads(output.read_text(encoding="utf-8"))[0]["to"] == ADDRESSES["voting"]


def test_cli_check_mode(tmp_path, capsys):
    script, _, _ = write_fixtures(tmp_path)

    assert main([str(script), "--check"]) == 0
    assert capsys.readouterr().out.strip().endswith("OK")


def test_cli_reports_syntax_errors(tmp_path, capsys):
    script = tmp_path / "broken.evm"
    script.write_text("switch 1\nswitch %\n", encoding="utf-8")

    assert main([str(script), "--check"]) == 1
    assert f"{script}:2:8: Unexpected character '%'" in capsys.readouterr().err


def test_cli_reports_interpretation_errors(tmp_path, capsys):
    script, apps, names = write_fixtures(tmp_path)

    code = main([str(script), "--apps", str(apps), "--names", str(names)])

    assert code == 1
    assert "no signer was provided" in capsys.readouterr().err


def test_cli_missing_script(tmp_path, capsys):
    assert main([str(tmp_path / "missing.evm")]) == 1
    assert "Script file not found" in capsys.readouterr().err


def test_cli_reports_missing_resolver_files(tmp_path, capsys):
    script, _, names = write_fixtures(tmp_path)

    missing = tmp_path / "missing.json"

    code = main([str(script), "--signer", SIGNER, "--apps", str(missing), "--names", str(names)])

    assert code == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_cli_reports_malformed_resolver_files(tmp_path, capsys):
    script, apps, names = write_fixtures(tmp_path)
    names.write_text("{not json", encoding="utf-8")

    code = main([str(script), "--signer", SIGNER, "--apps", str(apps), "--names", str(names)])

    assert code == 1
    assert capsys.readouterr().err.startswith("Error:")
