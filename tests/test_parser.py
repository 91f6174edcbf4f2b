import textwrap
from decimal import Decimal

import pytest

from evmcl.nodes import (
    AddressLiteral,
    ArrayLiteral,
    BoolLiteral,
    BytesLiteral,
    CommandExpression,
    HelperFunctionCall,
    NumberLiteral,
    ProbableIdentifier,
    StringLiteral,
    VariableIdentifier,
)
from evmcl.parser import ScriptParser, parse_script


def parse_ok(source: str):
    script, errors = parse_script(textwrap.dedent(source))
    assert errors == []
    return script


def single_command(source: str) -> CommandExpression:
    script = parse_ok(source)
    assert len(script.body) == 1
    return script.body[0]


def test_parse_commands_with_module_prefix_and_block():
    script = parse_ok(
        """
        load aragonos as ar

        ar:connect my-dao token-manager voting (
            grant voting vault TRANSFER_ROLE
            revoke finance vault TRANSFER_ROLE true
        )
        """
    )

    assert [command.name for command in script.body] == ["load", "connect"]
    connect = script.body[1]
    assert connect.module == "ar"
    assert connect.qualified_name == "ar:connect"
    assert connect.args == [
        ProbableIdentifier("my-dao"),
        ProbableIdentifier("token-manager"),
        ProbableIdentifier("voting"),
    ]
    assert connect.has_block()
    assert [command.name for command in connect.block] == ["grant", "revoke"]
    assert connect.block[1].args[-1] == BoolLiteral(True)


def test_parse_literal_arguments():
    command = single_command(
        """
        exec 0x1000000000000000000000000000000000000001 "transfer(address,uint256)" 'single' 0xABCD 42 -7 $amount false
        """
    )

    assert command.args == [
        AddressLiteral("0x1000000000000000000000000000000000000001"),
        StringLiteral("transfer(address,uint256)"),
        StringLiteral("single"),
        BytesLiteral("0xabcd"),
        NumberLiteral(42),
        NumberLiteral(-7),
        VariableIdentifier("$amount"),
        BoolLiteral(False),
    ]


def test_parse_number_literals_with_exponent_and_time_units():
    command = single_command("set $x [1e18, 1.5e18, 0.5, 2d, 1mo, 30s]\n")
    values = [item.value for item in command.args[1].items]

    assert values == [
        10**18,
        1_500_000_000_000_000_000,
        Decimal("0.5"),
        2 * 86400,
        30 * 86400,
        30,
    ]


def test_parse_arrays_and_nested_arrays():
    command = single_command('exec target "f(uint256[],address[][])" [1, 2, 3] [[0xAbCd], []]\n')

    assert command.args[2] == ArrayLiteral([NumberLiteral(1), NumberLiteral(2), NumberLiteral(3)])
    assert command.args[3] == ArrayLiteral([ArrayLiteral([BytesLiteral("0xabcd")]), ArrayLiteral([])])


def test_parse_helper_calls_with_and_without_arguments():
    command = single_command('exec target "f(address,bytes32)" @me @id("TRANSFER_ROLE")\n')

    assert command.args[2] == HelperFunctionCall("me", [])
    assert command.args[3] == HelperFunctionCall("id", [StringLiteral("TRANSFER_ROLE")])


def test_parse_nested_helper_calls():
    command = single_command("exec target \"f(address)\" @aragonEns(@id('x'), 0x1000000000000000000000000000000000000001)\n")

    helper = command.args[2]
    assert helper.name == "aragonEns"
    assert helper.args == [
        HelperFunctionCall("id", [StringLiteral("x")]),
        AddressLiteral("0x1000000000000000000000000000000000000001"),
    ]


def test_parse_string_escapes():
    command = single_command(r'exec target "say \"hi\"\n" ' + "\n")

    assert command.args[1] == StringLiteral('say "hi"\n')


def test_comments_and_blank_lines_are_ignored():
    script = parse_ok(
        """
        # a comment on its own line
        switch 1   # trailing comment


        switch gnosis
        """
    )

    assert [command.args for command in script.body] == [
        [NumberLiteral(1)],
        [ProbableIdentifier("gnosis")],
    ]


def test_script_without_trailing_newline():
    script, errors = parse_script("switch 1")

    assert errors == []
    assert script.body[0].args == [NumberLiteral(1)]


def test_empty_script():
    script, errors = parse_script("")

    assert errors == []
    assert script.body == []


def test_node_locations_are_recorded():
    script = parse_ok(
        """
        load aragonos as ar
        ar:connect my-dao (
          grant voting vault TRANSFER_ROLE
        )
        """
    )

    connect = script.body[1]
    grant = connect.block[0]
    assert connect.loc.start_line == 3
    assert grant.loc.start_line == 4
    assert grant.loc.start_col == 2
    assert grant.args[1].loc.start_line == 4


def test_unexpected_character_is_reported_and_skipped():
    script, errors = parse_script("set $a 1\nset $b %\n")

    assert len(errors) == 1
    assert errors[0].message == "Unexpected character '%'"
    assert (errors[0].line, errors[0].column) == (2, 8)
    assert [command.name for command in script.body] == ["set", "set"]


def test_unclosed_block_is_recovered():
    script, errors = parse_script("load aragonos as ar\nar:connect my-dao (\n  grant a b c\n")

    assert errors
    assert errors[0].message == "Unexpected end of script"
    connect = script.body[1]
    assert [command.name for command in connect.block] == ["grant"]


def test_unclosed_array_is_recovered():
    script, errors = parse_script("exec target \"f(uint256[])\" [1, 2")

    assert errors
    assert errors[0].message == "Unexpected end of script"
    assert script.body[0].args[2] == ArrayLiteral([NumberLiteral(1), NumberLiteral(2)])


def test_recovered_block_keeps_a_location():
    script, _ = parse_script("load aragonos as ar\nar:connect my-dao (\n  grant a b c\n")

    connect = script.body[1]
    assert connect.loc.start_line == 2
    assert connect.loc.end_line >= 2


@pytest.mark.parametrize(
    "source",
    ["grant a (b\n", "grant a (\n", "exec t \"f()\" [[1, 2", "set $x [\n", "a (\n  b (\n    c\n"],
)
def test_truncated_scripts_report_errors_without_raising(source):
    _, errors = parse_script(source)

    assert errors
    assert all(error.line >= 1 and error.column >= 1 for error in errors)


def test_parse_errors_render_location():
    _, errors = parse_script("switch %\n")

    assert str(errors[0]) == "Unexpected character '%'\nLocation: line 1, column 8"


def test_parser_instance_is_reusable():
    parser = ScriptParser()
    first, _ = parser.parse("switch 1\n")
    second, _ = parser.parse("switch 2\n")

    assert first.body[0].args == [NumberLiteral(1)]
    assert second.body[0].args == [NumberLiteral(2)]


def test_get_command_at_line_returns_innermost_command():
    script = parse_ok(
        """
        load aragonos as ar
        ar:connect my-dao (
          grant voting vault TRANSFER_ROLE
          revoke finance vault TRANSFER_ROLE
        )
        """
    )

    assert script.get_command_at_line(3).name == "connect"
    assert script.get_command_at_line(4).name == "grant"
    assert script.get_command_at_line(5).name == "revoke"
    assert script.get_command_at_line(1) is None


def test_get_commands_until_line_filters_by_name():
    script = parse_ok(
        """
        load aragonos as ar
        ar:connect my-dao (
          grant voting vault TRANSFER_ROLE
          revoke finance vault TRANSFER_ROLE
        )
        """
    )

    assert [c.name for c in script.get_commands_until_line(4)] == ["load", "connect", "grant"]
    assert [c.name for c in script.get_commands_until_line(5, names=["load", "revoke"])] == [
        "load",
        "revoke",
    ]
    assert [c.name for c in script.iter_commands()] == ["load", "connect", "grant", "revoke"]
