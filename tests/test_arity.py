import pytest

from evmcl.errors import ArityError
from evmcl.modules.base import ArityConstraint, Command, Module, command_table


def test_equal_constraint():
    constraint = ArityConstraint.equal(2)

    assert constraint.check(2)
    assert not constraint.check(1)
    assert not constraint.check(3)
    assert constraint.describe() == "exactly 2"


def test_greater_constraint_is_inclusive():
    constraint = ArityConstraint.greater(2)

    assert not constraint.check(1)
    assert constraint.check(2)
    assert constraint.check(10)
    assert constraint.describe() == "at least 2"


def test_less_constraint_is_inclusive():
    constraint = ArityConstraint.less(1)

    assert constraint.check(0)
    assert constraint.check(1)
    assert not constraint.check(2)
    assert constraint.describe() == "at most 1"


def test_between_constraint():
    constraint = ArityConstraint.between(3, 4)

    assert [constraint.check(n) for n in range(6)] == [False, False, False, True, True, False]
    assert constraint.describe() == "between 3 and 4"


def test_between_rejects_inverted_bounds():
    with pytest.raises(ValueError, match="lower bound"):
        ArityConstraint.between(4, 3)


def test_arity_error_message():
    error = ArityError("connect", ArityConstraint.greater(2), 1)

    assert str(error) == "connect: invalid number of arguments. Expected at least 2 arguments, but got 1"
    assert error.got == 1


def test_module_tables_lookup():
    async def _noop(module, context, args):
        return []

    class Dummy(Module):
        name = "dummy"
        commands = command_table(Command("noop", ArityConstraint.equal(0), _noop))

    module = Dummy()
    assert module.alias == "dummy"
    assert Dummy("d").alias == "d"
    assert module.get_command("noop").name == "noop"
    assert module.get_command("missing") is None
    assert module.get_helper("noop") is None
