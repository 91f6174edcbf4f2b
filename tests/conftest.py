import asyncio
import textwrap

import pytest

from dao_fixture import ENS_NAMES, KERNEL, OTHER_KERNEL, SIGNER, build_dao_apps, build_other_dao_apps
from evmcl.interpreter import Interpreter
from evmcl.parser import parse_script
from evmcl.resolvers import StaticAppResolver, StaticNameResolver, StaticSigner


@pytest.fixture
def app_resolver():
    return StaticAppResolver(
        {
            KERNEL: build_dao_apps(),
            OTHER_KERNEL: build_other_dao_apps(),
        }
    )


@pytest.fixture
def interpreter(app_resolver):
    return Interpreter(
        signer=StaticSigner(SIGNER),
        app_resolver=app_resolver,
        name_resolver=StaticNameResolver(ENS_NAMES),
    )


@pytest.fixture
def run(interpreter):
    """Parse and interpret a script with the shared test DAO collaborators."""

    def _run(source: str):
        script, errors = parse_script(textwrap.dedent(source))
        assert errors == []
        return asyncio.run(interpreter.interpret(script))

    return _run


@pytest.fixture
def run_in_dao(run):
    """Run commands inside ``load aragonos as ar`` + ``ar:connect <kernel> (...)``."""

    def _run(*commands: str):
        body = "\n".join(commands)
        return run(f"load aragonos as ar\nar:connect {KERNEL} (\n{body}\n)\n")

    return _run
