from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from evmcl.errors import ScriptError
from evmcl.exporter import actions_to_dict, export_actions
from evmcl.interpreter import Interpreter
from evmcl.parser import parse_script
from evmcl.resolvers import StaticAppResolver, StaticNameResolver, StaticSigner


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="evmcl",
        description=(
            "Interpret a governance script and print the contract calls it "
            "compiles to as JSON."
        ),
    )
    parser.add_argument("script", help="Path to the script file.")
    parser.add_argument(
        "--signer",
        default=None,
        help="Address of the acting account (used by @me).",
    )
    parser.add_argument(
        "--chain-id",
        type=int,
        default=1,
        help="Chain id reported by the signer.",
    )
    parser.add_argument(
        "--apps",
        default=None,
        help='JSON file mapping kernel addresses to {"apps": [...]} entries.',
    )
    parser.add_argument(
        "--names",
        default=None,
        help="JSON file mapping ENS names to addresses.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the action list to this file instead of stdout.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only parse the script and report syntax errors.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log interpreter activity to stderr.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    script_path = Path(args.script)
    if not script_path.is_file():
        print(f"Script file not found: {script_path}", file=sys.stderr)
        return 1

    script, errors = parse_script(script_path.read_text(encoding="utf-8"))
    if errors:
        for error in errors:
            print(f"{script_path}:{error.line}:{error.column}: {error.message}", file=sys.stderr)
        return 1
    if args.check:
        print(f"{script_path}: OK")
        return 0

    try:
        interpreter = Interpreter(
            signer=StaticSigner(args.signer, args.chain_id) if args.signer else None,
            app_resolver=StaticAppResolver.from_json(args.apps) if args.apps else None,
            name_resolver=StaticNameResolver.from_json(args.names) if args.names else None,
        )
        actions = asyncio.run(interpreter.interpret(script))
    except (ScriptError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        path = export_actions(actions, args.output)
        print(f"Wrote {len(actions)} action(s) to {path}")
    else:
        print(json.dumps(actions_to_dict(actions), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
