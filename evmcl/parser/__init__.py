"""Script parser entry points.

Grammar and literal helpers are internal; use :func:`parse_script` or
:class:`evmcl.parser.core.ScriptParser`.
"""

from evmcl.parser.core import ScriptParser, parse_script

__all__ = ["ScriptParser", "parse_script"]
