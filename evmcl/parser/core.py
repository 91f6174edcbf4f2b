import logging
from functools import lru_cache
from typing import List, Tuple

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from evmcl.errors import ParseError
from evmcl.nodes import (
    AddressLiteral,
    ArrayLiteral,
    BoolLiteral,
    BytesLiteral,
    CommandExpression,
    HelperFunctionCall,
    NumberLiteral,
    ProbableIdentifier,
    ScriptAST,
    StringLiteral,
    VariableIdentifier,
)

from .grammar import SCRIPT_GRAMMAR
from .helpers import (
    _meta_span,
    _parse_number_literal,
    _split_command_name,
    _token_span,
    _unquote_string,
)

logger = logging.getLogger(__name__)

# Closing tokens fed to the parser when a script ends inside an open array or block.
_RECOVERY_CLOSERS = (("RSQB", "]"), ("_RPAR", ")"))


class _Block(list):
    pass


class _ScriptTransformer(Transformer):
    def start(self, children):
        return [child for child in children if isinstance(child, CommandExpression)]

    def block(self, children):
        return _Block(child for child in children if isinstance(child, CommandExpression))

    @v_args(meta=True)
    def statement(self, meta, children):
        name_token = children[0]
        module, name = _split_command_name(str(name_token))
        block = None
        args = []
        for child in children[1:]:
            if isinstance(child, _Block):
                block = list(child)
            else:
                args.append(child)
        return CommandExpression(
            name=name,
            args=args,
            module=module,
            block=block,
            loc=_meta_span(meta),
        )

    def string(self, children):
        (token,) = children
        return StringLiteral(_unquote_string(str(token)), loc=_token_span(token))

    def number(self, children):
        (token,) = children
        return NumberLiteral(_parse_number_literal(str(token)), loc=_token_span(token))

    def address(self, children):
        (token,) = children
        return AddressLiteral(str(token), loc=_token_span(token))

    def bytes(self, children):
        (token,) = children
        return BytesLiteral(str(token).lower(), loc=_token_span(token))

    def variable(self, children):
        (token,) = children
        return VariableIdentifier(str(token), loc=_token_span(token))

    def identifier(self, children):
        (token,) = children
        text = str(token)
        if text in ("true", "false"):
            return BoolLiteral(text == "true", loc=_token_span(token))
        return ProbableIdentifier(text, loc=_token_span(token))

    @v_args(meta=True)
    def array(self, meta, children):
        return ArrayLiteral(list(children), loc=_meta_span(meta))

    @v_args(meta=True)
    def helper_call(self, meta, children):
        head = children[0]
        if head.type == "HELPER_OPEN":
            name = str(head)[1:-1]
        else:
            name = str(head)[1:]
        return HelperFunctionCall(name, list(children[1:]), loc=_meta_span(meta))


@lru_cache(maxsize=1)
def _get_lark() -> Lark:
    return Lark(
        SCRIPT_GRAMMAR,
        parser="lalr",
        lexer="contextual",
        propagate_positions=True,
        maybe_placeholders=False,
    )


def _describe_error(exc: UnexpectedInput) -> str:
    if isinstance(exc, UnexpectedCharacters):
        return f"Unexpected character {exc.char!r}"
    if isinstance(exc, UnexpectedToken):
        if exc.token.type == "$END":
            return "Unexpected end of script"
        if exc.token.type == "_NL":
            return "Unexpected end of line"
        return f"Unexpected token {str(exc.token)!r}"
    return "Invalid syntax"


def _to_parse_error(exc: UnexpectedInput) -> ParseError:
    line = getattr(exc, "line", None)
    column = getattr(exc, "column", None)
    return ParseError(
        _describe_error(exc),
        line=line if isinstance(line, int) and line > 0 else 1,
        column=column if isinstance(column, int) and column > 0 else 1,
    )


def _visit_error_to_parse_error(exc: VisitError) -> ParseError:
    node = exc.obj
    meta = getattr(node, "meta", node)
    line = getattr(meta, "line", None)
    column = getattr(meta, "column", None)
    return ParseError(
        str(exc.orig_exc),
        line=line if isinstance(line, int) and line > 0 else 1,
        column=column if isinstance(column, int) and column > 0 else 1,
    )


class ScriptParser:
    """Turns script text into a :class:`ScriptAST`.

    Syntax errors never escape :meth:`parse`: they are collected together
    with their position and a best-effort AST is returned alongside them.
    """

    def __init__(self):
        self._lark = _get_lark()

    def parse(self, text: str) -> Tuple[ScriptAST, List[ParseError]]:
        errors: List[ParseError] = []
        seen: List[UnexpectedInput] = []

        def on_error(exc: UnexpectedInput) -> bool:
            seen.append(exc)
            errors.append(_to_parse_error(exc))
            if isinstance(exc, UnexpectedToken) and exc.token.type == "$END":
                interactive = exc.interactive_parser
                accepted = interactive.accepts()
                for token_type, value in _RECOVERY_CLOSERS:
                    if token_type in accepted:
                        interactive.feed_token(Token.new_borrow_pos(token_type, value, exc.token))
                        return True
                return False
            return True

        try:
            tree = self._lark.parse(text, on_error=on_error)
        except UnexpectedInput as exc:
            if not any(exc is previous for previous in seen):
                errors.append(_to_parse_error(exc))
            logger.debug("Script parsing aborted after %d error(s)", len(errors))
            return ScriptAST(body=[], source=text), errors

        try:
            body = _ScriptTransformer().transform(tree)
        except VisitError as exc:
            errors.append(_visit_error_to_parse_error(exc))
            logger.debug("Script tree rejected: %s", exc.orig_exc)
            return ScriptAST(body=[], source=text), errors
        if errors:
            logger.debug("Script parsed with %d recovered error(s)", len(errors))
        return ScriptAST(body=body, source=text), errors


def parse_script(text: str) -> Tuple[ScriptAST, List[ParseError]]:
    """Parse ``text`` and return the AST together with any syntax errors."""
    return ScriptParser().parse(text)
