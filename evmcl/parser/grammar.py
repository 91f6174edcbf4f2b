SCRIPT_GRAMMAR = r"""
start: (_NL | statement _NL)* statement?

statement: IDENT argument* block?
block: _LPAR (_NL | statement _NL)* statement? _RPAR

?argument: STRING          -> string
         | NUMBER          -> number
         | ADDRESS         -> address
         | HEX             -> bytes
         | VARIABLE        -> variable
         | IDENT           -> identifier
         | array
         | helper_call

array: "[" (argument ("," argument)*)? "]"
helper_call: HELPER_OPEN (argument ("," argument)*)? _RPAR
           | HELPER_NAME

HELPER_OPEN.3: /@[a-zA-Z_][\w\-.]*\(/
HELPER_NAME.2: /@[a-zA-Z_][\w\-.]*/
ADDRESS.3: /0x[0-9a-fA-F]{40}(?![0-9a-zA-Z_])/
HEX.2: /0x[0-9a-fA-F]*/
NUMBER.1: /-?\d+(\.\d+)?(e\d+)?(mo|s|m|h|d|w|y)?(?![\w\-.:])/
VARIABLE: /\$[a-zA-Z_][\w\-.]*/
IDENT: /[a-zA-Z_][\w\-.:]*/
STRING: /"(?:[^"\\\n]|\\.)*"/ | /'(?:[^'\\\n]|\\.)*'/

_LPAR: "("
_RPAR: ")"
_NL: /(\r?\n[\t ]*)+/

COMMENT: /#[^\n]*/
WS_INLINE: /[ \t\f]+/

%ignore COMMENT
%ignore WS_INLINE
"""
