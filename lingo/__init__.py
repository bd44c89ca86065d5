# Lingo — tree-walking interpreter
"""
Lingo: a small C-like scripting language.
Lexer → Pratt parser → tree-walking interpreter over an immutable object system.
"""
from .lexer import Lexer, Token, TokenType, lex
from .parser import Parser, ParseError, LingoSyntaxError, Precedence, parse
from .ast import ASTNode, Program
from .objects import (
    Object, ObjectType, Integer, Boolean, String, Null, Array, Hash,
    Function, Builtin, Error, ReturnValue, Environment, TRUE, FALSE, NULL,
)
from .builtins import make_builtins
from .interpreter import Interpreter, LingoError, evaluate, new_environment

__version__ = "0.1.0"
__all__ = [
    "Lexer", "Token", "TokenType", "lex",
    "Parser", "ParseError", "LingoSyntaxError", "Precedence", "parse",
    "ASTNode", "Program",
    "Object", "ObjectType", "Integer", "Boolean", "String", "Null", "Array", "Hash",
    "Function", "Builtin", "Error", "ReturnValue", "Environment", "TRUE", "FALSE", "NULL",
    "make_builtins",
    "Interpreter", "LingoError", "evaluate", "new_environment",
]
