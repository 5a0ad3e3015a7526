"""
Turning user callbacks into zero-argument invocables.

Callables are bound to their arguments once, at schedule creation. Source
text is the legacy form: it is compiled into a function body whose
parameters are the keyword argument names. The body sees none of the
caller's scope and only gets a whitelisted set of builtins.

Before compiling, every syntax node is checked against ALLOWED_NODES:
straight-line statements, loops, conditionals, calls and literals. Nested
functions, lambdas, generators, classes, imports and try/with blocks are
rejected, as are private or frame-introspection attributes and any name or
string that spells a dunder.
"""

from __future__ import annotations

import ast
import builtins
import functools
import keyword
import textwrap
from typing import Any, Callable, Mapping

from dailyinterval.core.errors import CallbackError, ErrorCode

SOURCE_CALLBACK_NAME = '__dailyinterval_callback__'

SAFE_BUILTINS: frozenset[str] = frozenset({
    'abs', 'all', 'any', 'bool', 'dict', 'divmod', 'enumerate', 'filter',
    'float', 'format', 'frozenset', 'int', 'isinstance', 'len', 'list',
    'map', 'max', 'min', 'print', 'range', 'repr', 'reversed', 'round',
    'set', 'sorted', 'str', 'sum', 'tuple', 'zip',
    'Exception', 'ValueError', 'TypeError', 'KeyError', 'IndexError',
})

ALLOWED_NODES: tuple[type[ast.AST], ...] = (
    ast.Module, ast.arguments, ast.arg,
    # statements
    ast.Expr, ast.Assign, ast.AugAssign, ast.Return, ast.If, ast.For,
    ast.While, ast.Break, ast.Continue, ast.Pass,
    # expressions
    ast.Name, ast.Constant, ast.Attribute, ast.Subscript, ast.Slice,
    ast.Call, ast.keyword, ast.Starred, ast.BinOp, ast.UnaryOp, ast.BoolOp,
    ast.Compare, ast.IfExp, ast.List, ast.Tuple, ast.Dict, ast.Set,
    ast.ListComp, ast.SetComp, ast.DictComp, ast.comprehension,
    ast.JoinedStr, ast.FormattedValue,
    # operators and load/store contexts
    ast.operator, ast.unaryop, ast.boolop, ast.cmpop, ast.expr_context,
)

# generator, coroutine, frame, traceback and code object internals
_FRAME_ATTR_PREFIXES = ('gi_', 'cr_', 'ag_', 'f_', 'tb_', 'co_')
# str.format walks attributes of its arguments
_FORMAT_ATTRS = frozenset({'format', 'format_map'})


def bind_callback(
    callback: Callable[..., Any] | str,
    args: tuple[Any, ...] = (),
    kwargs: Mapping[str, Any] | None = None,
) -> Callable[[], Any]:
    """
    Capture a callback and its arguments as a zero-argument invocable.

    Args:
        callback: A callable, or source text for a function body
        args: Positional arguments (callables only)
        kwargs: Keyword arguments; for source text these name the body's
            argument slots

    Raises:
        CallbackError: If the callback is neither callable nor text, or the
            source text is rejected
    """
    kwargs = dict(kwargs or {})

    if isinstance(callback, str):
        if args:
            raise CallbackError(
                message='source-text callbacks take keyword arguments only',
                code=ErrorCode.CALLBACK_INVALID_ARGS,
                notes=[f'got {len(args)} positional argument(s)'],
                help_text='pass values as keywords; each keyword becomes a name in the body',
            )
        fn = compile_source_callback(callback, tuple(kwargs))
        return functools.partial(fn, **kwargs)

    if not callable(callback):
        raise CallbackError(
            message=f'callback of type {type(callback).__name__} is not callable',
            code=ErrorCode.CALLBACK_NOT_CALLABLE,
            help_text='pass a function, a bound method or a source-text body',
        )

    if not args and not kwargs:
        return callback
    return functools.partial(callback, *args, **kwargs)


def compile_source_callback(
    source: str, param_names: tuple[str, ...] = ()
) -> Callable[..., Any]:
    """
    Compile a function body into a standalone function.

    Raises:
        CallbackError: On syntax errors, invalid parameter names, or
            constructs outside ALLOWED_NODES
    """
    for name in param_names:
        if not name.isidentifier() or keyword.iskeyword(name) or name.startswith('__'):
            raise CallbackError(
                message=f"invalid argument slot name '{name}'",
                code=ErrorCode.CALLBACK_INVALID_ARGS,
                help_text='keyword names must be plain Python identifiers',
            )

    body = textwrap.dedent(source).strip() or 'pass'
    wrapped = f'def {SOURCE_CALLBACK_NAME}({", ".join(param_names)}):\n'
    wrapped += textwrap.indent(body, '    ')

    try:
        tree = ast.parse(wrapped, filename='<dailyinterval-callback>', mode='exec')
    except SyntaxError as e:
        raise CallbackError(
            message='callback source does not compile',
            code=ErrorCode.CALLBACK_INVALID_SOURCE,
            notes=[f'{e.msg} (body line {max((e.lineno or 1) - 1, 1)})'],
        ) from e

    _check_nodes(tree)

    namespace: dict[str, Any] = {
        '__builtins__': {name: getattr(builtins, name) for name in SAFE_BUILTINS},
    }
    exec(compile(tree, '<dailyinterval-callback>', 'exec'), namespace)
    fn: Callable[..., Any] = namespace[SOURCE_CALLBACK_NAME]
    return fn


def _check_nodes(tree: ast.Module) -> None:
    wrapper = tree.body[0]
    for node in ast.walk(tree):
        problem = _node_problem(node, wrapper)
        if problem is not None:
            raise CallbackError(
                message='callback source uses a forbidden construct',
                code=ErrorCode.CALLBACK_INVALID_SOURCE,
                notes=[f'{problem} (body line {max(getattr(node, "lineno", 2) - 1, 1)})'],
                help_text='source-text callbacks run isolated; pass a Python callable instead',
            )


def _node_problem(node: ast.AST, wrapper: ast.stmt) -> str | None:
    if node is wrapper:
        return None
    if not isinstance(node, ALLOWED_NODES):
        return f'{type(node).__name__} is not allowed'
    if isinstance(node, ast.Attribute):
        attr = node.attr
        if attr.startswith('_') or attr.startswith(_FRAME_ATTR_PREFIXES) or attr in _FORMAT_ATTRS:
            return f"access to '{attr}' is not allowed"
    elif isinstance(node, ast.Name) and node.id.startswith('__'):
        return f"name '{node.id}' is not allowed"
    elif isinstance(node, ast.Constant) and isinstance(node.value, str) and '__' in node.value:
        return 'strings containing dunder names are not allowed'
    return None
