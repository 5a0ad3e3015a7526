"""Tests for callback binding and source-text compilation."""

from __future__ import annotations

import functools

import pytest

from dailyinterval.core.callbacks import (
    SAFE_BUILTINS,
    bind_callback,
    compile_source_callback,
)
from dailyinterval.core.errors import CallbackError, ErrorCode

pytestmark = pytest.mark.unit


class TestBindCallable:
    """Tests for binding Python callables."""

    def test_no_arguments_returns_callable_itself(self) -> None:
        def job() -> None:
            pass

        assert bind_callback(job) is job

    def test_binds_positional_and_keyword_arguments(self) -> None:
        calls: list[tuple[object, ...]] = []

        def job(a: int, b: int, *, label: str) -> None:
            calls.append((a, b, label))

        bound = bind_callback(job, (1, 2), {'label': 'x'})
        assert isinstance(bound, functools.partial)

        bound()
        bound()
        assert calls == [(1, 2, 'x'), (1, 2, 'x')]

    def test_arguments_captured_at_bind_time(self) -> None:
        """Rebinding the caller's variable later does not change the call."""
        seen: list[int] = []
        value = 1
        bound = bind_callback(seen.append, (value,))
        value = 2

        bound()
        assert seen == [1]
        assert value == 2

    @pytest.mark.parametrize('bad', [42, None, 3.5, ['not', 'callable']])
    def test_non_callable_rejected(self, bad: object) -> None:
        with pytest.raises(CallbackError) as exc_info:
            bind_callback(bad)  # type: ignore[arg-type]

        assert exc_info.value.code == ErrorCode.CALLBACK_NOT_CALLABLE


class TestSourceCallbacks:
    """Tests for source-text callbacks."""

    def test_keywords_become_argument_slots(self) -> None:
        sink: list[int] = []
        bound = bind_callback('sink.append(value * 2)', (), {'sink': sink, 'value': 21})

        bound()
        assert sink == [42]

    def test_multiline_body(self) -> None:
        sink: list[int] = []
        source = """
            total = 0
            for n in range(4):
                total += n
            sink.append(total)
        """
        bind_callback(source, (), {'sink': sink})()
        assert sink == [6]

    def test_empty_body_is_noop(self) -> None:
        assert bind_callback('   ')() is None

    def test_positional_arguments_rejected(self) -> None:
        with pytest.raises(CallbackError) as exc_info:
            bind_callback('pass', (1,))

        assert exc_info.value.code == ErrorCode.CALLBACK_INVALID_ARGS

    def test_syntax_error(self) -> None:
        with pytest.raises(CallbackError) as exc_info:
            compile_source_callback('x = = 1')

        assert exc_info.value.code == ErrorCode.CALLBACK_INVALID_SOURCE
        assert 'body line 1' in exc_info.value.notes[0]

    @pytest.mark.parametrize(
        'source',
        [
            'import os',
            'from os import path',
            'global counter',
            '__import__("os")',
            'x = ().__class__',
            'y = print.__self__',
            'f = lambda: 1',
            'def helper():\n    pass',
            'items = (n for n in range(3))',
            'try:\n    pass\nexcept Exception:\n    pass',
            'name = "__imp" + "ort__"',
            'b = table["__builtins__"]',
            'g = frame.f_globals',
            't = text.format(x)',
        ],
    )
    def test_forbidden_constructs_rejected(self, source: str) -> None:
        with pytest.raises(CallbackError) as exc_info:
            compile_source_callback(source)

        assert exc_info.value.code == ErrorCode.CALLBACK_INVALID_SOURCE

    def test_generator_frame_walk_rejected(self) -> None:
        """Reaching the caller's globals through a generator frame is refused."""
        source = (
            'def g():\n'
            '    yield gen.gi_frame.f_back.f_back.f_globals\n'
            'gen = g()\n'
            'for glb in gen:\n'
            '    break\n'
            "b = glb['__builtins__']\n"
            "return b['__import__']('os').getcwd()"
        )

        with pytest.raises(CallbackError) as exc_info:
            bind_callback(source)

        assert exc_info.value.code == ErrorCode.CALLBACK_INVALID_SOURCE
        assert 'FunctionDef is not allowed (body line 1)' in exc_info.value.notes[0]

    @pytest.mark.parametrize(
        'attr', ['gi_frame', 'cr_frame', 'ag_frame', 'f_back', 'tb_frame', 'co_code', '_private'],
    )
    def test_introspection_attributes_rejected(self, attr: str) -> None:
        with pytest.raises(CallbackError) as exc_info:
            compile_source_callback(f'return obj.{attr}', ('obj',))

        assert f"'{attr}'" in exc_info.value.notes[0]

    def test_allowed_constructs_compile(self) -> None:
        source = """
            squares = [n * n for n in values if n % 2 == 0]
            lookup = {str(n): n for n in squares}
            label = f'{len(lookup)} even' if lookup else 'none'
            while squares:
                squares.pop()
            return label, sorted(lookup.values())
        """
        fn = compile_source_callback(source, ('values',))
        assert fn([1, 2, 3, 4]) == ('2 even', [4, 16])

    def test_does_not_see_caller_scope(self) -> None:
        secret = 'hidden'  # noqa: F841
        fn = compile_source_callback('return secret')

        with pytest.raises(NameError):
            fn()

    def test_unsafe_builtins_unavailable(self) -> None:
        assert 'open' not in SAFE_BUILTINS
        fn = compile_source_callback('return open("/etc/passwd")')

        with pytest.raises(NameError):
            fn()

    def test_safe_builtins_available(self) -> None:
        fn = compile_source_callback('return sorted(items)', ('items',))
        assert fn([3, 1, 2]) == [1, 2, 3]

    @pytest.mark.parametrize('name', ['1abc', 'class', '__dunder', 'has space'])
    def test_invalid_slot_names(self, name: str) -> None:
        with pytest.raises(CallbackError) as exc_info:
            compile_source_callback('pass', (name,))

        assert exc_info.value.code == ErrorCode.CALLBACK_INVALID_ARGS
