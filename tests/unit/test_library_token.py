# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio

import pytest

from lifecycle.errors import InitializationError
from lifecycle.library import LibraryInitToken

from fakes import FakeLibrary


def test_ensure_initializes_once():
    lib = FakeLibrary()
    token = LibraryInitToken(library=lib, options={"open_timeout_s": 3})

    async def scenario():
        await token.ensure()
        await token.ensure()

    asyncio.run(scenario())

    assert lib.init_calls == 1
    assert dict(lib.init_options) == {"open_timeout_s": 3}
    assert token.initialized


def test_concurrent_callers_share_one_init():
    class SlowLibrary(FakeLibrary):
        async def init(self, options):
            await asyncio.sleep(0.01)
            await super().init(options)

    lib = SlowLibrary()
    token = LibraryInitToken(library=lib)

    async def scenario():
        return await asyncio.gather(*(token.ensure() for _ in range(5)))

    results = asyncio.run(scenario())

    assert lib.init_calls == 1
    assert all(r is lib for r in results)


def test_failed_init_is_not_remembered():
    lib = FakeLibrary(init_error=InitializationError("down"))
    token = LibraryInitToken(library=lib)

    with pytest.raises(InitializationError):
        asyncio.run(token.ensure())

    assert not token.initialized

    lib.init_error = None
    asyncio.run(token.ensure())

    assert token.initialized
    assert lib.init_calls == 2


def test_options_are_read_only():
    token = LibraryInitToken(library=FakeLibrary(), options={"a": 1})
    options = token._options  # pylint: disable=protected-access

    with pytest.raises(TypeError):
        options["a"] = 2  # type: ignore[index]
