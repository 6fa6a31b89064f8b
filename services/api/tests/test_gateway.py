"""Gateway helpers: result unwrapping, status mapping and the store timeout."""
import asyncio

import pytest
from fastapi import HTTPException

from triptalk.config import settings
from triptalk.gateway import STATUS_FOR_KIND, bounded, require_field, resolve, unwrap
from triptalk.results import ErrorKind, failure, success


def test_every_error_kind_has_a_status():
    assert set(STATUS_FOR_KIND) == set(ErrorKind)


def test_unwrap_returns_value():
    assert unwrap(success([1, 2])) == [1, 2]


@pytest.mark.parametrize(
    "kind, code",
    [
        (ErrorKind.VALIDATION, 400),
        (ErrorKind.CONFLICT, 400),
        (ErrorKind.SELF_REFERENCE, 400),
        (ErrorKind.STATE, 400),
        (ErrorKind.AUTH, 401),
        (ErrorKind.AUTHORIZATION, 403),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.TIMEOUT, 504),
    ],
)
def test_unwrap_raises_mapped_status(kind, code):
    with pytest.raises(HTTPException) as excinfo:
        unwrap(failure(kind, "nope"))
    assert excinfo.value.status_code == code
    assert excinfo.value.detail == "nope"


def test_require_field():
    assert require_field("bob", "missing") == "bob"
    with pytest.raises(HTTPException) as excinfo:
        require_field("", "missing")
    assert excinfo.value.status_code == 400


async def test_slow_store_call_times_out(monkeypatch):
    monkeypatch.setattr(settings, "store_timeout_seconds", 0.01)

    async def slow():
        await asyncio.sleep(1)
        return success("late")

    result = await bounded(slow())

    assert result.error.kind is ErrorKind.TIMEOUT
    with pytest.raises(HTTPException) as excinfo:
        await resolve(slow())
    assert excinfo.value.status_code == 504


async def test_fast_store_call_passes_through():
    assert await resolve(_instant()) == "ok"


async def _instant():
    return success("ok")
