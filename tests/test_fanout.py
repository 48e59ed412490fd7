# tests/test_fanout.py
import asyncio

import pytest
from core.exceptions import UpstreamServiceError
from utils.fanout import gather_isolated


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _boom():
    raise UpstreamServiceError("down", status_code=503, body="busy")


@pytest.mark.asyncio
async def test_failed_branch_does_not_cancel_siblings():
    results = await gather_isolated(
        {"slow": _value("a", 0.01), "bad": _boom(), "fast": _value("b")}
    )
    assert list(results) == ["slow", "bad", "fast"]
    assert results["slow"].ok and results["slow"].value == "a"
    assert results["fast"].unwrap() == "b"
    assert not results["bad"].ok
    assert isinstance(results["bad"].error, UpstreamServiceError)


@pytest.mark.asyncio
async def test_unwrap_reraises_branch_error():
    results = await gather_isolated({"bad": _boom()})
    with pytest.raises(UpstreamServiceError):
        results["bad"].unwrap()


@pytest.mark.asyncio
async def test_empty_mapping_returns_empty_dict():
    assert await gather_isolated({}) == {}
