from __future__ import annotations

import asyncio
import logging

from marketplace.client.polling import Poller


def test_poller_fires_until_cancelled():
    ticks = []

    async def _tick():
        ticks.append(1)

    async def _run():
        poller = Poller(0.01, _tick, name="test-poll")
        poller.start()
        await asyncio.sleep(0.06)
        poller.cancel()
        fired = len(ticks)
        await asyncio.sleep(0.04)
        return poller, fired

    poller, fired = asyncio.run(_run())

    assert fired >= 2
    assert len(ticks) == fired
    assert poller.running is False


def test_poller_does_not_wait_for_slow_ticks():
    started = []

    async def _slow_tick():
        started.append(1)
        await asyncio.sleep(1)

    async def _run():
        poller = Poller(0.01, _slow_tick)
        poller.start()
        await asyncio.sleep(0.06)
        poller.cancel()

    asyncio.run(_run())

    assert len(started) >= 2


def test_poller_start_is_idempotent():
    ticks = []

    async def _tick():
        ticks.append(1)

    async def _run():
        poller = Poller(0.02, _tick)
        poller.start()
        poller.start()
        await asyncio.sleep(0.03)
        poller.cancel()

    asyncio.run(_run())

    assert len(ticks) == 1


def test_poller_logs_tick_failures(caplog):
    async def _broken():
        raise RuntimeError("boom")

    async def _run():
        poller = Poller(0.01, _broken, name="broken-poll")
        poller.start()
        await asyncio.sleep(0.035)
        poller.cancel()

    with caplog.at_level(logging.ERROR, logger="marketplace.client.polling"):
        asyncio.run(_run())

    assert "broken-poll tick failed" in caplog.text
