"""Upload progress tests"""
import asyncio

import pytest

from sheetdesk.helpers.progress import (
    SyntheticTicker,
    TransferProgress,
    merge_progress,
    scale_transfer,
)


@pytest.mark.unit
class TestScaling:

    @pytest.mark.parametrize("sent,total,expected", [
        (0, 1000, 0),
        (500, 1000, 42),
        (1000, 1000, 85),
        (2000, 1000, 85),
        (10, 0, 0),
    ])
    def test_scale_transfer(self, sent, total, expected):
        assert scale_transfer(sent, total) == expected

    def test_merge_never_goes_backwards(self):
        assert merge_progress(40, 20) == 40

    def test_merge_clamps_to_ceiling(self):
        assert merge_progress(84, 90) == 85


@pytest.mark.unit
class TestTransferProgress:

    def test_sources_interleave_monotonically(self):
        progress = TransferProgress()
        seen = [
            progress.on_tick(2),
            progress.on_bytes(500, 1000),
            progress.on_tick(2),
            progress.on_bytes(100, 1000),
            progress.on_bytes(1000, 1000),
            progress.on_tick(2),
        ]
        assert seen == sorted(seen)
        assert seen[-1] == 85

    def test_complete_and_reset(self):
        progress = TransferProgress()
        progress.on_bytes(1000, 1000)
        assert progress.complete() == 100
        assert progress.reset() == 0


@pytest.mark.unit
class TestSyntheticTicker:

    @pytest.mark.asyncio
    async def test_ticks_up_to_ceiling_and_stops(self):
        progress = TransferProgress(ceiling=10)
        values = []
        ticker = SyntheticTicker(progress, values.append, step=4, interval=0.01)

        ticker.start()
        for _ in range(50):
            if not ticker.running:
                break
            await asyncio.sleep(0.01)

        assert values == [4, 8, 10]
        assert not ticker.running

    @pytest.mark.asyncio
    async def test_stop_cancels(self):
        progress = TransferProgress()
        values = []
        ticker = SyntheticTicker(progress, values.append, step=2, interval=0.05)

        ticker.start()
        await asyncio.sleep(0.12)
        ticker.stop()
        count = len(values)
        await asyncio.sleep(0.15)

        assert not ticker.running
        assert len(values) == count
