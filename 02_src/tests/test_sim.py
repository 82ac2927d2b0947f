"""Tests for the unit simulator."""

import asyncio
import random

import pytest

from sim import Sim
from supervision.registry import parse_definition


@pytest.fixture
def descriptor(definition):
    return parse_definition(definition())


class TestSimTick:
    """Tests for Sim.tick()."""

    def test_publishes_allowed_status(self, bus, descriptor):
        """Test a tick publishes an allowed status to a feature state topic."""
        sim = Sim(bus=bus, units=lambda: [descriptor], rng=random.Random(1))

        assert sim.tick() is True
        topic, payload = bus.published[0]
        assert topic == descriptor.features[0].state_topic
        assert payload["status"] in descriptor.features[0].allowed_statuses
        assert payload["details"] == {"source": "sim"}

    def test_no_units(self, bus):
        """Test nothing is published without units."""
        sim = Sim(bus=bus, units=list)
        assert sim.tick() is False
        assert bus.published == []

    def test_offline(self, bus, descriptor):
        """Test nothing is published while the bus is down."""
        bus.go_offline()
        sim = Sim(bus=bus, units=lambda: [descriptor])
        assert sim.tick() is False


class TestSimStartStop:
    """Tests for Sim.start() and Sim.stop()."""

    @pytest.mark.asyncio
    async def test_start_stop(self, bus, descriptor):
        """Test the background task publishes and stops cleanly."""
        sim = Sim(bus=bus, units=lambda: [descriptor], interval=0.01)
        await sim.start()
        assert sim.running
        await asyncio.sleep(0.05)
        await sim.stop()

        assert not sim.running
        assert len(bus.published) >= 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self, bus):
        """Test stop is safe before start."""
        sim = Sim(bus=bus, units=list)
        await sim.stop()
        assert not sim.running
