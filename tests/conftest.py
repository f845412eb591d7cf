from __future__ import annotations

import pytest
from helpers import FakeSource, ManualScheduler, Recorder

from pygeofix.config import StabilizerConfig
from pygeofix.publisher import EventBus
from pygeofix.stabilization.machine import StabilizationStateMachine


@pytest.fixture
def config() -> StabilizerConfig:
    return StabilizerConfig()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> Recorder:
    rec = Recorder()
    bus.subscribe(rec)
    return rec


@pytest.fixture
def machine(
    config: StabilizerConfig,
    bus: EventBus,
    source: FakeSource,
    scheduler: ManualScheduler,
    recorder: Recorder,
) -> StabilizationStateMachine:
    return StabilizationStateMachine(config, publisher=bus, source=source, scheduler=scheduler)
