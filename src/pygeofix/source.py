"""Interface to the position source collaborator."""

from __future__ import annotations

from typing import Protocol

from pygeofix.models.sensor import AcquisitionRequest


class PositionSource(Protocol):
    """Sensor-side collaborator that watches the hardware.

    The engine calls :meth:`start_acquisition` when a session starts and
    :meth:`stop_acquisition` when it is paused.  The source pushes samples
    back through the engine's ``on_reading`` / ``on_error`` and should pass
    ``request.generation`` along with them.
    """

    def start_acquisition(self, request: AcquisitionRequest) -> None: ...

    def stop_acquisition(self) -> None: ...
