"""Position acquisition and stabilization engine.

Leaf to root: :class:`ReadingValidator`, :class:`ConsistencyEvaluator`,
:class:`BestEstimateTracker`, :class:`RefinementEngine` and the
:class:`StabilizationStateMachine` that drives them.
"""

from pygeofix.stabilization.consistency import ConsistencyEvaluator
from pygeofix.stabilization.machine import StabilizationStateMachine
from pygeofix.stabilization.policy import is_better
from pygeofix.stabilization.refinement import RefinementEngine
from pygeofix.stabilization.timers import AsyncioScheduler, ManualScheduler, Scheduler, TimerPurpose, TimerSlots
from pygeofix.stabilization.tracker import BestEstimateTracker, IngestResult
from pygeofix.stabilization.validator import ReadingValidator

__all__ = [
    "AsyncioScheduler",
    "BestEstimateTracker",
    "ConsistencyEvaluator",
    "IngestResult",
    "ManualScheduler",
    "ReadingValidator",
    "RefinementEngine",
    "Scheduler",
    "StabilizationStateMachine",
    "TimerPurpose",
    "TimerSlots",
    "is_better",
]
