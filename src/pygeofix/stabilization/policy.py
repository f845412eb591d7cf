"""Best-estimate replacement policy.

Pure functions only; the tracker owns the state they are applied to.
"""

from __future__ import annotations

from pygeofix.config import StabilizerConfig
from pygeofix.models.reading import RawReading


def is_better(
    new: RawReading,
    current: RawReading | None,
    *,
    fast: bool,
    config: StabilizerConfig,
) -> bool:
    """Decide whether *new* should replace *current* as the best estimate.

    Policy:
    - No current best: accept.
    - Equal or worse accuracy: never accept.
    - Fast mode: accept on a gain above ``improvement_threshold_fast`` or a
      ratio above ``ratio_threshold_fast``.
    - Otherwise: accept on a gain above ``improvement_threshold_stable``, a
      ratio above ``convergence_factor``, or a gain below
      ``similar_accuracy_threshold``.
    """
    if current is None:
        return True

    new_acc = new.accuracy_meters
    cur_acc = current.accuracy_meters
    if new_acc >= cur_acc:
        return False

    if new_acc <= 0:
        return False

    improvement = cur_acc - new_acc
    ratio = cur_acc / new_acc

    if fast:
        return improvement > config.improvement_threshold_fast or ratio > config.ratio_threshold_fast

    if improvement > config.improvement_threshold_stable or ratio > config.convergence_factor:
        return True
    # Mid-sized gains (between the similar and stable thresholds) with a
    # small ratio are the only strict improvements rejected here.
    return improvement < config.similar_accuracy_threshold
