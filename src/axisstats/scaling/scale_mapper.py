"""
Scale mapper: world keys -> normalized [0, 1] axis positions.

Every visualization maps its axis keys through compute_mapping() before
anything is drawn. The result covers each distinct key exactly once.

Degenerate key sets bypass the policy entirely:

  - no keys   -> {}
  - one key   -> {k: 0.5}
  - two keys  -> smaller 0.10, larger 0.90

The bypass is evaluated before the policy is even looked at, so it also
discards weights supplied for the sort policies. Panels with one or two bins
rely on the fixed 0.10 / 0.90 layout, so this is kept as is.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Optional, Union

import numpy as np

from axisstats.errors import UnsupportedScalePolicyError
from axisstats.scaling.policy import ScalePolicy, ScaleSpec
from axisstats.utils.logging import get_logger

logger = get_logger(__name__)

SINGLE_KEY_POSITION = 0.5
TWO_KEY_POSITIONS = (0.10, 0.90)

Weights = Mapping[Union[str, int], float]


def compute_mapping(
    policy: Union[ScalePolicy, ScaleSpec, str],
    keys: Iterable[int],
    weights: Optional[Weights] = None,
    min_bound: Optional[int] = None,
    max_bound: Optional[int] = None,
) -> dict[int, float]:
    """
    Map distinct world keys to normalized positions under a scale policy.

    Args:
        policy: ScalePolicy, ScaleSpec, or policy tag (enum value, name or UI label).
        keys: World keys; duplicates are collapsed.
        weights: Per-key weight keyed by the key as a string (or the int key).
            Required by the sort policies, ignored by the others.
        min_bound: Lower world bound. Defaults to the smallest key.
        max_bound: Upper world bound. Defaults to the largest key.

    Returns:
        Dict mapping every distinct key to a float.

    Raises:
        UnsupportedScalePolicyError: If policy is not a known scale policy.
        ValueError: If a sort policy is requested without weights.
    """
    distinct = sorted({int(k) for k in keys})
    n = len(distinct)

    if n == 0:
        return {}
    if n == 1:
        return {distinct[0]: SINGLE_KEY_POSITION}
    if n == 2:
        return {distinct[0]: TWO_KEY_POSITIONS[0], distinct[1]: TWO_KEY_POSITIONS[1]}

    resolved = ScalePolicy.coerce(policy)
    lo = distinct[0] if min_bound is None else int(min_bound)
    hi = distinct[-1] if max_bound is None else int(max_bound)

    if resolved is ScalePolicy.LINEAR:
        return _linear(distinct, lo, hi)
    elif resolved is ScalePolicy.LOG:
        return _log(distinct, lo, hi)
    elif resolved is ScalePolicy.EQUAL_RANK:
        return _equal_rank(distinct)
    elif resolved is ScalePolicy.SORT_ASCENDING:
        return _sort_on(distinct, _require_weights(resolved, weights), descending=False)
    elif resolved is ScalePolicy.SORT_DESCENDING:
        return _sort_on(distinct, _require_weights(resolved, weights), descending=True)
    raise UnsupportedScalePolicyError(policy)


def _linear(distinct: list[int], lo: int, hi: int) -> dict[int, float]:
    if lo == hi:
        return {k: SINGLE_KEY_POSITION for k in distinct}
    # Integer subtraction first: packed keys overflow float64 precision otherwise.
    span = float(hi - lo)
    offsets = np.array([float(k - lo) for k in distinct], dtype=np.float64)
    return dict(zip(distinct, (offsets / span).tolist()))


def _log(distinct: list[int], lo: int, hi: int) -> dict[int, float]:
    lo = max(lo, 1)
    log_lo = math.log(lo)
    log_span = math.log(hi) - log_lo if hi > 0 else 0.0
    mapping: dict[int, float] = {}
    for k in distinct:
        if k <= 1:
            mapping[k] = 0.0
        elif log_span == 0.0:
            mapping[k] = SINGLE_KEY_POSITION
        else:
            mapping[k] = (math.log(k) - log_lo) / log_span
    return mapping


def _equal_rank(distinct: list[int]) -> dict[int, float]:
    ranks = np.arange(len(distinct), dtype=np.float64) / (len(distinct) - 1)
    return dict(zip(distinct, ranks.tolist()))


def _sort_on(distinct: list[int], weights: Weights, *, descending: bool) -> dict[int, float]:
    pairs = [(_weight_of(k, weights), k) for k in distinct]
    # Descending flips the tie-break on key as well, so this is not 1 - ascending.
    pairs.sort(reverse=descending)
    divisor = len(pairs) - 1
    return {k: i / divisor for i, (_, k) in enumerate(pairs)}


def _weight_of(key: int, weights: Weights) -> float:
    if str(key) in weights:
        return float(weights[str(key)])
    if key in weights:
        return float(weights[key])
    logger.debug("no weight for key %s, using 0.0", key)
    return 0.0


def _require_weights(policy: ScalePolicy, weights: Optional[Weights]) -> Weights:
    if weights is None:
        raise ValueError(f"Scale policy {policy.value!r} requires a weight map")
    return weights
