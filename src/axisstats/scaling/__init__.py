"""Axis scaling: world keys, scale policies and the scale mapper."""

from axisstats.scaling.policy import (
    ScalePolicy,
    ScaleSpec,
    WeightSource,
    all_scale_labels,
    simple_scale_labels,
)
from axisstats.scaling.scale_mapper import compute_mapping
from axisstats.scaling.world_key import pack_key, pack_keys, to_signed64, unpack_key

__all__ = [
    "ScalePolicy",
    "ScaleSpec",
    "WeightSource",
    "all_scale_labels",
    "compute_mapping",
    "pack_key",
    "pack_keys",
    "simple_scale_labels",
    "to_signed64",
    "unpack_key",
]
