"""Best-effort location sampling under a deadline."""

from __future__ import annotations

from fix_sampler.config import SamplerConfig
from fix_sampler.errors import NoLocationCapability, NoSignalAcquired, SamplerError
from fix_sampler.models import PositionError, PositionSample, SessionState, WatchOptions
from fix_sampler.sampler import LocationSampler, SamplingSession

__all__ = [
    "LocationSampler",
    "NoLocationCapability",
    "NoSignalAcquired",
    "PositionError",
    "PositionSample",
    "SamplerConfig",
    "SamplerError",
    "SamplingSession",
    "SessionState",
    "WatchOptions",
]
