"""Known-identity matching."""

from lumenta.identity.base_identity import (
    BaseIdentityBackend,
    IdentityMatch,
    IdentityObservation,
)
from lumenta.identity.identity_registry import IdentityRegistry, l2_normalize
from lumenta.identity.histogram_identity import HistogramIdentityBackend
from lumenta.identity.correlator import IdentityCorrelator, match_observation

__all__ = [
    "BaseIdentityBackend",
    "IdentityMatch",
    "IdentityObservation",
    "IdentityRegistry",
    "l2_normalize",
    "HistogramIdentityBackend",
    "IdentityCorrelator",
    "match_observation",
]
