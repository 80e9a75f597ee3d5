"""Static derivation table: facet -> dependent operations.

This module intentionally contains *no* behaviour. The refresher binds
each :class:`DerivedOperation` to one of its methods and, after raising a
facet update, runs the dependents listed here in order.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from vocbridge.state.events import StateFacet


class DerivedOperation(StrEnum):
    REFRESH_CHARGE_LOCATIONS = "refresh_charge_locations"
    REFRESH_POSITION = "refresh_position"
    RECOMPUTE_DISTANCES = "recompute_distances"


DERIVATIONS: Mapping[StateFacet, tuple[DerivedOperation, ...]] = MappingProxyType(
    {
        # Capabilities come from attributes, so capability-gated fetches
        # can only run once attributes are known.
        StateFacet.ATTRIBUTES: (
            DerivedOperation.REFRESH_CHARGE_LOCATIONS,
            DerivedOperation.REFRESH_POSITION,
        ),
        StateFacet.CHARGE_LOCATIONS: (DerivedOperation.RECOMPUTE_DISTANCES,),
        StateFacet.POSITION: (DerivedOperation.RECOMPUTE_DISTANCES,),
    }
)


def dependents(facet: StateFacet) -> tuple[DerivedOperation, ...]:
    """Operations to run after *facet* was updated."""
    return DERIVATIONS.get(facet, ())
