"""Per-vehicle state events and derivation graph.

Every cached facet of a vehicle announces a typed ``FacetUpdated`` event
when it is replaced. Which operations run in response is declared once, in
:data:`vocbridge.state.graph.DERIVATIONS`, instead of being wired through
ad-hoc listeners.
"""

from vocbridge.state.events import FacetUpdated, StateFacet
from vocbridge.state.graph import DERIVATIONS, DerivedOperation, dependents

__all__ = ["DERIVATIONS", "DerivedOperation", "FacetUpdated", "StateFacet", "dependents"]
