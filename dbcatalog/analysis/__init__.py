"""In-memory analysis of an assembled catalog."""

from .weak_associations import (
    GENERIC_KEY_NAMES,
    NamingRules,
    ProposedWeakAssociation,
    WeakAssociationsAnalyzer,
    WeakAssociationsLoader,
    analyze,
    build_weak_association,
    plural,
    singular,
)

__all__ = [
    "GENERIC_KEY_NAMES",
    "NamingRules",
    "ProposedWeakAssociation",
    "WeakAssociationsAnalyzer",
    "WeakAssociationsLoader",
    "analyze",
    "build_weak_association",
    "plural",
    "singular",
]
