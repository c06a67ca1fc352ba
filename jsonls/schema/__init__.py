"""Schema resolution: pointers, drafts, references, associations, fetching."""

from .associations import (
    ResolutionState,
    ResolvedSchema,
    SchemaAssociationResolver,
    SchemaResolution,
)
from .catalog import SchemaCatalog
from .drafts import Draft, classify
from .fetcher import FetchState, SchemaFetcher
from .registry import SchemaAssociation, SchemaRegistrationError, SchemaRegistry

__all__ = [
    "Draft",
    "FetchState",
    "ResolutionState",
    "ResolvedSchema",
    "SchemaAssociation",
    "SchemaAssociationResolver",
    "SchemaCatalog",
    "SchemaFetcher",
    "SchemaRegistrationError",
    "SchemaRegistry",
    "SchemaResolution",
    "classify",
]
