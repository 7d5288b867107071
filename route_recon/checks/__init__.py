from .base import IntegrityCheck, CheckRegistry, registry
from .builtin import CountMatchCheck, DuplicateAssignmentCheck, UniqueIdCheck, UnresolvedReferenceCheck

registry.register(CountMatchCheck)
registry.register(DuplicateAssignmentCheck)
registry.register(UniqueIdCheck)
registry.register(UnresolvedReferenceCheck)

__all__ = [
    "IntegrityCheck",
    "CheckRegistry",
    "registry",
    "CountMatchCheck",
    "DuplicateAssignmentCheck",
    "UniqueIdCheck",
    "UnresolvedReferenceCheck",
]
