class ConversionError(Exception):
    """Base class for errors raised while building or enhancing a dependency graph"""
    pass


class UnknownRelationError(ConversionError):
    """Raised by a strict catalog when a relation name can't be resolved"""
    pass


class FrozenGraphError(ConversionError):
    """Raised when trying to mutate a graph snapshot"""
    pass


class GraphStructureError(ConversionError):
    """Raised when an operation refers to a word or edge that is not part of the graph"""
    pass
