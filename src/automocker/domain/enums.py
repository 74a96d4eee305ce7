from enum import Enum


class Accessibility(str, Enum):
    """Visibility of a constructor candidate.

    Attributes:
        PUBLIC: Candidate is considered on every constructor search.
        NON_PUBLIC: Candidate is only considered when non-public constructors are
            requested, or after escalation when no public candidate is viable.
    """

    PUBLIC = "public"
    NON_PUBLIC = "non_public"

    def __str__(self) -> str:
        return self.value


class ResolutionSource(str, Enum):
    """How a requested type was mapped to the type that gets built.

    Attributes:
        SELF: The requested type is concrete and is built as-is.
        MAPPING: An explicit type mapping was registered.
        SCAN: The single implementation was found by subclass scanning.
    """

    SELF = "self"
    MAPPING = "mapping"
    SCAN = "scan"

    def __str__(self) -> str:
        return self.value
