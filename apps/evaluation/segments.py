# apps/evaluation/segments.py
from typing import Iterable, Optional

from .types import Segment, UserContext


class SegmentMatcher:
    """Matches a user against targeting segments.

    Fields inside a segment are AND-combined, segments are OR-combined.
    An unset segment field is a wildcard; a set one needs an exact,
    case-sensitive match on the user attribute.
    """

    def matches(self, user: Optional[UserContext], segment: Segment) -> bool:
        for user_field, expected in segment.defined_fields():
            actual = getattr(user, user_field, None) if user is not None else None
            if actual != expected:
                return False
        return True

    def matches_any(self, user: Optional[UserContext], segments: Iterable[Segment]) -> bool:
        # an empty segment list is open to everyone
        segments = tuple(segments)
        if not segments:
            return True
        return any(self.matches(user, segment) for segment in segments)
