import enum
import math
from typing import Sequence, Set, Union

Support = Union[Sequence, Set, 'ClosedInterval', 'IntegerInterval']

class SupportType(enum.Enum):
    FINITE = "finite"
    # bounded below only
    RIGHT_SEMI_INFINITE = "right_semi_infinite"
    # bounded above only
    LEFT_SEMI_INFINITE = "left_semi_infinite"
    INFINITE = "infinite"

    @classmethod
    def from_bounds(cls, lower, upper) -> "SupportType":
        if math.isfinite(lower):
            return cls.FINITE if math.isfinite(upper) else cls.RIGHT_SEMI_INFINITE
        if math.isfinite(upper):
            return cls.LEFT_SEMI_INFINITE
        return cls.INFINITE

    @property
    def is_left_bounded(self) -> bool:
        return self in (SupportType.FINITE, SupportType.RIGHT_SEMI_INFINITE)

    @property
    def is_right_bounded(self) -> bool:
        return self in (SupportType.FINITE, SupportType.LEFT_SEMI_INFINITE)


class ClosedInterval:
    def __init__(self, start, end):
        self.start = start
        self.end = end
    def __contains__(self, ele):
        return self.start <= ele <= self.end
    def __eq__(self, other):
        return type(self) is type(other) and \
            (self.start, self.end) == (other.start, other.end)
    def __hash__(self):
        return hash((self.__class__.__name__, self.start, self.end))
    @property
    def support_type(self) -> SupportType:
        return SupportType.from_bounds(self.start, self.end)
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.start}, {self.end})"


class IntegerInterval(ClosedInterval):
    def __contains__(self, ele):
        if math.isfinite(ele) and ele == int(ele):
            return self.start <= ele <= self.end
        return False
    def __iter__(self):
        k = self.start
        while k <= self.end:
            yield k
            k += 1
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.start}, {self.end})"
