import math
from dataclasses import dataclass
# =============== #
#  МОДЕЛИ ДАННЫХ  #
# =============== #


class InvalidRangeError(ValueError):
    pass


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


@dataclass(frozen=True)
class FloatRange:
    minimum: float
    maximum: float

    def __post_init__(self):
        if math.isnan(self.minimum) or math.isnan(self.maximum):
            raise InvalidRangeError(f"range bounds must be numbers: [{self.minimum}, {self.maximum}]")
        if self.minimum > self.maximum:
            raise InvalidRangeError(
                f"range minimum must not exceed maximum: [{self.minimum}, {self.maximum}]")


@dataclass(frozen=True)
class ChunkDescriptor:
    start: int
    length: int
    seed: int  # сид подпотока этого куска

    @property
    def end(self) -> int:
        return self.start + self.length
