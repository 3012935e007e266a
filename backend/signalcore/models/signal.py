"""Signal and indicator snapshot models.

The wire format is camelCase JSON (``entryPrice``, ``upperExtreme``,
``createdAt`` ...), matching what dashboards and notification consumers
read. Python code uses the snake_case field names.
"""

import random
import string
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class Direction(str, Enum):
    """Binary option direction."""

    HIGH = "HIGH"
    LOW = "LOW"


class Strength(str, Enum):
    """Signal strength bucket derived from confidence."""

    WEAK = "WEAK"
    MEDIUM = "MEDIUM"
    STRONG = "STRONG"


class TradeResult(str, Enum):
    """Outcome attached to a signal by an external collaborator."""

    WIN = "WIN"
    LOSS = "LOSS"
    TIE = "TIE"


class BollingerBands(BaseModel):
    """Bollinger envelope at 2 and 3 standard deviations."""

    model_config = _WIRE_CONFIG

    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    upper_extreme: float = 0.0
    lower_extreme: float = 0.0


class IndicatorSnapshot(BaseModel):
    """Indicator values computed from the full bar window."""

    model_config = _WIRE_CONFIG

    bollinger: BollingerBands = BollingerBands()
    ema20: float = 0.0
    rsi: float = 0.0

    @classmethod
    def empty(cls) -> "IndicatorSnapshot":
        """Default snapshot returned when there is no data."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self == IndicatorSnapshot()


def generate_signal_id(now_ms: int) -> str:
    """Generate a unique signal id: ``signal_<ms>_<9 random chars>``.

    Notification consumers tag notifications by this id, so two calls
    in the same millisecond must still differ.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"signal_{now_ms}_{suffix}"


class Signal(BaseModel):
    """Directional trading signal produced by the decision function."""

    model_config = _WIRE_CONFIG

    id: str
    symbol: str
    timeframe: str
    direction: Direction
    strength: Strength
    entry_price: float
    confidence: int
    expiry_time: int  # minutes
    indicators: IndicatorSnapshot
    analysis: str = ""
    timestamp: int
    created_at: int

    # Outcome, attached after expiry
    exit_price: float | None = None
    result: TradeResult | None = None
    payout: float | None = None

    def to_wire(self) -> dict:
        """Serialize to the camelCase wire format."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_wire(cls, data: dict | str | bytes) -> "Signal":
        """Parse a signal from its wire format (dict or JSON text)."""
        if isinstance(data, (str, bytes)):
            return cls.model_validate_json(data)
        return cls.model_validate(data)

    def __repr__(self) -> str:
        return (
            f"Signal({self.symbol} {self.direction.value} "
            f"conf={self.confidence}% @ {self.entry_price})"
        )
