"""
Record dataclass for a single decoded feed record.
"""

from dataclasses import asdict, dataclass

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass(frozen=True)
class Record:
    """
    Represents one fixed-width record received from the feed.

    Attributes:
        symbol: Ticker symbol, padding trimmed.
        indicator: Single character side/type marker (e.g. "B" or "S").
        quantity: Signed 32-bit quantity.
        price: Signed 32-bit price.
        sequence: 1-based position of the record in the global order.
    """

    symbol: str
    indicator: str
    quantity: int
    price: int
    sequence: int

    def __post_init__(self) -> None:
        if len(self.indicator) != 1:
            raise ValueError(f"indicator must be a single character, got {self.indicator!r}")

        for name in ("quantity", "price", "sequence"):
            value = getattr(self, name)
            if not INT32_MIN <= value <= INT32_MAX:
                raise ValueError(f"{name} out of signed 32-bit range: {value}")

        if self.sequence < 1:
            raise ValueError(f"sequence must be >= 1, got {self.sequence}")

    def to_dict(self) -> dict:
        return asdict(self)
