from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class MilestoneKind(Enum):
    TIME = "time"                    # trigger = months after booking
    CONSTRUCTION = "construction"    # trigger = percent complete
    HANDOVER = "handover"            # due at handover
    POST_HANDOVER = "post-handover"  # trigger = months after handover


@dataclass(frozen=True)
class PaymentMilestone:
    kind: MilestoneKind
    trigger_value: Decimal = Decimal("0")
    payment_percent: Decimal = Decimal("0")  # Whole percent of base price, e.g. 10 = 10%
    label: str = ""
    id: str = ""
    is_handover: bool = False  # time/construction milestone paid as the handover installment

    @property
    def due_at_handover(self) -> bool:
        return self.is_handover or self.kind is MilestoneKind.HANDOVER

    @property
    def is_post_handover(self) -> bool:
        return self.kind is MilestoneKind.POST_HANDOVER

    def describe(self) -> str:
        name = self.label or self.id or self.kind.value
        return f"{name} ({self.kind.value} @ {self.trigger_value}, {self.payment_percent}%)"


@dataclass(frozen=True, order=True)
class MonthYear:
    """Calendar month anchor (booking date, handover date)."""
    year: int
    month: int  # 1-12

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")

    @classmethod
    def from_quarter(cls, quarter: int, year: int) -> "MonthYear":
        """Quarter-end month, e.g. Q4 2027 -> December 2027."""
        if not 1 <= quarter <= 4:
            raise ValueError(f"quarter must be 1-4, got {quarter}")
        return cls(year=year, month=quarter * 3)

    def month_index(self) -> int:
        return self.year * 12 + (self.month - 1)

    def months_until(self, other: "MonthYear") -> int:
        return other.month_index() - self.month_index()

    def add_months(self, months: int) -> "MonthYear":
        idx = self.month_index() + months
        return MonthYear(year=idx // 12, month=idx % 12 + 1)


@dataclass(frozen=True)
class PaymentEvent:
    """A resolved cash outflow owed to the developer in a given projection month."""
    month: int
    amount: Decimal
    percent: Decimal
    labels: tuple[str, ...] = ()
    is_handover: bool = False
    is_post_handover: bool = False


@dataclass(frozen=True)
class PaymentSchedule:
    events: list[PaymentEvent]
    base_price: Decimal
    handover_month: int
    down_payment_percent: Decimal = Decimal("0")
    pre_handover_percent: Decimal = Decimal("0")   # Down payment + installments before handover
    handover_percent: Decimal = Decimal("0")       # Everything due on the handover month
    post_handover_percent: Decimal = Decimal("0")
    _by_month: dict[int, Decimal] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        for event in self.events:
            self._by_month[event.month] = self._by_month.get(event.month, Decimal("0")) + event.amount

    @property
    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.events), Decimal("0"))

    @property
    def last_payment_month(self) -> int:
        return self.events[-1].month if self.events else 0

    def amount_due(self, month: int) -> Decimal:
        return self._by_month.get(month, Decimal("0"))

    def paid_through(self, month: int) -> Decimal:
        """Cumulative amount due up to and including `month`."""
        return sum((e.amount for e in self.events if e.month <= month), Decimal("0"))

    def unpaid_after(self, month: int) -> Decimal:
        """Installments not yet due at `month` (transferred to a resale buyer)."""
        return sum((e.amount for e in self.events if e.month > month), Decimal("0"))

    def post_handover_events(self) -> list[PaymentEvent]:
        return [e for e in self.events if e.month > self.handover_month]
