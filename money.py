from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Sequence, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[int, float, Decimal]


def round_money(value: Number) -> Decimal:
    if isinstance(value, float):
        value = Decimal(str(value))
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def cents_to_amount(cents: int) -> Decimal:
    return round_money(Decimal(cents) / 100)


def amount_to_cents(amount: Number) -> int:
    if isinstance(amount, float):
        amount = Decimal(str(amount))
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def average(total_cents: int, count: int) -> Decimal:
    if not count:
        return ZERO
    return round_money(Decimal(total_cents) / 100 / count)


def normalize_percentages(parts_cents: Sequence[int]) -> list[Decimal]:
    # Largest remainder: floor every share, hand leftover hundredths to the
    # largest remainders, earlier parts first.
    whole = sum(parts_cents)
    if not whole:
        return [ZERO for _ in parts_cents]
    floors = []
    remainders = []
    for part in parts_cents:
        floor, remainder = divmod(part * 10_000, whole)
        floors.append(floor)
        remainders.append(remainder)
    leftover = 10_000 - sum(floors)
    by_remainder = sorted(range(len(floors)), key=lambda i: -remainders[i])
    for idx in by_remainder[:leftover]:
        floors[idx] += 1
    return [Decimal(share).scaleb(-2) for share in floors]


def parse_amount(value: str) -> int:
    clean = value.strip().replace("€", "").replace("$", "").replace(" ", "")
    clean = clean.replace(",", ".")
    if clean.count(".") > 1:
        parts = clean.split(".")
        clean = "".join(parts[:-1]) + "." + parts[-1]
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    cents = amount_to_cents(amount)
    if cents <= 0:
        raise ValueError("Amount must be greater than 0")
    return cents
