"""
Expense split calculation.

Splits an expense amount across participants under an equal, percentage or
custom policy. Shares always add up exactly to the expense amount in the
currency's minor unit. Pure computation; persisting the shares is up to the
caller (see ``tripbuddy.storage.expense_writer``).
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from enum import StrEnum
from typing import Iterable, Mapping

# ISO 4217 currencies without the default two minor-unit digits
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)
THREE_DECIMAL_CURRENCIES = frozenset({"BHD", "IQD", "JOD", "KWD", "LYD", "OMR", "TND"})

PERCENTAGE_TOLERANCE = Decimal("0.01")
HUNDRED = Decimal(100)


class ValidationError(ValueError):
    """Split input that cannot produce a valid set of shares."""


class SplitPolicy(StrEnum):
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ShareAmount:
    participant_id: str
    amount: Decimal


def currency_exponent(currency: str) -> int:
    """Number of minor-unit digits for an ISO 4217 currency code."""
    code = (currency or "").upper()
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def _to_decimal(value, what: str) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{what} is not a number: {value!r}")
    if not number.is_finite():
        raise ValidationError(f"{what} must be finite")
    return number


def _to_units(value: Decimal, exponent: int, rounding=ROUND_HALF_UP) -> int:
    """Convert to an integer count of minor units."""
    return int((value * (Decimal(10) ** exponent)).to_integral_value(rounding=rounding))


def _from_units(units: int, exponent: int) -> Decimal:
    return Decimal(units).scaleb(-exponent).quantize(Decimal(1).scaleb(-exponent))


def _dedupe(participant_ids: Iterable[str]) -> list[str]:
    seen = set()
    ordered = []
    for participant_id in participant_ids:
        if participant_id not in seen:
            seen.add(participant_id)
            ordered.append(participant_id)
    return ordered


def _spread(units: list[int], residual: int, eligible: list[int]) -> None:
    """
    Spread ``residual`` minor units over the ``eligible`` positions, one unit
    each in order, wrapping around as needed.
    """
    if residual <= 0 or not eligible:
        return
    per_slot, extra = divmod(residual, len(eligible))
    for i, position in enumerate(eligible):
        units[position] += per_slot + (1 if i < extra else 0)


def _trim(units: list[int], excess: int) -> None:
    """Take ``excess`` minor units back, largest share first, never below zero."""
    for position in sorted(range(len(units)), key=lambda i: -units[i]):
        if excess <= 0:
            return
        taken = min(units[position], excess)
        units[position] -= taken
        excess -= taken


def _policy_values(
    policy_input: Mapping[str, object] | None,
    participants: list[str],
    what: str,
) -> list[Decimal]:
    if not policy_input:
        raise ValidationError(f"{what} are required for this split policy")

    keys = set(policy_input)
    missing = [p for p in participants if p not in keys]
    extra = sorted(keys - set(participants))
    if missing or extra:
        raise ValidationError(
            f"{what} must cover exactly the selected participants "
            f"(missing: {missing}, unexpected: {extra})"
        )

    values = [_to_decimal(policy_input[p], f"{what} for {p}") for p in participants]
    if any(v < 0 for v in values):
        raise ValidationError(f"{what} cannot be negative")
    return values


def _equal(total_units: int, participants: list[str]) -> list[int]:
    base, remainder = divmod(total_units, len(participants))
    units = [base] * len(participants)
    _spread(units, remainder, list(range(len(participants))))
    return units


def _percentage(
    total_units: int,
    participants: list[str],
    policy_input: Mapping[str, object] | None,
) -> list[int]:
    percentages = _policy_values(policy_input, participants, "Percentages")

    total_pct = sum(percentages, Decimal(0))
    if abs(total_pct - HUNDRED) > PERCENTAGE_TOLERANCE:
        raise ValidationError(f"Percentages must add up to 100 (got {total_pct})")

    units = [
        int((Decimal(total_units) * pct / HUNDRED).to_integral_value(rounding=ROUND_DOWN))
        for pct in percentages
    ]
    # Percentages may sum slightly over 100, so the floors can overshoot.
    residual = total_units - sum(units)
    if residual < 0:
        _trim(units, -residual)
    else:
        _spread(units, residual, [i for i, pct in enumerate(percentages) if pct > 0])
    return units


def _custom(
    total_units: int,
    participants: list[str],
    policy_input: Mapping[str, object] | None,
    exponent: int,
) -> list[int]:
    amounts = _policy_values(policy_input, participants, "Custom amounts")
    units = [_to_units(a, exponent) for a in amounts]
    if sum(units) != total_units:
        raise ValidationError(
            f"Custom amounts add up to {_from_units(sum(units), exponent)}, "
            f"expected {_from_units(total_units, exponent)}"
        )
    return units


def compute_shares(
    amount,
    participant_ids: Iterable[str],
    policy: SplitPolicy | str,
    policy_input: Mapping[str, object] | None = None,
    currency: str = "USD",
) -> list[ShareAmount]:
    """
    Compute each participant's share of an expense.

    Args:
        amount: Strictly positive expense amount (Decimal, str, int or float)
        participant_ids: Participants in display order; duplicates are dropped
        policy: equal, percentage or custom
        policy_input: participant_id -> percentage (percentage policy) or
            participant_id -> amount (custom policy); ignored for equal
        currency: ISO 4217 code, decides the rounding precision

    Returns:
        One ShareAmount per participant, in input order, summing to ``amount``

    Raises:
        ValidationError: on empty participants, a non-positive amount, or
            policy input that does not match the participants or the total
    """
    try:
        policy = SplitPolicy(policy)
    except ValueError:
        raise ValidationError(f"Unknown split policy: {policy!r}")

    participants = _dedupe(participant_ids)
    if not participants:
        raise ValidationError("At least one participant is required")

    exponent = currency_exponent(currency)
    total = _to_decimal(amount, "Amount")
    total_units = _to_units(total, exponent)
    if total <= 0 or total_units <= 0:
        raise ValidationError("Amount must be greater than zero")

    if policy == SplitPolicy.EQUAL:
        units = _equal(total_units, participants)
    elif policy == SplitPolicy.PERCENTAGE:
        units = _percentage(total_units, participants, policy_input)
    else:
        units = _custom(total_units, participants, policy_input, exponent)

    return [
        ShareAmount(participant_id=p, amount=_from_units(u, exponent))
        for p, u in zip(participants, units)
    ]
