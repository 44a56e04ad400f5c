"""
Autopayment Advisor

Most flatmates pay rent by a recurring bank transfer. The advisor looks
at recent payments to guess the amount of that transfer and suggests a
new amount that brings the balance back to zero over a few weeks.
"""

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

import structlog

from flatledger.models.ledger import (
    AutopaymentAdvice,
    AutopaymentStatus,
    WeeklyObligation,
)


logger = structlog.get_logger(__name__)

ON_TRACK_FRACTION = Decimal("0.5")


def detect_autopayment(
    weekly_breakdown: Sequence[WeeklyObligation],
    lookback_weeks: int = 8,
) -> tuple[Optional[Decimal], int]:
    """
    Find the most common payment amount in the last lookback_weeks weeks.

    Amounts are rounded to the nearest dollar before counting. An amount
    must appear at least twice to count as an autopayment; on a tie the
    amount seen first wins.

    Returns:
        (amount, frequency), or (None, 0) when nothing repeats
    """
    recent = weekly_breakdown[-lookback_weeks:] if lookback_weeks > 0 else []

    counts: Counter[Decimal] = Counter()
    for week in recent:
        for payment in week.payment_transactions:
            counts[payment.amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)] += 1

    detected: Optional[Decimal] = None
    frequency = 0
    # Counter preserves insertion order
    for amount, count in counts.items():
        if count >= 2 and count > frequency:
            detected = amount
            frequency = count

    return detected, frequency


def recommend_autopayment(
    current_weekly_rate: Optional[Decimal],
    total_balance: Decimal,
    weekly_breakdown: Sequence[WeeklyObligation],
    lookback_weeks: int = 8,
    correction_weeks: int = 8,
) -> Optional[AutopaymentAdvice]:
    """
    Recommend a weekly autopayment for a flatmate.

    Returns None if the flatmate has no current rate.
    """
    if not current_weekly_rate:
        return None

    detected, frequency = detect_autopayment(weekly_breakdown, lookback_weeks)

    magnitude = abs(total_balance)
    if magnitude <= current_weekly_rate * ON_TRACK_FRACTION:
        status = AutopaymentStatus.ON_TRACK
    elif total_balance > 0:
        status = AutopaymentStatus.AHEAD
    else:
        status = AutopaymentStatus.BEHIND

    suggested = current_weekly_rate - total_balance / correction_weeks

    advice = AutopaymentAdvice(
        status=status,
        required_weekly=current_weekly_rate,
        total_balance=total_balance,
        detected_amount=detected,
        detected_frequency=frequency,
        weeks_to_settle=magnitude / current_weekly_rate,
        correction_weeks=correction_weeks,
        suggested_weekly_payment=max(Decimal("0"), suggested),
    )

    logger.debug(
        "autopayment_recommended",
        status=status.value,
        detected_amount=str(detected) if detected is not None else None,
        suggested=str(advice.suggested_weekly_payment),
    )
    return advice
