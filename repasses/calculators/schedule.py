"""
Installment Schedule

Builds the payment schedule of a new or renegotiated contract: a single
payment (A_VISTA), N equal installments (PARCELADO), or a down payment
followed by N installments (ENTRADA_PARCELAS). Nothing is persisted.
"""

import re
from datetime import date
from typing import Iterable

from dateutil.relativedelta import relativedelta

from ..models import PaymentForm, ScheduledInstallment

RENEGOTIATION_SUFFIX = re.compile(r"-R(\d+)$")


def split_evenly(amount: int, count: int) -> list[int]:
    """
    Split `amount` cents into `count` parts that differ by at most one cent.

    The leftover cents go to the first parts: 1000 over 3 -> [334, 333, 333].
    """
    base, rest = divmod(amount, count)
    return [base + (1 if i < rest else 0) for i in range(count)]


def renegotiation_number(original: str, existing: Iterable[str] = ()) -> str:
    """
    Next contract number for a renegotiation: ORIGINAL-R1, ORIGINAL-R2, ...

    `existing` holds contract numbers already issued; the highest -R<n>
    found for `original` decides the next one.
    """
    prefix = f"{original}-R"
    used = [0]
    for number in existing:
        number = str(number)
        if not number.startswith(prefix):
            continue
        match = RENEGOTIATION_SUFFIX.search(number)
        if match:
            used.append(int(match.group(1)))
    return f"{original}-R{max(used) + 1}"


class InstallmentScheduler:
    """Generates PREVISTA installments for a payment form."""

    def build(
        self,
        form: PaymentForm,
        total: int,
        first_due: date,
        count: int = 1,
        down_payment: int | None = None,
        down_payment_due: date | None = None,
    ) -> list[ScheduledInstallment]:
        """
        Build a schedule.

        Installments are numbered from 1; a down payment is number 0. Due
        dates advance one calendar month from `first_due`, keeping its day
        (clamped to the month's last day: 31/01 -> 28/02 -> 31/03).

        Raises ValueError when the inputs cannot form a schedule.
        """
        if total <= 0:
            raise ValueError(f"valorTotal must be positive, got: {total}")

        if form == PaymentForm.A_VISTA:
            return [ScheduledInstallment(number=1, due_date=first_due, amount=total)]

        if count < 1:
            raise ValueError(f"numeroParcelas must be at least 1, got: {count}")

        schedule = []
        remaining = total
        if form == PaymentForm.ENTRADA_PARCELAS:
            if down_payment is None or down_payment_due is None:
                raise ValueError("ENTRADA_PARCELAS needs valorEntrada and vencimentoEntrada")
            if down_payment < 0:
                raise ValueError(f"valorEntrada cannot be negative, got: {down_payment}")
            if down_payment > total:
                raise ValueError("valorEntrada cannot exceed valorTotal")
            schedule.append(ScheduledInstallment(number=0, due_date=down_payment_due, amount=down_payment))
            remaining = total - down_payment

        for i, amount in enumerate(split_evenly(remaining, count)):
            schedule.append(
                ScheduledInstallment(
                    number=i + 1,
                    due_date=first_due + relativedelta(months=i),
                    amount=amount,
                )
            )
        return schedule
