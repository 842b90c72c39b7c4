"""
Installment Rectification

Recomputes a contract's schedule when one scheduled installment changes
value, keeping the contract total intact. Nothing is persisted: the
result is a preview the caller may commit elsewhere.
"""

from datetime import date
from typing import Iterable

from ..models import Installment, InstallmentStatus, RectifiedInstallment
from .schedule import split_evenly


class InstallmentRectifier:
    """Rectifies one PREVISTA installment and rebalances the others."""

    MIN_SCHEDULED = 2

    def rectify(
        self,
        installments: Iterable[Installment],
        installment_id: int,
        new_amount: int,
        spread: bool = True,
        adjustments: dict[int, int] | None = None,
        new_due_date: date | None = None,
    ) -> list[RectifiedInstallment]:
        """
        Rectify an installment.

        With spread=True the difference is split in cents across the other
        PREVISTA installments (in number order); leftover cents go to the
        earliest ones. With spread=False the caller provides `adjustments`
        (id -> new amount) and the scheduled total must stay the same.

        Raises ValueError when the rectification is not allowed.
        """
        ordered = sorted(installments, key=lambda inst: inst.number)
        target = next((inst for inst in ordered if inst.id == installment_id), None)

        if target is None:
            raise ValueError(f"Installment {installment_id} not found")
        if target.status != InstallmentStatus.PREVISTA:
            raise ValueError("Only PREVISTA installments can be rectified")
        if new_amount < 0:
            raise ValueError(f"New amount cannot be negative, got: {new_amount}")
        if any(inst.contract_id != target.contract_id for inst in ordered):
            raise ValueError("All installments must belong to the same contract")

        scheduled = [inst for inst in ordered if inst.status == InstallmentStatus.PREVISTA]
        if len(scheduled) < self.MIN_SCHEDULED:
            raise ValueError(
                f"Rectification needs at least {self.MIN_SCHEDULED} PREVISTA installments; use renegotiation"
            )

        others = [inst for inst in scheduled if inst.id != target.id]
        new_amounts = {target.id: new_amount}

        if spread:
            new_amounts.update(self._spread_delta(others, new_amount - target.amount))
        else:
            new_amounts.update(self._apply_adjustments(scheduled, others, target, new_amount, adjustments or {}))

        return [
            RectifiedInstallment(
                id=inst.id,
                number=inst.number,
                due_date=new_due_date if (inst.id == target.id and new_due_date) else inst.due_date,
                status=inst.status,
                previous_amount=inst.amount,
                amount=new_amounts.get(inst.id, inst.amount),
            )
            for inst in ordered
        ]

    def _spread_delta(self, others: list[Installment], delta: int) -> dict[int, int]:
        """Take `delta` cents off the other installments as evenly as possible."""
        if delta == 0:
            return {}

        result = {}
        for inst, part in zip(others, split_evenly(delta, len(others))):
            amount = inst.amount - part
            if amount < 0:
                raise ValueError(f"Invalid spread: installment {inst.number} would become negative")
            result[inst.id] = amount
        return result

    def _apply_adjustments(
        self,
        scheduled: list[Installment],
        others: list[Installment],
        target: Installment,
        new_amount: int,
        adjustments: dict[int, int],
    ) -> dict[int, int]:
        other_ids = {inst.id for inst in others}
        unknown = set(adjustments) - other_ids
        if unknown:
            raise ValueError(f"Adjustments reference non-PREVISTA or unknown installments: {sorted(unknown)}")
        if any(amount < 0 for amount in adjustments.values()):
            raise ValueError("Adjusted amounts cannot be negative")

        total_before = sum(inst.amount for inst in scheduled)
        total_after = new_amount + sum(adjustments.get(inst.id, inst.amount) for inst in others)
        if total_after != total_before:
            raise ValueError(
                f"Contract total cannot change: before {total_before}, after {total_after} cents"
            )
        return dict(adjustments)
