"""
Installment Selector

Picks the installments that belong to a competence.
"""

from typing import Callable, Iterable

from ..models import Competence, Installment, InstallmentStatus


def default_competence(installment: Installment) -> Competence:
    """Explicit competence when the installment carries one, else its due month."""
    if installment.competence is not None:
        return installment.competence
    return Competence(month=installment.due_date.month, year=installment.due_date.year)


class InstallmentSelector:
    """Filters and orders installments for a preview."""

    def select(
        self,
        competence: Competence,
        installments: Iterable[Installment],
        competence_of: Callable[[Installment], Competence] | None = None,
    ) -> list[Installment]:
        """
        Select the installments of a competence.

        Cancelled installments never take part in a payout. The result is
        ordered by contract id, then installment number, so previews are
        reproducible.
        """
        competence_of = competence_of or default_competence

        selected = [
            inst
            for inst in installments
            if inst.status != InstallmentStatus.CANCELADA and competence_of(inst) == competence
        ]
        return sorted(selected, key=lambda inst: (inst.contract_id, inst.number))
