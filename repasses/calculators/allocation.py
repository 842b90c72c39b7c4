"""
Allocation Calculator

Turns one installment into a payout line: tax, net and the share of every
destination in the contract's distribution model.

All math is integer cents times integer basis points. Tax rounds half-up;
shares are floored and the leftover cents go to the last item of the model.
"""

import logging
from datetime import date

from ..models import (
    FULL_BP,
    AllocationLine,
    Destination,
    DistributionItem,
    Installment,
    Pendency,
    RateResolution,
    ResolvedModel,
)

logger = logging.getLogger(__name__)


def apply_rate_half_up(amount: int, rate_bp: int) -> int:
    """amount * rate_bp / 10000, rounded half-up to the cent."""
    return (amount * rate_bp + FULL_BP // 2) // FULL_BP


def split_by_bp(amount: int, items: tuple[DistributionItem, ...]) -> list[int]:
    """
    Floor each item's share and give the remainder to the last item.

    The returned shares always add up to `amount` when the items sum to
    10000 bp.
    """
    shares = [amount * item.percentage_bp // FULL_BP for item in items]
    if shares:
        shares[-1] += amount - sum(shares)
    return shares


class AllocationCalculator:
    """Computes an AllocationLine for a single installment."""

    def allocate(
        self,
        installment: Installment,
        rate: RateResolution,
        model: ResolvedModel | None,
        today: date,
    ) -> AllocationLine:
        """
        Allocate one installment.

        Steps:
        1. Tax on the gross amount (round half-up)
        2. Net = gross - tax
        3. Missing or inconsistent model: flag and distribute nothing
        4. Split net across model items, remainder to the last item
        5. Flag partner split problems (warnings; amounts are kept)
        """
        contract = installment.contract
        gross = installment.gross_amount
        tax = apply_rate_half_up(gross, rate.rate_bp)
        net = gross - tax

        base = dict(
            installment_id=installment.id,
            installment_number=installment.number,
            status=installment.effective_status(today),
            due_date=installment.due_date,
            contract_id=installment.contract_id,
            contract_number=contract.number if contract else None,
            client_id=contract.client_id if contract else None,
            client_name=contract.client_name if contract else None,
            gross=gross,
            rate_bp=rate.rate_bp,
            tax=tax,
            net=net,
        )

        principal_id = contract.principal_lawyer_id if contract else None
        if not self._model_usable(model, principal_id):
            logger.debug(f"Installment {installment.id}: model pendency, {net} cents left undistributed")
            return AllocationLine(
                **base,
                undistributed=net,
                pendencies=frozenset({Pendency.MISSING_MODEL}),
            )

        shares = split_by_bp(net, model.items)

        lawyers: dict[int, int] = {}
        office = reserve_fund = referral = 0
        principal_share = partner_share = 0
        has_partner_split = False

        for item, share in zip(model.items, shares):
            if item.destination == Destination.OFFICE:
                office += share
            elif item.destination == Destination.RESERVE_FUND:
                reserve_fund += share
            elif item.destination == Destination.REFERRAL:
                referral += share
            else:
                lawyer_id = item.lawyer_id if item.lawyer_id is not None else principal_id
                lawyers[lawyer_id] = lawyers.get(lawyer_id, 0) + share
                if lawyer_id == principal_id:
                    principal_share += share
                else:
                    has_partner_split = True
                    partner_share += share

        pendencies = set()
        if contract and contract.uses_partner_split and not has_partner_split:
            pendencies.add(Pendency.MISSING_PARTNER_SPLIT)
        if principal_id is not None and partner_share > principal_share:
            pendencies.add(Pendency.SPLIT_EXCEEDS_PRINCIPAL)

        return AllocationLine(
            **base,
            lawyers=lawyers,
            office=office,
            reserve_fund=reserve_fund,
            referral=referral,
            pendencies=frozenset(pendencies),
        )

    @staticmethod
    def _model_usable(model: ResolvedModel | None, principal_id: int | None) -> bool:
        if model is None or not model.valid:
            return False
        # A principal-lawyer row needs a principal to pay
        needs_principal = any(
            item.destination == Destination.LAWYER and item.lawyer_id is None for item in model.items
        )
        return not (needs_principal and principal_id is None)
