"""
Aggregator

Sums payout lines into the grand-totals row of a competence.
"""

from typing import Iterable

from ..models import AllocationLine, Totals


class Aggregator:
    """Field-wise summation of allocation lines."""

    def aggregate(self, lines: Iterable[AllocationLine]) -> Totals:
        """
        Sum every money field; lawyer amounts are merged by lawyer id in
        order of first appearance.
        """
        gross = tax = net = office = reserve_fund = referral = undistributed = 0
        lawyers: dict[int, int] = {}

        for line in lines:
            gross += line.gross
            tax += line.tax
            net += line.net
            office += line.office
            reserve_fund += line.reserve_fund
            referral += line.referral
            undistributed += line.undistributed
            for lawyer_id, amount in line.lawyers.items():
                lawyers[lawyer_id] = lawyers.get(lawyer_id, 0) + amount

        return Totals(
            gross=gross,
            tax=tax,
            net=net,
            lawyers=lawyers,
            office=office,
            reserve_fund=reserve_fund,
            referral=referral,
            undistributed=undistributed,
        )
