"""
Rate Resolver

Finds the tax rate (alíquota) a competence is computed with.
"""

import logging

from ..models import Competence, RateResolution

logger = logging.getLogger(__name__)


class RateResolver:
    """Looks up the prior-month rate for a competence."""

    def resolve(self, competence: Competence, rates) -> RateResolution:
        """
        Resolve the rate for a competence.

        The competence for month M always uses the rate configured for M-1
        (January wraps to December of the previous year). When nothing is
        configured the rate falls back to 0 and `found` is False; callers
        surface that to the user instead of failing.

        Args:
            competence: Month/year being previewed
            rates: Anything with find_rate(month, year) -> RatePeriod | None
        """
        source = competence.previous()
        period = rates.find_rate(source.month, source.year)

        if period is None:
            logger.warning(
                f"No rate configured for {source.month:02d}/{source.year}; "
                f"competence {competence.month:02d}/{competence.year} falls back to 0 bp"
            )
            return RateResolution(
                rate_bp=0,
                source_month=source.month,
                source_year=source.year,
                found=False,
            )

        return RateResolution(
            rate_bp=period.rate_bp,
            source_month=source.month,
            source_year=source.year,
            found=True,
        )
