"""
Distribution Model Resolver

Fetches a distribution model and checks that its splits add up to 100%.
"""

import logging

from ..models import FULL_BP, ResolvedModel

logger = logging.getLogger(__name__)


class DistributionModelResolver:
    """Resolves a model id into its items plus a consistency verdict."""

    def resolve(self, model_id: int | None, models) -> ResolvedModel | None:
        """
        Resolve a model.

        Returns None when the contract has no model or the id is unknown.
        A model whose items do not sum to exactly 10000 bp is returned with
        valid=False: still displayable, but never used for amount math.

        Args:
            model_id: Model referenced by the contract (may be None)
            models: Anything with find_model(model_id) -> DistributionModel | None
        """
        if model_id is None:
            return None

        model = models.find_model(model_id)
        if model is None:
            logger.debug(f"Distribution model {model_id} not found")
            return None

        valid = model.total_bp == FULL_BP
        if not valid:
            logger.debug(f"Distribution model {model.code} sums to {model.total_bp} bp, expected {FULL_BP}")

        return ResolvedModel(model=model, valid=valid)
