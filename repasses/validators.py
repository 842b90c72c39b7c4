"""
Input Validation for the Repasses Payout Engine

Validates all input data before processing begins.
Raises ValueError with clear messages for any constraint violations.

Configuration gaps (missing rate, inconsistent model, partner split
problems) are NOT validation errors: they are reported per line as
pendencies so one bad contract never blocks the whole preview.
"""

from .models import FULL_BP, Competence, Destination, DistributionModel, Installment, RatePeriod
from .sources import Snapshot

MIN_YEAR = 1900
MAX_YEAR = 9999


class InputValidator:
    """Validates preview input according to business rules."""

    def validate(self, competence: Competence, snapshot: Snapshot) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        self.validate_competence(competence)
        self.validate_snapshot(snapshot)

    def validate_competence(self, competence: Competence) -> None:
        if not (1 <= competence.month <= 12):
            raise ValueError(f"mes must be between 1 and 12, got: {competence.month}")
        if not (MIN_YEAR <= competence.year <= MAX_YEAR):
            raise ValueError(f"ano must be between {MIN_YEAR} and {MAX_YEAR}, got: {competence.year}")

    def validate_snapshot(self, snapshot: Snapshot) -> None:
        for installment in snapshot.installments:
            self._validate_installment(installment)
        for rate in snapshot.rates.values():
            self._validate_rate(rate)
        for model in snapshot.models.values():
            self._validate_model(model)

    def _validate_installment(self, installment: Installment) -> None:
        if installment.amount < 0:
            raise ValueError(f"valorPrevisto cannot be negative on installment {installment.id}")
        if installment.received_amount is not None and installment.received_amount < 0:
            raise ValueError(f"valorRecebido cannot be negative on installment {installment.id}")
        if installment.competence is not None:
            self.validate_competence(installment.competence)

    def _validate_rate(self, rate: RatePeriod) -> None:
        if not (1 <= rate.month <= 12):
            raise ValueError(f"Rate period month must be between 1 and 12, got: {rate.month}")
        if not (0 <= rate.rate_bp <= FULL_BP):
            raise ValueError(
                f"Rate for {rate.month:02d}/{rate.year} must be between 0 and {FULL_BP} bp, got: {rate.rate_bp}"
            )

    def _validate_model(self, model: DistributionModel) -> None:
        for i, item in enumerate(model.items):
            if not (0 <= item.percentage_bp <= FULL_BP):
                raise ValueError(
                    f"Model {model.code} item {i} must be between 0 and {FULL_BP} bp, got: {item.percentage_bp}"
                )
            if item.lawyer_id is not None and item.destination != Destination.LAWYER:
                raise ValueError(
                    f"Model {model.code} item {i}: advogadoId is only allowed on LAWYER items"
                )
