"""
Repasse Preview Processor - Main Orchestrator

Coordinates the payout preview pipeline through discrete, testable steps.
"""

import logging
from datetime import date
from typing import Any, Dict

from .calculators import (
    Aggregator,
    AllocationCalculator,
    DistributionModelResolver,
    InstallmentRectifier,
    InstallmentScheduler,
    InstallmentSelector,
    RateResolver,
)
from .calculators.schedule import renegotiation_number
from .models import Competence, Installment, PaymentForm, PreviewContext, PreviewResult
from .output import OutputBuilder, rectification_to_dict, schedule_to_dict
from .parsing import parse_date_input, parse_flag, parse_money_to_cents
from .sources import Snapshot
from .validators import InputValidator

logger = logging.getLogger(__name__)


class RepassePreviewProcessor:
    """
    Main orchestrator for the monthly payout preview.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Build Context
    3. Resolve Rate (prior month)
    4. Select Installments
    5. Resolve Models and Allocate each installment
    6. Aggregate Totals
    7. Build Output

    The processor holds no data: every call receives its own snapshot, so
    concurrent previews never share state.
    """

    def __init__(self):
        # Initialize all calculators
        self.validator = InputValidator()
        self.rate_resolver = RateResolver()
        self.model_resolver = DistributionModelResolver()
        self.selector = InstallmentSelector()
        self.allocation_calculator = AllocationCalculator()
        self.aggregator = Aggregator()
        self.rectifier = InstallmentRectifier()
        self.scheduler = InstallmentScheduler()
        self.output_builder = OutputBuilder()

    def preview(
        self,
        competence: Competence,
        snapshot: Snapshot,
        today: date | None = None,
        competence_of=None,
    ) -> PreviewResult:
        """
        Compute the payout preview of a competence.

        Args:
            competence: Month/year being previewed
            snapshot: Immutable data for this request
            today: Reference date for overdue status (defaults to today)
            competence_of: Optional installment -> Competence function

        Returns:
            PreviewResult in wire shape
        """
        # Step 1: Validate
        self.validator.validate(competence, snapshot)

        # Step 2: Build initial context
        ctx = PreviewContext(competence=competence, today=today or date.today())

        # Step 3: Resolve the prior-month rate
        ctx.rate = self.rate_resolver.resolve(competence, snapshot)

        # Step 4: Select installments of the competence
        ctx.installments = self.selector.select(competence, snapshot.installments, competence_of)

        # Step 5: Allocate each installment independently
        resolved_models = {}
        for installment in ctx.installments:
            model_id = installment.contract.model_id if installment.contract else None
            if model_id not in resolved_models:
                resolved_models[model_id] = self.model_resolver.resolve(model_id, snapshot)
            line = self.allocation_calculator.allocate(
                installment, ctx.rate, resolved_models[model_id], ctx.today
            )
            if line.pendencies:
                logger.debug(
                    f"Installment {line.installment_id} pendencies: "
                    f"{sorted(p.value for p in line.pendencies)}"
                )
            ctx.lines.append(line)

        # Step 6: Aggregate totals
        ctx.totals = self.aggregator.aggregate(ctx.lines)

        logger.info(
            f"Preview {competence.month:02d}/{competence.year}: {len(ctx.lines)} lines, "
            f"rate {ctx.rate.rate_bp} bp from {ctx.rate.source_month:02d}/{ctx.rate.source_year}"
            f"{'' if ctx.rate.found else ' (missing, using 0)'}"
        )

        # Step 7: Build output
        return self.output_builder.build(ctx, snapshot)

    def preview_to_dict(self, competence: Competence, snapshot: Snapshot, today: date | None = None) -> Dict[str, Any]:
        return self._result_to_dict(self.preview(competence, snapshot, today))

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compute a preview from raw dictionary input.

        Convenience method for API usage. Expects
        {"ano", "mes", "hoje"?, "dados": {...snapshot...}}.
        """
        _require_object(data, "Request body")
        competence = Competence.from_dict(data)
        today = parse_date_input(data["hoje"]) if data.get("hoje") else None
        snapshot = Snapshot.from_dict(_require_object(data.get("dados", {}), "dados"))
        return self.preview_to_dict(competence, snapshot, today)

    def rectify_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Preview a rectification from raw dictionary input.

        Expects {"parcelaId", "novoValor", "ratear"?, "ajustes"?,
        "novoVencimento"?, "parcelas": [...]} where parcelas are the
        installments of a single contract.
        """
        _require_object(data, "Request body")
        installments = [Installment.from_dict(p) for p in _require_list(data.get("parcelas", []), "parcelas")]
        adjustments = {
            int(k): parse_money_to_cents(v)
            for k, v in _require_object(data.get("ajustes") or {}, "ajustes").items()
        }
        new_due = data.get("novoVencimento")
        rows = self.rectifier.rectify(
            installments,
            installment_id=int(data["parcelaId"]),
            new_amount=parse_money_to_cents(data["novoValor"]),
            spread=parse_flag(data.get("ratear"), default=True),
            adjustments=adjustments,
            new_due_date=parse_date_input(new_due) if new_due else None,
        )
        return rectification_to_dict(rows)

    def schedule_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Preview the payment schedule of a new contract.

        Expects {"formaPagamento", "valorTotal", "numeroParcelas"?,
        "vencimentoPrimeiraParcela"? | "vencimentoAVista"?, "valorEntrada"?,
        "vencimentoEntrada"?, "dataBase"?}. dataBase fills any missing due date.
        """
        _require_object(data, "Request body")
        form = PaymentForm.parse(data.get("formaPagamento"))
        base = data.get("dataBase")

        first_due_raw = data.get("vencimentoPrimeiraParcela") or base
        if form == PaymentForm.A_VISTA:
            first_due_raw = data.get("vencimentoAVista") or first_due_raw
        if not first_due_raw:
            raise ValueError("vencimentoPrimeiraParcela is required")

        down_payment = data.get("valorEntrada")
        down_payment_due = data.get("vencimentoEntrada") or base
        count = data.get("numeroParcelas")

        rows = self.scheduler.build(
            form,
            total=parse_money_to_cents(data["valorTotal"]),
            first_due=parse_date_input(first_due_raw),
            count=int(count) if count is not None else 1,
            down_payment=parse_money_to_cents(down_payment) if down_payment is not None else None,
            down_payment_due=parse_date_input(down_payment_due) if down_payment_due else None,
        )
        return schedule_to_dict(form, rows)

    def renegotiate_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Preview the renegotiation of a contract.

        Same input as schedule_from_dict plus "numeroContrato" (the contract
        being renegotiated) and optionally "numerosExistentes", the numbers
        already issued, so the new contract gets the next -R<n> suffix.
        """
        _require_object(data, "Request body")
        original = data.get("numeroContrato")
        if not original:
            raise ValueError("numeroContrato is required")

        result = self.schedule_from_dict(data)
        existing = _require_list(data.get("numerosExistentes", []), "numerosExistentes")
        result["numeroContrato"] = renegotiation_number(str(original), existing)
        result["contratoOrigem"] = {"numeroContrato": original, "status": "RENEGOCIADO"}
        logger.info(f"Renegotiation of {original} previewed as {result['numeroContrato']}")
        return result

    def _result_to_dict(self, result: PreviewResult) -> Dict[str, Any]:
        """Convert PreviewResult to dictionary for API response."""
        return {
            "aliquotaUsada": result.rate_used,
            "linhas": result.lines,
            "totais": result.totals,
        }


def _require_object(value, label: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"{label} must be a JSON object, got: {type(value).__name__}")
    return value


def _require_list(value, label: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{label} must be a JSON array, got: {type(value).__name__}")
    return value


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def preview_from_json(json_input: str) -> str:
    """
    Compute a preview from a JSON string and return a JSON string.
    """
    import json

    try:
        input_data = json.loads(json_input)
        processor = RepassePreviewProcessor()
        result = processor.process_from_dict(input_data)
        return json.dumps(result, indent=2, ensure_ascii=False)

    except (ValueError, KeyError, TypeError) as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)
