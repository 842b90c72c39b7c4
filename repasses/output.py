"""
Output Builder

Constructs the API response from the preview context. Money stays in
integer cents on the wire; percentages stay in basis points.
"""

from .models import (
    AllocationLine,
    InstallmentStatus,
    PaymentForm,
    Pendency,
    PreviewContext,
    PreviewResult,
    RectifiedInstallment,
    ScheduledInstallment,
    Totals,
)


class OutputBuilder:
    """Builds the final output response."""

    def build(self, ctx: PreviewContext, lawyers) -> PreviewResult:
        """
        Construct the preview result.

        Args:
            ctx: Fully processed preview context
            lawyers: Anything with lawyer_name(lawyer_id) -> str | None
        """
        return PreviewResult(
            rate_used=self._build_rate_used(ctx),
            lines=[self._build_line(line, lawyers) for line in ctx.lines],
            totals=self._build_totals(ctx.totals, lawyers),
        )

    def _build_rate_used(self, ctx: PreviewContext) -> dict:
        rate = ctx.rate
        return {
            "percentualBp": rate.rate_bp,
            "mes": rate.source_month,
            "ano": rate.source_year,
            "ausente": not rate.found,
        }

    def _build_line(self, line: AllocationLine, lawyers) -> dict:
        return {
            "parcelaId": line.installment_id,
            "parcelaNumero": line.installment_number,
            "parcelaStatus": line.status.value,
            "vencimento": line.due_date.isoformat(),
            "contratoId": line.contract_id,
            "numeroContrato": line.contract_number,
            "clienteId": line.client_id,
            "clienteNome": line.client_name,
            "valorBruto": line.gross,
            "aliquotaBp": line.rate_bp,
            "imposto": line.tax,
            "liquido": line.net,
            "advogados": self._build_lawyers(line.lawyers, lawyers),
            "escritorio": line.office,
            "fundoReserva": line.reserve_fund,
            "indicacao": line.referral,
            "naoDistribuido": line.undistributed,
            "pendencias": {
                "modeloAusente": Pendency.MISSING_MODEL in line.pendencies,
                "splitAusenteComSocio": Pendency.MISSING_PARTNER_SPLIT in line.pendencies,
                "splitExcedido": Pendency.SPLIT_EXCEEDS_PRINCIPAL in line.pendencies,
            },
        }

    def _build_totals(self, totals: Totals, lawyers) -> dict:
        return {
            "valor": totals.gross,
            "imposto": totals.tax,
            "liquido": totals.net,
            "advogados": self._build_lawyers(totals.lawyers, lawyers),
            "escritorio": totals.office,
            "fundoReserva": totals.reserve_fund,
            "indicacao": totals.referral,
            "naoDistribuido": totals.undistributed,
        }

    @staticmethod
    def _build_lawyers(amounts: dict[int, int], lawyers) -> list[dict]:
        return [
            {"advogadoId": lawyer_id, "nome": lawyers.lawyer_name(lawyer_id), "valor": amount}
            for lawyer_id, amount in amounts.items()
        ]


def rectification_to_dict(rows: list[RectifiedInstallment]) -> dict:
    """Wire shape for a rectification preview."""
    return {
        "parcelas": [
            {
                "id": row.id,
                "numero": row.number,
                "vencimento": row.due_date.isoformat(),
                "status": row.status.value,
                "valorAnterior": row.previous_amount,
                "valorPrevisto": row.amount,
                "alterada": row.changed,
            }
            for row in rows
        ],
        "total": sum(row.amount for row in rows if row.status == InstallmentStatus.PREVISTA),
    }


def schedule_to_dict(form: PaymentForm, rows: list[ScheduledInstallment], number: str | None = None) -> dict:
    """Wire shape for a generated payment schedule."""
    return {
        "numeroContrato": number,
        "formaPagamento": form.value,
        "parcelas": [
            {
                "numero": row.number,
                "vencimento": row.due_date.isoformat(),
                "valorPrevisto": row.amount,
                "status": InstallmentStatus.PREVISTA.value,
            }
            for row in rows
        ],
        "total": sum(row.amount for row in rows),
    }
