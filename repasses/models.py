"""
Domain Models for the Repasses Payout Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values are integer cents and all percentages are integer basis
points (10000 bp = 100%), so no floating point ever touches an amount.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .parsing import (
    parse_basis_points,
    parse_date_input,
    parse_flag,
    parse_money_to_cents,
    parse_percentage_to_bp,
)

FULL_BP = 10000


class InstallmentStatus(str, Enum):
    PREVISTA = "PREVISTA"
    RECEBIDA = "RECEBIDA"
    CANCELADA = "CANCELADA"
    ATRASADA = "ATRASADA"

    @classmethod
    def parse(cls, raw) -> "InstallmentStatus":
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ValueError(f"Invalid installment status: {raw!r}") from None


class Destination(str, Enum):
    LAWYER = "LAWYER"
    OFFICE = "OFFICE"
    RESERVE_FUND = "RESERVE_FUND"
    REFERRAL = "REFERRAL"

    @classmethod
    def parse(cls, raw) -> "Destination":
        key = str(raw).strip().upper()
        key = DESTINATION_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Invalid distribution destination: {raw!r}") from None


# Labels used by the firm's distribution spreadsheet
DESTINATION_ALIASES = {
    "ADVOGADO": "LAWYER",
    "SÓCIO": "LAWYER",
    "SOCIO": "LAWYER",
    "ESCRITÓRIO": "OFFICE",
    "ESCRITORIO": "OFFICE",
    "FUNDO DE RESERVA": "RESERVE_FUND",
    "FUNDO_RESERVA": "RESERVE_FUND",
    "INDICAÇÃO": "REFERRAL",
    "INDICACAO": "REFERRAL",
}


class Pendency(str, Enum):
    MISSING_MODEL = "MISSING_MODEL"
    MISSING_PARTNER_SPLIT = "MISSING_PARTNER_SPLIT"
    SPLIT_EXCEEDS_PRINCIPAL = "SPLIT_EXCEEDS_PRINCIPAL"


class PaymentForm(str, Enum):
    A_VISTA = "A_VISTA"
    PARCELADO = "PARCELADO"
    ENTRADA_PARCELAS = "ENTRADA_PARCELAS"

    @classmethod
    def parse(cls, raw) -> "PaymentForm":
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ValueError(f"Invalid payment form: {raw!r}") from None


def percentage_bp_from(data: dict) -> int:
    """`percentualBp` is basis points; `percentual` is a percent (30 -> 3000 bp)."""
    if "percentualBp" in data:
        return parse_basis_points(data["percentualBp"])
    return parse_percentage_to_bp(data["percentual"])


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass(frozen=True)
class Competence:
    """A calendar month/year a preview is computed for."""

    month: int
    year: int

    def previous(self) -> "Competence":
        if self.month == 1:
            return Competence(month=12, year=self.year - 1)
        return Competence(month=self.month - 1, year=self.year)

    @classmethod
    def from_dict(cls, data: dict) -> "Competence":
        return cls(month=int(data["mes"]), year=int(data["ano"]))


@dataclass(frozen=True)
class Contract:
    """The parent contract of an installment, as far as payouts care."""

    id: int
    number: str | None
    client_id: int | None
    client_name: str | None
    model_id: int | None = None
    principal_lawyer_id: int | None = None
    uses_partner_split: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Contract":
        model_id = data.get("modeloDistribuicaoId")
        principal = data.get("advogadoPrincipalId")
        client_id = data.get("clienteId")
        return cls(
            id=int(data["id"]),
            number=data.get("numeroContrato"),
            client_id=int(client_id) if client_id is not None else None,
            client_name=data.get("clienteNome"),
            model_id=int(model_id) if model_id is not None else None,
            principal_lawyer_id=int(principal) if principal is not None else None,
            uses_partner_split=parse_flag(data.get("usaSplitComSocio")),
        )


@dataclass(frozen=True)
class Installment:
    """A contract installment (parcela). Read-only to the engine."""

    id: int
    contract_id: int
    number: int
    due_date: date
    amount: int
    status: InstallmentStatus
    received_amount: int | None = None
    competence: Competence | None = None
    contract: Contract | None = None

    @property
    def gross_amount(self) -> int:
        """Amount the payout is computed on: what came in, else what was scheduled."""
        if self.status == InstallmentStatus.RECEBIDA and self.received_amount is not None:
            return self.received_amount
        return self.amount

    def effective_status(self, today: date) -> InstallmentStatus:
        """PREVISTA past its due date is reported as ATRASADA."""
        if self.status == InstallmentStatus.PREVISTA and self.due_date < today:
            return InstallmentStatus.ATRASADA
        return self.status

    @classmethod
    def from_dict(cls, data: dict) -> "Installment":
        received = data.get("valorRecebido")
        competence = data.get("competencia")
        return cls(
            id=int(data["id"]),
            contract_id=int(data["contratoId"]),
            number=int(data.get("numero", 1)),
            due_date=parse_date_input(data["vencimento"]),
            amount=parse_money_to_cents(data["valorPrevisto"]),
            status=InstallmentStatus.parse(data.get("status", "PREVISTA")),
            received_amount=parse_money_to_cents(received) if received is not None else None,
            competence=Competence.from_dict(competence) if competence else None,
        )


@dataclass(frozen=True)
class RatePeriod:
    """Tax rate configured for one month."""

    month: int
    year: int
    rate_bp: int

    @classmethod
    def from_dict(cls, data: dict) -> "RatePeriod":
        return cls(
            month=int(data["mes"]),
            year=int(data["ano"]),
            rate_bp=percentage_bp_from(data),
        )


@dataclass(frozen=True)
class DistributionItem:
    """One row of a distribution model.

    A LAWYER item without lawyer_id stands for the contract's principal lawyer.
    """

    percentage_bp: int
    destination: Destination
    lawyer_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "DistributionItem":
        lawyer_id = data.get("advogadoId")
        return cls(
            percentage_bp=percentage_bp_from(data),
            destination=Destination.parse(data["destino"]),
            lawyer_id=int(lawyer_id) if lawyer_id is not None else None,
        )


@dataclass(frozen=True)
class DistributionModel:
    """A named set of percentage splits (modelo de distribuição)."""

    id: int
    code: str
    items: tuple[DistributionItem, ...] = ()
    description: str | None = None

    @property
    def total_bp(self) -> int:
        return sum(item.percentage_bp for item in self.items)

    @classmethod
    def from_dict(cls, data: dict) -> "DistributionModel":
        return cls(
            id=int(data["id"]),
            code=str(data.get("codigo", data["id"])),
            items=tuple(DistributionItem.from_dict(i) for i in data.get("itens", [])),
            description=data.get("descricao"),
        )


@dataclass(frozen=True)
class Lawyer:
    id: int
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> "Lawyer":
        return cls(id=int(data["id"]), name=str(data["nome"]))


# =============================================================================
# RESOLVED / OUTPUT MODELS
# =============================================================================


@dataclass(frozen=True)
class RateResolution:
    """Which rate a competence uses and where it came from."""

    rate_bp: int
    source_month: int
    source_year: int
    found: bool


@dataclass(frozen=True)
class ResolvedModel:
    """A distribution model plus its consistency verdict."""

    model: DistributionModel
    valid: bool

    @property
    def items(self) -> tuple[DistributionItem, ...]:
        return self.model.items


@dataclass(frozen=True)
class AllocationLine:
    """Computed payout for one installment. Never mutated after construction."""

    installment_id: int
    installment_number: int
    status: InstallmentStatus
    due_date: date
    contract_id: int
    contract_number: str | None
    client_id: int | None
    client_name: str | None
    gross: int
    rate_bp: int
    tax: int
    net: int
    lawyers: dict[int, int] = field(default_factory=dict)
    office: int = 0
    reserve_fund: int = 0
    referral: int = 0
    undistributed: int = 0
    pendencies: frozenset[Pendency] = frozenset()

    @property
    def distributed(self) -> int:
        return sum(self.lawyers.values()) + self.office + self.reserve_fund + self.referral


@dataclass(frozen=True)
class Totals:
    """Field-wise sum of all lines of a competence."""

    gross: int = 0
    tax: int = 0
    net: int = 0
    lawyers: dict[int, int] = field(default_factory=dict)
    office: int = 0
    reserve_fund: int = 0
    referral: int = 0
    undistributed: int = 0


@dataclass
class PreviewContext:
    """
    Holds all intermediate state during a preview computation.
    This is the "bag" that flows through the pipeline.
    """

    competence: Competence
    today: date

    # Step results (populated as we go)
    rate: RateResolution | None = None
    installments: list[Installment] = field(default_factory=list)
    lines: list[AllocationLine] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)


@dataclass
class PreviewResult:
    """Final output of a preview, in wire shape."""

    rate_used: dict
    lines: list[dict]
    totals: dict


@dataclass(frozen=True)
class RectifiedInstallment:
    """One installment of a contract after a rectification preview."""

    id: int
    number: int
    due_date: date
    status: InstallmentStatus
    previous_amount: int
    amount: int

    @property
    def changed(self) -> bool:
        return self.previous_amount != self.amount


@dataclass(frozen=True)
class ScheduledInstallment:
    """One installment of a generated payment schedule. Number 0 is the down payment."""

    number: int
    due_date: date
    amount: int
