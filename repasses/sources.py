"""
Data Sources

The engine never talks to a database. Callers hand it a Snapshot: an
immutable, in-memory view of installments, contracts, rate periods,
distribution models and lawyers for one request.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from .models import Contract, DistributionModel, Installment, Lawyer, RatePeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Read-only lookups consumed by the resolvers and the selector."""

    installments: tuple[Installment, ...] = ()
    contracts: dict[int, Contract] = field(default_factory=dict)
    rates: dict[tuple[int, int], RatePeriod] = field(default_factory=dict)
    models: dict[int, DistributionModel] = field(default_factory=dict)
    lawyers: dict[int, Lawyer] = field(default_factory=dict)

    def find_rate(self, month: int, year: int) -> RatePeriod | None:
        return self.rates.get((month, year))

    def find_model(self, model_id: int) -> DistributionModel | None:
        return self.models.get(model_id)

    def lawyer_name(self, lawyer_id: int) -> str | None:
        lawyer = self.lawyers.get(lawyer_id)
        return lawyer.name if lawyer else None

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        """
        Build a snapshot from the wire format.

        Raises ValueError on duplicate keys or installments pointing at an
        unknown contract.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot must be a JSON object, got: {type(data).__name__}")

        contracts = _index(
            (Contract.from_dict(c) for c in data.get("contratos", [])),
            key=lambda c: c.id,
            label="contract",
        )

        installments = []
        seen_ids = set()
        for raw in data.get("parcelas", []):
            installment = Installment.from_dict(raw)
            if installment.id in seen_ids:
                raise ValueError(f"Duplicate installment id: {installment.id}")
            seen_ids.add(installment.id)

            contract = contracts.get(installment.contract_id)
            if contract is None:
                raise ValueError(
                    f"Installment {installment.id} references unknown contract {installment.contract_id}"
                )
            installments.append(replace(installment, contract=contract))

        rates = _index(
            (RatePeriod.from_dict(r) for r in data.get("aliquotas", [])),
            key=lambda r: (r.month, r.year),
            label="rate period",
        )
        models = _index(
            (DistributionModel.from_dict(m) for m in data.get("modelos", [])),
            key=lambda m: m.id,
            label="distribution model",
        )
        lawyers = _index(
            (Lawyer.from_dict(a) for a in data.get("advogados", [])),
            key=lambda a: a.id,
            label="lawyer",
        )

        return cls(
            installments=tuple(installments),
            contracts=contracts,
            rates=rates,
            models=models,
            lawyers=lawyers,
        )


def _index(items, key, label: str) -> dict:
    indexed = {}
    for item in items:
        k = key(item)
        if k in indexed:
            raise ValueError(f"Duplicate {label}: {k}")
        indexed[k] = item
    return indexed


class JsonSnapshotStore:
    """Loads a Snapshot from a JSON file on every call.

    Re-reading per request means edits to rates or models show up
    immediately; nothing is cached between previews.
    """

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Snapshot:
        logger.debug(f"Loading snapshot from {self.path}")
        with self.path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        return Snapshot.from_dict(data)
