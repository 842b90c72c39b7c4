"""
Tests for the Repasses Preview Processor

Run with: python -m pytest tests/ -v
"""

import json
from datetime import date

import pytest

from repasses import Competence, RepassePreviewProcessor, Snapshot
from repasses.processor import preview_from_json


@pytest.fixture
def sample_input():
    """Two contracts, four installments, one configured rate."""
    return {
        "ano": 2026,
        "mes": 1,
        "hoje": "2026-01-20",
        "dados": {
            "advogados": [
                {"id": 1, "nome": "Ana Souza"},
                {"id": 2, "nome": "Bruno Lima"},
            ],
            "modelos": [
                {
                    "id": 1,
                    "codigo": "C",
                    "itens": [
                        {"percentualBp": 3000, "destino": "FUNDO DE RESERVA"},
                        {"percentualBp": 5000, "destino": "SÓCIO"},
                        {"percentualBp": 2000, "destino": "ESCRITÓRIO"},
                    ],
                },
                {
                    "id": 2,
                    "codigo": "X",
                    "itens": [
                        {"percentualBp": 3000, "destino": "LAWYER", "advogadoId": 2},
                        {"percentualBp": 3000, "destino": "LAWYER"},
                        {"percentualBp": 4000, "destino": "OFFICE"},
                    ],
                },
            ],
            "aliquotas": [{"mes": 12, "ano": 2025, "percentualBp": 500}],
            "contratos": [
                {
                    "id": 10,
                    "numeroContrato": "20250301001A",
                    "clienteId": 100,
                    "clienteNome": "Maria Oliveira",
                    "modeloDistribuicaoId": 1,
                    "advogadoPrincipalId": 1,
                },
                {
                    "id": 20,
                    "numeroContrato": "20250815002B",
                    "clienteId": 200,
                    "clienteNome": "Construtora Alfa",
                    "modeloDistribuicaoId": 2,
                    "advogadoPrincipalId": 1,
                    "usaSplitComSocio": True,
                },
            ],
            "parcelas": [
                {"id": 1, "contratoId": 20, "numero": 1, "vencimento": "10/01/2026", "valorPrevisto": 10000,
                 "valorRecebido": 10000, "status": "RECEBIDA"},
                {"id": 2, "contratoId": 10, "numero": 2, "vencimento": "15/01/2026", "valorPrevisto": "R$ 200,00",
                 "status": "PREVISTA"},
                {"id": 3, "contratoId": 10, "numero": 3, "vencimento": "15/01/2026", "valorPrevisto": 5000,
                 "status": "CANCELADA"},
                {"id": 4, "contratoId": 10, "numero": 1, "vencimento": "15/12/2025", "valorPrevisto": 7000,
                 "status": "RECEBIDA"},
            ],
        },
    }


class TestRepassePreviewProcessor:
    """Test the main preview processor."""

    @pytest.fixture
    def processor(self):
        return RepassePreviewProcessor()

    def test_basic_processing(self, processor, sample_input):
        result = processor.process_from_dict(sample_input)

        assert result is not None
        assert "aliquotaUsada" in result
        assert "linhas" in result
        assert "totais" in result

    def test_rate_used_is_previous_month(self, processor, sample_input):
        result = processor.process_from_dict(sample_input)

        assert result["aliquotaUsada"] == {"percentualBp": 500, "mes": 12, "ano": 2025, "ausente": False}

    def test_lines_are_ordered_and_filtered(self, processor, sample_input):
        """Cancelled and out-of-month installments are left out; ordered by contract, number."""
        result = processor.process_from_dict(sample_input)

        assert [line["parcelaId"] for line in result["linhas"]] == [2, 1]

    def test_scheduled_line(self, processor, sample_input):
        """R$ 200,00 at 5% under model C (30/50/20)."""
        line = processor.process_from_dict(sample_input)["linhas"][0]

        assert line["valorBruto"] == 20000
        assert line["imposto"] == 1000
        assert line["liquido"] == 19000
        assert line["fundoReserva"] == 5700
        assert line["advogados"] == [{"advogadoId": 1, "nome": "Ana Souza", "valor": 9500}]
        assert line["escritorio"] == 3800
        assert line["parcelaStatus"] == "ATRASADA"
        assert line["numeroContrato"] == "20250301001A"
        assert line["clienteNome"] == "Maria Oliveira"
        assert line["vencimento"] == "2026-01-15"

    def test_partner_split_line(self, processor, sample_input):
        line = processor.process_from_dict(sample_input)["linhas"][1]

        assert line["valorBruto"] == 10000
        assert line["imposto"] == 500
        assert line["liquido"] == 9500
        assert line["advogados"] == [
            {"advogadoId": 2, "nome": "Bruno Lima", "valor": 2850},
            {"advogadoId": 1, "nome": "Ana Souza", "valor": 2850},
        ]
        assert line["escritorio"] == 3800
        assert line["parcelaStatus"] == "RECEBIDA"
        assert line["pendencias"] == {
            "modeloAusente": False,
            "splitAusenteComSocio": False,
            "splitExcedido": False,
        }

    def test_totals(self, processor, sample_input):
        totals = processor.process_from_dict(sample_input)["totais"]

        assert totals["valor"] == 30000
        assert totals["imposto"] == 1500
        assert totals["liquido"] == 28500
        assert totals["advogados"] == [
            {"advogadoId": 1, "nome": "Ana Souza", "valor": 12350},
            {"advogadoId": 2, "nome": "Bruno Lima", "valor": 2850},
        ]
        assert totals["escritorio"] == 7600
        assert totals["fundoReserva"] == 5700
        assert totals["indicacao"] == 0
        assert totals["naoDistribuido"] == 0

    def test_without_today_uses_current_date(self, processor, sample_input):
        """The preview still runs when no reference date is given."""
        del sample_input["hoje"]

        result = processor.process_from_dict(sample_input)

        assert len(result["linhas"]) == 2

    def test_preview_with_snapshot_objects(self, processor, sample_input):
        snapshot = Snapshot.from_dict(sample_input["dados"])

        result = processor.preview(Competence(month=1, year=2026), snapshot, today=date(2026, 1, 20))

        assert [line["parcelaId"] for line in result.lines] == [2, 1]
        assert result.totals["liquido"] == 28500

    def test_same_input_same_output(self, processor, sample_input):
        first = processor.process_from_dict(sample_input)
        second = processor.process_from_dict(sample_input)

        assert first == second

    def test_missing_competence_field(self, processor, sample_input):
        del sample_input["mes"]

        with pytest.raises(KeyError):
            processor.process_from_dict(sample_input)

    def test_invalid_month(self, processor, sample_input):
        sample_input["mes"] = 13

        with pytest.raises(ValueError, match="mes"):
            processor.process_from_dict(sample_input)


class TestRectifyFromDict:
    """Test the rectification entry point."""

    @pytest.fixture
    def processor(self):
        return RepassePreviewProcessor()

    @pytest.fixture
    def parcelas(self):
        return [
            {"id": 1, "contratoId": 10, "numero": 1, "vencimento": "10/01/2026", "valorPrevisto": 10000,
             "status": "RECEBIDA"},
            {"id": 2, "contratoId": 10, "numero": 2, "vencimento": "10/02/2026", "valorPrevisto": 10000},
            {"id": 3, "contratoId": 10, "numero": 3, "vencimento": "10/03/2026", "valorPrevisto": 10000},
            {"id": 4, "contratoId": 10, "numero": 4, "vencimento": "10/04/2026", "valorPrevisto": 10000},
        ]

    def test_spread(self, processor, parcelas):
        result = processor.rectify_from_dict({"parcelaId": 2, "novoValor": "R$ 110,01", "parcelas": parcelas})

        assert [p["valorPrevisto"] for p in result["parcelas"]] == [10000, 11001, 9499, 9500]
        assert result["total"] == 30000
        assert result["parcelas"][0]["alterada"] is False
        assert result["parcelas"][1]["valorAnterior"] == 10000

    def test_manual_adjustments(self, processor, parcelas):
        result = processor.rectify_from_dict({
            "parcelaId": 2,
            "novoValor": 12000,
            "ratear": False,
            "ajustes": {"3": 10000, "4": "80,00"},
            "novoVencimento": "20/02/2026",
            "parcelas": parcelas,
        })

        assert [p["valorPrevisto"] for p in result["parcelas"]] == [10000, 12000, 10000, 8000]
        assert result["parcelas"][1]["vencimento"] == "2026-02-20"

    def test_rejected_rectification(self, processor, parcelas):
        with pytest.raises(ValueError, match="Only PREVISTA"):
            processor.rectify_from_dict({"parcelaId": 1, "novoValor": 5000, "parcelas": parcelas})

    def test_ratear_string_false_uses_adjustments(self, processor, parcelas):
        result = processor.rectify_from_dict({
            "parcelaId": 2,
            "novoValor": 12000,
            "ratear": "false",
            "ajustes": {"3": 9000, "4": 9000},
            "parcelas": parcelas,
        })

        assert [p["valorPrevisto"] for p in result["parcelas"]] == [10000, 12000, 9000, 9000]

    def test_ratear_string_false_without_adjustments_keeps_total_rule(self, processor, parcelas):
        with pytest.raises(ValueError, match="Contract total cannot change"):
            processor.rectify_from_dict({"parcelaId": 2, "novoValor": 12000, "ratear": "false", "parcelas": parcelas})

    def test_invalid_ratear(self, processor, parcelas):
        with pytest.raises(ValueError, match="Invalid boolean"):
            processor.rectify_from_dict({"parcelaId": 2, "novoValor": 12000, "ratear": "talvez", "parcelas": parcelas})

    def test_parcelas_must_be_a_list(self, processor):
        with pytest.raises(ValueError, match="parcelas must be a JSON array"):
            processor.rectify_from_dict({"parcelaId": 2, "novoValor": 12000, "parcelas": {"id": 2}})


class TestRequestShapes:
    """Non-object bodies are validation errors."""

    @pytest.fixture
    def processor(self):
        return RepassePreviewProcessor()

    def test_list_body(self, processor, sample_input):
        with pytest.raises(ValueError, match="Request body must be a JSON object"):
            processor.process_from_dict([sample_input])

    def test_list_dados(self, processor, sample_input):
        sample_input["dados"] = [sample_input["dados"]]

        with pytest.raises(ValueError, match="dados must be a JSON object"):
            processor.process_from_dict(sample_input)

    def test_snapshot_from_list(self):
        with pytest.raises(ValueError, match="Snapshot must be a JSON object"):
            Snapshot.from_dict([])


class TestScheduleFromDict:
    """Test the payment schedule entry points."""

    @pytest.fixture
    def processor(self):
        return RepassePreviewProcessor()

    def test_parcelado(self, processor):
        result = processor.schedule_from_dict({
            "formaPagamento": "PARCELADO",
            "valorTotal": "10,00",
            "numeroParcelas": 3,
            "vencimentoPrimeiraParcela": "31/01/2026",
        })

        assert result["formaPagamento"] == "PARCELADO"
        assert [p["valorPrevisto"] for p in result["parcelas"]] == [334, 333, 333]
        assert [p["vencimento"] for p in result["parcelas"]] == ["2026-01-31", "2026-02-28", "2026-03-31"]
        assert result["total"] == 1000
        assert result["numeroContrato"] is None

    def test_a_vista_uses_its_own_due_date(self, processor):
        result = processor.schedule_from_dict({
            "formaPagamento": "a_vista",
            "valorTotal": 50000,
            "vencimentoAVista": "15/04/2026",
        })

        assert result["parcelas"] == [
            {"numero": 1, "vencimento": "2026-04-15", "valorPrevisto": 50000, "status": "PREVISTA"}
        ]

    def test_data_base_fills_missing_dates(self, processor):
        result = processor.schedule_from_dict({
            "formaPagamento": "ENTRADA_PARCELAS",
            "valorTotal": 100000,
            "valorEntrada": 40000,
            "numeroParcelas": 2,
            "dataBase": "2026-05-10",
        })

        assert [(p["numero"], p["vencimento"], p["valorPrevisto"]) for p in result["parcelas"]] == [
            (0, "2026-05-10", 40000),
            (1, "2026-05-10", 30000),
            (2, "2026-06-10", 30000),
        ]

    def test_missing_due_date(self, processor):
        with pytest.raises(ValueError, match="vencimentoPrimeiraParcela is required"):
            processor.schedule_from_dict({"formaPagamento": "PARCELADO", "valorTotal": 1000, "numeroParcelas": 2})

    def test_invalid_payment_form(self, processor):
        with pytest.raises(ValueError, match="Invalid payment form"):
            processor.schedule_from_dict({"formaPagamento": "BOLETO", "valorTotal": 1000, "dataBase": "2026-05-10"})

    def test_renegotiation(self, processor):
        result = processor.renegotiate_from_dict({
            "numeroContrato": "2026-007",
            "numerosExistentes": ["2026-007-R1", "2026-007-R3", "2026-008-R9"],
            "formaPagamento": "PARCELADO",
            "valorTotal": 90000,
            "numeroParcelas": 3,
            "vencimentoPrimeiraParcela": "10/07/2026",
        })

        assert result["numeroContrato"] == "2026-007-R4"
        assert result["contratoOrigem"] == {"numeroContrato": "2026-007", "status": "RENEGOCIADO"}
        assert [p["valorPrevisto"] for p in result["parcelas"]] == [30000, 30000, 30000]

    def test_renegotiation_needs_contract_number(self, processor):
        with pytest.raises(ValueError, match="numeroContrato is required"):
            processor.renegotiate_from_dict({"formaPagamento": "A_VISTA", "valorTotal": 1000, "dataBase": "2026-05-10"})


class TestPreviewFromJson:
    """Test the JSON convenience function."""

    def test_round_trip(self, sample_input):
        result = json.loads(preview_from_json(json.dumps(sample_input)))

        assert result["totais"]["liquido"] == 28500

    def test_validation_error(self, sample_input):
        sample_input["mes"] = 0

        result = json.loads(preview_from_json(json.dumps(sample_input)))

        assert result["status"] == "validation_failed"
        assert "mes" in result["error"]
