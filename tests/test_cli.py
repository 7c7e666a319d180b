"""Tests for the command-line interface."""

import json
import os
from decimal import Decimal

import pytest
import yaml
from click.testing import CliRunner

from conftest import SAMPLE_ROWS, StaticOracle
from extracto_bancario.cli import StatementExtractorCLI, cli, format_table
from extracto_bancario.models.core import Transaction
from extracto_bancario.models.errors import ExtractionFailure


EXPECTED_CSV = (
    '\ufeffFecha|Detalle|Movimiento|Saldo|Entidad\n'
    '01/01/2024|"ATM W/D"|-50000,00|150000,00|VEDU\n'
    '02/01/2024|"Pago ""Nomina"""|1250000,00|1400000,00|VEDU'
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def make_obj(tmp_path):
    def _make(oracle=None):
        cli_instance = StatementExtractorCLI(
            config_path=str(tmp_path / "missing_config.json"),
            oracle=oracle or StaticOracle(rows=[dict(row) for row in SAMPLE_ROWS]),
        )
        return {'cli': cli_instance}
    return _make


@pytest.fixture
def statement_file(tmp_path):
    path = tmp_path / "statement.txt"
    path.write_text("01/01/2024 ATM W/D -50.000 150.000\n", encoding='utf-8')
    return str(path)


def test_banks_lists_every_option(runner, make_obj):
    result = runner.invoke(cli, ['banks'], obj=make_obj())

    assert result.exit_code == 0
    assert "Banco Popular" in result.output
    assert "Banco Agrario" in result.output
    assert "VEDU" in result.output


def test_extract_writes_export(runner, make_obj, statement_file, tmp_path):
    out_dir = tmp_path / "out"
    result = runner.invoke(cli, [
        'extract', '--bank', 'Banco Popular', '--entity', 'VEDU',
        '--text-file', statement_file, '--output', str(out_dir), '--date', '2024-05-06',
    ], obj=make_obj())

    assert result.exit_code == 0, result.output
    assert "✓ Extracted 2 transactions" in result.output
    export_path = out_dir / "extracto_Banco_Popular_2024-05-06.csv"
    assert export_path.read_bytes().decode('utf-8') == EXPECTED_CSV


def test_extract_reads_stdin(runner, make_obj, tmp_path):
    obj = make_obj()
    result = runner.invoke(cli, [
        'extract', '-b', 'Davivienda', '--no-export',
    ], input="01/01/2024 ATM W/D -50.000 150.000\n", obj=obj)

    assert result.exit_code == 0, result.output
    statement, bank = obj['cli'].gateway.oracle.calls[0]
    assert statement.text == "01/01/2024 ATM W/D -50.000 150.000"
    assert bank.value == "Davivienda"


def test_no_export_writes_nothing(runner, make_obj, statement_file, tmp_path):
    out_dir = tmp_path / "out"
    result = runner.invoke(cli, [
        'extract', '-t', statement_file, '-o', str(out_dir), '--no-export',
    ], obj=make_obj())

    assert result.exit_code == 0
    assert "ATM W/D" in result.output
    assert not out_dir.exists()


def test_extraction_failure_exits_nonzero(runner, make_obj, statement_file):
    obj = make_obj(StaticOracle(error=ExtractionFailure("quota exceeded")))
    result = runner.invoke(cli, ['extract', '-t', statement_file], obj=obj)

    assert result.exit_code == 1
    assert "✗ quota exceeded" in result.output


def test_empty_extraction_exits_nonzero(runner, make_obj, statement_file):
    result = runner.invoke(cli, ['extract', '-t', statement_file], obj=make_obj(StaticOracle(rows=[])))

    assert result.exit_code == 1
    assert "No transactions were found" in result.output


def test_both_inputs_is_usage_error(runner, make_obj, statement_file, tmp_path):
    pdf_path = tmp_path / "extracto.pdf"
    pdf_path.write_bytes(b"%PDF-1.4\n")

    result = runner.invoke(cli, ['extract', '-t', statement_file, '-p', str(pdf_path)], obj=make_obj())

    assert result.exit_code == 2
    assert "not both" in result.output


def test_non_pdf_document_rejected(runner, make_obj, statement_file):
    obj = make_obj()
    result = runner.invoke(cli, ['extract', '--pdf', statement_file], obj=obj)

    assert result.exit_code == 1
    assert "Please upload a PDF file." in result.output
    assert obj['cli'].gateway.oracle.calls == []


def test_pdf_document_sent_to_oracle(runner, make_obj, tmp_path):
    pdf_path = tmp_path / "extracto.pdf"
    pdf_path.write_bytes(b"%PDF-1.4\n%fake\n")
    obj = make_obj()

    result = runner.invoke(cli, ['extract', '--pdf', str(pdf_path), '--no-export'], obj=obj)

    assert result.exit_code == 0, result.output
    statement, _ = obj['cli'].gateway.oracle.calls[0]
    assert statement.filename == "extracto.pdf"
    assert statement.document == b"%PDF-1.4\n%fake\n"


def test_init_config_json(runner, make_obj, tmp_path):
    path = tmp_path / "extractor_config.json"
    result = runner.invoke(cli, ['init-config', str(path)], obj=make_obj())

    assert result.exit_code == 0
    with open(path) as f:
        data = json.load(f)
    assert data['malformed_row_policy'] == "reject"


def test_init_config_yaml(runner, make_obj, tmp_path):
    path = tmp_path / "extractor_config.json"
    result = runner.invoke(cli, ['init-config', str(path), '--format', 'yaml'], obj=make_obj())

    assert result.exit_code == 0
    yaml_path = str(path).replace('.json', '.yml')
    assert os.path.exists(yaml_path)
    with open(yaml_path) as f:
        assert yaml.safe_load(f)['default_bank'] == "Banco Popular"


def test_format_table_collapses_whitespace():
    transactions = [
        Transaction("01/01/2024", "Pago\n  tarjeta", Decimal("-1500.5"), Decimal("98500")),
    ]

    lines = format_table(transactions).split('\n')

    assert lines[0].split() == ['Fecha', 'Detalle', 'Movimiento', 'Saldo']
    assert lines[2].split() == ['01/01/2024', 'Pago', 'tarjeta', '-1500,50', '98500,00']


def test_skipped_rows_are_reported(runner, tmp_path, statement_file):
    config_path = tmp_path / "skip_config.json"
    config_path.write_text(json.dumps({"malformed_row_policy": "skip"}))
    rows = [
        {"date": "01/01", "detail": "ok", "movement": 1, "balance": 1},
        {"date": "", "detail": "bad", "movement": 1, "balance": 1},
    ]
    obj = {'cli': StatementExtractorCLI(config_path=str(config_path), oracle=StaticOracle(rows=rows))}

    result = runner.invoke(cli, ['extract', '-t', statement_file, '--no-export'], obj=obj)

    assert result.exit_code == 0, result.output
    assert "✓ Extracted 1 transactions" in result.output
    assert "⚠ Skipped 1 malformed rows" in result.output
    assert "Row 2: date cannot be empty" in result.output


def test_export_write_failure_is_recorded(runner, make_obj, statement_file, tmp_path):
    blocker = tmp_path / "not_a_directory"
    blocker.write_text("")
    obj = make_obj()

    result = runner.invoke(cli, ['extract', '-t', statement_file, '-o', str(blocker)], obj=obj)

    assert result.exit_code == 1
    assert "✗ Export failed" in result.output
    assert [e.error_code for e in obj['cli'].error_handler.errors] == ["X002"]


def test_invalid_config_is_recorded(tmp_path):
    config_path = tmp_path / "bad_config.json"
    config_path.write_text(json.dumps({"document_mode": "ocr"}))

    cli_instance = StatementExtractorCLI(config_path=str(config_path), oracle=StaticOracle())

    assert cli_instance.config.document_mode == "file"
    warnings = cli_instance.error_handler.warnings
    assert [w.error_code for w in warnings] == ["C001"]
    assert "document_mode" in warnings[0].message
