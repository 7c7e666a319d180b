"""Command-line interface for the statement extractor."""

import asyncio
import logging
import os
import sys
from typing import List, Optional

import click

from .extraction.base import ExtractionOracle
from .extraction.gateway import ExtractionGateway
from .extraction.openai_oracle import OpenAIExtractionOracle
from .models.core import Bank, EntityOption, InputMode, Transaction
from .models.errors import StatementError
from .session import SessionController, SessionState
from .utils.config_manager import ConfigManager
from .utils.csv_writer import CSVWriter
from .utils.error_handler import ErrorCategory, ErrorHandler
from .utils.validation import ValidationEngine


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class StatementExtractorCLI:
    """Wires configuration, gateway and exporter for command-line sessions"""

    def __init__(self, config_path: Optional[str] = None,
                 oracle: Optional[ExtractionOracle] = None):
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.error_handler = ErrorHandler(log_directory=self.config.log_directory)
        for problem in self.config_manager.problems:
            self.error_handler.log_warning(
                f"Configuration ignored: {problem}", "INVALID_CONFIG_VALUE", ErrorCategory.CONFIGURATION
            )
        self.csv_writer = CSVWriter()

        validation_engine = ValidationEngine(self.config.malformed_row_policy)
        self.gateway = ExtractionGateway(
            oracle or OpenAIExtractionOracle(self.config), validation_engine
        )

    def new_session(self) -> SessionController:
        """Start a session using the configured default bank and entity"""
        state = SessionState(
            bank=Bank.from_label(self.config.default_bank),
            entity=EntityOption.from_label(self.config.default_entity),
        )
        return SessionController(
            self.gateway, self.csv_writer, error_handler=self.error_handler, state=state
        )

    def run_extraction(self, session: SessionController) -> bool:
        return asyncio.run(session.process_statement())


def format_table(transactions: List[Transaction]) -> str:
    """Render transactions as a plain-text table"""
    rows = [('Fecha', 'Detalle', 'Movimiento', 'Saldo')]
    for t in transactions:
        rows.append((
            t.date,
            ' '.join(t.detail.split()),
            CSVWriter.format_amount(t.movement),
            CSVWriter.format_amount(t.balance),
        ))

    widths = [max(len(row[i]) for row in rows) for i in range(4)]
    lines = []
    for n, row in enumerate(rows):
        lines.append('  '.join([
            row[0].ljust(widths[0]),
            row[1].ljust(widths[1]),
            row[2].rjust(widths[2]),
            row[3].rjust(widths[3]),
        ]).rstrip())
        if n == 0:
            lines.append('  '.join('-' * w for w in widths))
    return '\n'.join(lines)


# CLI Commands using Click
@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """Extracto Bancario - Extract bank statement transactions to CSV"""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    if 'cli' not in ctx.obj:
        ctx.obj['cli'] = StatementExtractorCLI(config)


@cli.command()
def banks():
    """List supported banks and entity options"""
    click.echo("Banks:")
    for bank in Bank:
        click.echo(f"  - {bank.value}")
    click.echo("Entities:")
    for entity in EntityOption:
        click.echo(f"  - {entity.value}")


@cli.command()
@click.option('--bank', '-b', type=click.Choice([b.value for b in Bank], case_sensitive=False),
              help='Bank that issued the statement')
@click.option('--entity', '-e', type=click.Choice([e.value for e in EntityOption], case_sensitive=False),
              help='Entity tag written on every exported row')
@click.option('--text-file', '-t', type=click.Path(exists=True, dir_okay=False),
              help='File containing the pasted statement text')
@click.option('--pdf', '-p', type=click.Path(exists=True, dir_okay=False),
              help='PDF statement')
@click.option('--output', '-o', help='Directory for the CSV export')
@click.option('--no-export', is_flag=True, help='Only show the extracted transactions')
@click.option('--date', 'export_date', type=click.DateTime(formats=['%Y-%m-%d']),
              help='Date used in the export filename (default: today, UTC)')
@click.pass_context
def extract(ctx, bank, entity, text_file, pdf, output, no_export, export_date):
    """Extract transactions from a statement and export them as CSV

    Statement text is read from --text-file, or from standard input when
    neither --text-file nor --pdf is given.
    """

    cli_instance = ctx.obj['cli']

    if text_file and pdf:
        raise click.UsageError("Use either --text-file or --pdf, not both")

    session = cli_instance.new_session()
    if bank:
        session.set_bank(bank)
    if entity:
        session.set_entity(entity)

    if pdf:
        session.set_input_mode(InputMode.FILE)
        with open(pdf, 'rb') as f:
            session.set_document(f.read(), os.path.basename(pdf))
        if session.state.error:
            click.echo(f"✗ {session.state.error}", err=True)
            sys.exit(1)
    elif text_file:
        with open(text_file, 'r', encoding='utf-8') as f:
            session.set_statement_text(f.read())
    else:
        session.set_statement_text(sys.stdin.read())

    click.echo(f"Extracting transactions for {session.state.bank.value}...")
    if not cli_instance.run_extraction(session):
        click.echo(f"✗ {session.state.error}", err=True)
        sys.exit(1)

    transactions = session.state.transactions
    click.echo(format_table(transactions))
    click.echo(f"✓ Extracted {len(transactions)} transactions")
    if session.state.warnings:
        click.echo(f"⚠ Skipped {len(session.state.warnings)} malformed rows:", err=True)
        for warning in session.state.warnings:
            click.echo(f"  - {warning}", err=True)

    if not no_export:
        try:
            result = session.export(export_date.date() if export_date else None)
            path = cli_instance.csv_writer.write_export(
                result, output or cli_instance.config.output_directory
            )
        except StatementError as e:
            click.echo(f"✗ Export failed: {e}", err=True)
            sys.exit(1)
        except OSError as e:
            cli_instance.error_handler.log_error(
                f"Could not write export: {e}", "EXPORT_WRITE_FAILED", ErrorCategory.EXPORT,
                exception=e
            )
            click.echo(f"✗ Export failed: {e}", err=True)
            sys.exit(1)

        click.echo(f"✓ Exported {result.row_count} transactions to {path}")

    logger.debug(f"Session summary: {cli_instance.error_handler.get_error_summary()}")


@cli.command()
@click.argument('output_path', default='extractor_config.json')
@click.option('--format', type=click.Choice(['json', 'yaml']), default='json', help='Configuration file format')
@click.pass_context
def init_config(ctx, output_path, format):
    """Generate configuration template file"""

    cli_instance = ctx.obj['cli']

    if format == 'yaml' and not output_path.endswith(('.yml', '.yaml')):
        output_path = output_path.replace('.json', '.yml')
    elif format == 'json' and not output_path.endswith('.json'):
        output_path = output_path.replace('.yml', '.json').replace('.yaml', '.json')

    try:
        cli_instance.config_manager.save_config_template(output_path)
        click.echo(f"✓ Configuration template generated: {output_path}")
    except OSError as e:
        click.echo(f"✗ Error generating config template: {str(e)}")
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
