import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from catalog.spec_loader import SpecLoader
from cli.cli_exit_codes import EXIT_LOAD_ERROR, exit_code_for
from cli.cli_summary_formatter import format_summary
from core.coverage_config import configure_logging
from core.coverage_tracker import CoverageTracker
from core.exceptions import CoverageError
from core.request_collector import RequestCollector
from report.endpoint_coverage_section import EndpointCoverageSection
from report.report_generator import ReportGenerator


def load_recorded_requests(requests_file: str) -> List[Dict[str, Any]]:
    """Read a requests.json file: a list of request objects or ``{"requests": [...]}``."""
    try:
        with open(requests_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CoverageError(f"Failed to read recorded requests from {requests_file}: {e}")

    if isinstance(data, dict):
        data = data.get("requests")
    if not isinstance(data, list):
        raise CoverageError(f"Recorded requests in {requests_file} must be a list")
    return [entry for entry in data if isinstance(entry, dict)]


def replay(spec_path: str, requests_file: str, base_path: Optional[str] = None,
           match_path_templates: bool = True) -> CoverageTracker:
    spec_document = SpecLoader.load(spec_path)
    tracker = CoverageTracker.from_spec(
        spec_document,
        base_path=base_path,
        match_path_templates=match_path_templates,
    )
    collector = RequestCollector(tracker)
    for entry in load_recorded_requests(requests_file):
        collector.record_request(entry)
    return tracker


@click.group()
@click.option('--debug', is_flag=True, help="Log diagnostics to the console")
@click.option('--log-level', default='warning', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-file', help="Append log records to this file")
def cli(debug, log_level, log_file):
    """API coverage tracking from OpenAPI/Swagger documents."""
    configure_logging(log_level, log_file, debug)


@cli.command('report')
@click.argument('spec_path')
@click.argument('requests_file', type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option('--base-path', help="Base path prefixed to catalog and request paths")
@click.option('--format', 'output_format', default='terminal',
              type=click.Choice(['terminal', 'json', 'markdown', 'csv']), help="Output format")
@click.option('--output-dir', '-o', help="Also write coverage.json, requests.json and coverage.html here")
@click.option('--title', default="API Coverage Report", help="Title of the HTML report")
@click.option('--no-templates', is_flag=True, help="Disable path template matching")
@click.option('--color/--no-color', default=True, help="Colorize terminal output")
def report_command(spec_path, requests_file, base_path, output_format, output_dir, title, no_templates, color):
    """Replay recorded requests against SPEC_PATH and print the coverage."""
    try:
        tracker = replay(spec_path, requests_file, base_path, match_path_templates=not no_templates)
    except CoverageError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(EXIT_LOAD_ERROR)

    snapshot = tracker.summarize()
    section = EndpointCoverageSection(snapshot)

    if output_format == 'terminal':
        click.echo(format_summary(snapshot, tracker.get_unmatched(), use_color=color))
    else:
        click.echo(section.render(output_format), nl=output_format != 'csv')

    if output_dir:
        paths = ReportGenerator(Path(output_dir), title=title).generate(snapshot, tracker.get_requests())
        click.echo(f"✅ Coverage report written to {paths['html']}", err=True)


@cli.command('check')
@click.argument('spec_path')
@click.argument('requests_file', type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option('--base-path', help="Base path prefixed to catalog and request paths")
@click.option('--min-coverage', default=80.0, type=click.FloatRange(0, 100), show_default=True,
              help="Minimum coverage percentage")
def check_command(spec_path, requests_file, base_path, min_coverage):
    """Fail when coverage of SPEC_PATH falls below --min-coverage."""
    try:
        tracker = replay(spec_path, requests_file, base_path)
    except CoverageError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(EXIT_LOAD_ERROR)

    snapshot = tracker.summarize()
    code = exit_code_for(snapshot.percentage, min_coverage)
    marker = "✅" if code == 0 else "❌"
    click.echo(f"{marker} Coverage {snapshot.percentage:.1f}% (minimum {min_coverage:.1f}%)")
    sys.exit(code)


if __name__ == '__main__':
    cli()
