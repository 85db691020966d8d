"""Report generation for portfolio scans"""

import json
from collections import defaultdict
from typing import Dict, List, Optional

import click

from .models import NotificationEvent
from .notifications import NotificationBus
from .portfolio_scanner import ScanSummary


class ReportEngine(NotificationBus):
    """
    Collects notification events from all analyzers and generates reports

    Supports:
    - Console output with colored formatting, grouped by affected project
    - JSON export including per-analyzer scan summaries
    """

    def __init__(self):
        self.events: List[NotificationEvent] = []
        # Structure: {analyzer name: ScanSummary}
        self.summaries: Dict[str, ScanSummary] = {}

    def dispatch(self, event: NotificationEvent):
        self.events.append(event)

    def set_summary(self, analyzer_name: str, summary: ScanSummary):
        self.summaries[analyzer_name] = summary

    def get_event_count(self) -> int:
        return len(self.events)

    def get_failed_batch_count(self) -> int:
        return sum(s.batches_failed for s in self.summaries.values())

    def _group_by_project(self) -> Dict[Optional[str], List[NotificationEvent]]:
        """Events keyed by project id; None collects events with no affected project"""
        grouped = defaultdict(list)
        for event in self.events:
            projects = event.subject.affected_projects
            if not projects:
                grouped[None].append(event)
            for project in projects:
                grouped[project.id].append(event)
        return grouped

    def print_report(self):
        """Print formatted console report"""
        click.echo("\n" + click.style("=" * 80, fg='white', bold=True))
        click.echo(click.style("PORTFOLIO SCAN REPORT", fg='white', bold=True))
        click.echo(click.style("=" * 80, fg='white', bold=True))

        for analyzer_name, summary in sorted(self.summaries.items()):
            self._print_summary(analyzer_name, summary)

        if not self.events:
            click.echo(click.style("\n✓ No new vulnerabilities identified.\n", fg='green', bold=True))
            return

        click.echo(click.style("\n⚠️  NEW VULNERABILITIES: ", fg='red', bold=True) +
                   click.style(f"{len(self.events)} new association(s)\n", fg='yellow', bold=True))

        grouped = self._group_by_project()
        project_names = {}
        for event in self.events:
            for project in event.subject.affected_projects:
                project_names[project.id] = project.name or project.id

        for project_id in sorted(k for k in grouped if k is not None):
            click.echo(click.style("─" * 80, fg='cyan'))
            click.echo(click.style(f"📦 PROJECT: {project_names[project_id]}", fg='cyan', bold=True))
            click.echo(click.style("─" * 80, fg='cyan'))
            for event in grouped[project_id]:
                self._print_event(event)
            click.echo()

        if None in grouped:
            click.echo(click.style("─" * 80, fg='yellow'))
            click.echo(click.style("📄 NOT YET USED BY ANY PROJECT:", fg='yellow', bold=True))
            click.echo(click.style("─" * 80, fg='yellow'))
            for event in grouped[None]:
                self._print_event(event)
            click.echo()

    def _print_event(self, event: NotificationEvent):
        subject = event.subject
        component = subject.component
        label = f"{component.name}@{component.version}" if component.version else component.name
        click.echo(f"  {click.style(subject.vulnerability.vuln_id, fg='red', bold=True)} in {label}"
                   f" (component {component.id})")

    def _print_summary(self, analyzer_name: str, summary: ScanSummary):
        color = 'green' if summary.successful else 'yellow'
        click.echo(click.style(f"🔎 {analyzer_name}: ", fg='cyan', bold=True) +
                   click.style(f"{summary.visited}/{summary.total} component(s), "
                               f"{summary.batches_completed} batch(es) completed, "
                               f"{summary.batches_failed} failed"
                               + (", cancelled" if summary.cancelled else ""), fg=color))
        for failure in summary.failures:
            click.echo(click.style(
                f"    └─ batch {failure.batch_number} (ids {failure.first_component_id}-"
                f"{failure.last_component_id}): {failure.error}", fg='yellow', dim=True))

    def save_report(self, output_file: str) -> bool:
        """
        Save events and scan summaries to a JSON file

        Args:
            output_file: Path to output file

        Returns:
            True if saved successfully, False otherwise
        """
        report = {
            'total_notifications': len(self.events),
            'scans': {name: s.to_dict() for name, s in sorted(self.summaries.items())},
            'notifications': [event.to_dict() for event in self.events],
        }

        try:
            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2)
            return True

        except OSError as e:
            click.echo(click.style(f"✗ Error saving report: {e}", fg='red', bold=True), err=True)
            return False
