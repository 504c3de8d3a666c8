"""Console rendering of inspection results."""

from typing import Iterable

from .models import Finding, JobSummary


def format_findings(findings: list[Finding], include_quote: bool = True) -> list[str]:
    if not findings:
        return ["Findings: None"]
    lines = ["Findings: "]
    for finding in findings:
        if include_quote:
            lines.append(f"\tQuote: {finding.quote}")
        lines.append(f"\tInfo type: {finding.info_type}")
        lines.append(f"\tLikelihood: {finding.likelihood}")
    return lines


def format_job(summary: JobSummary) -> list[str]:
    lines = [f"Job {summary.name} status: {summary.state}"]
    if not summary.stats:
        lines.append("No findings.")
        return lines
    for stat in summary.stats:
        lines.append(
            f"  Found {stat.count} instance(s) of infoType {stat.info_type}."
        )
    return lines


def print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)
