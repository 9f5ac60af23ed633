from typing import List

from colorama import Fore, Style, init
from tabulate import tabulate

from catalog.endpoint import CoverageStatus, ObservedRequest
from core.coverage_snapshot import CoverageSnapshot

STATUS_COLORS = {
    CoverageStatus.COVERED: Fore.GREEN,
    CoverageStatus.PARTIALLY_COVERED: Fore.YELLOW,
    CoverageStatus.NOT_COVERED: Fore.RED,
}


def percentage_color(percentage: float) -> str:
    if percentage >= 80:
        return Fore.GREEN
    if percentage >= 50:
        return Fore.YELLOW
    return Fore.RED


def colored(text: str, color: str, use_color: bool = True) -> str:
    return f"{color}{text}{Style.RESET_ALL}" if use_color else text


def format_summary(
    snapshot: CoverageSnapshot,
    unmatched: List[ObservedRequest] = (),
    show_endpoints: bool = True,
    use_color: bool = True,
) -> str:
    """Terminal rendering of a coverage snapshot."""
    if use_color:
        init()

    lines = ["API COVERAGE REPORT", "===================", ""]

    overall = colored(f"{snapshot.percentage:.1f}%", percentage_color(snapshot.percentage), use_color)
    summary_table = [
        ["Total endpoints", snapshot.total_endpoints],
        ["Covered", snapshot.covered_endpoints],
        ["Partially covered", snapshot.partially_covered_endpoints],
        ["Not covered", snapshot.not_covered_endpoints],
        ["Unmatched requests", snapshot.unmatched_requests],
        ["Coverage", overall],
    ]
    lines.append(tabulate(summary_table, tablefmt="simple"))
    lines.append("")

    service_table = [
        [
            service.name,
            service.total_endpoints,
            service.covered_endpoints,
            service.partially_covered_endpoints,
            colored(f"{service.percentage:.1f}%", percentage_color(service.percentage), use_color),
        ]
        for service in snapshot.services
    ]
    if service_table:
        lines.append(tabulate(service_table, headers=["Service", "Endpoints", "Covered", "Partial", "Coverage"]))
        lines.append("")

    if show_endpoints and snapshot.endpoints:
        endpoint_table = [
            [
                colored(endpoint.status.value, STATUS_COLORS[endpoint.status], use_color),
                endpoint.method,
                endpoint.normalized_path,
                ", ".join(str(c) for c in endpoint.missing_status_codes) or "-",
                endpoint.request_count,
            ]
            for endpoint in snapshot.endpoints
        ]
        lines.append(tabulate(endpoint_table, headers=["Status", "Method", "Path", "Missing codes", "Requests"]))
        lines.append("")

    if unmatched:
        lines.append(colored("UNMATCHED REQUESTS", Fore.YELLOW, use_color))
        lines.append("-" * 50)
        for request in unmatched:
            lines.append(f"• {request.method or '?'} {request.normalized_path} ({request.status_code or 'pending'})")
        lines.append("")

    return "\n".join(lines)
