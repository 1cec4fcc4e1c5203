from __future__ import annotations

from typing import Iterable

from farmtractor.gateway.models import Job

HEADERS = ("Device", "Result")


def render_results_table(jobs: Iterable[Job]) -> str:
    """Render an ASCII bordered table of device name and job result."""
    rows = [(job.device_name or job.name, job.result.value) for job in jobs]
    widths = [
        max([len(HEADERS[column])] + [len(row[column]) for row in rows])
        for column in range(len(HEADERS))
    ]

    def _line(cells: tuple[str, str]) -> str:
        padded = (cell.ljust(width) for cell, width in zip(cells, widths))
        return "| " + " | ".join(padded) + " |"

    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
    lines = [border, _line(HEADERS), border]
    lines.extend(_line(row) for row in rows)
    lines.append(border)
    return "\n".join(lines)
