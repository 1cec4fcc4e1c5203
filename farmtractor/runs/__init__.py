from .monitor import RunMonitor
from .results_table import render_results_table

__all__ = ["RunMonitor", "render_results_table"]
