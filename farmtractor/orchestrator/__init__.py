from .resolvers import DevicePoolResolver, ProjectResolver
from .runner import ExecutionType, RunOptions, TractorRunner, default_run_name

__all__ = [
    "DevicePoolResolver",
    "ExecutionType",
    "ProjectResolver",
    "RunOptions",
    "TractorRunner",
    "default_run_name",
]
