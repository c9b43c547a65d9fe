# routesim/output/__init__.py
from .base import Adapter
from .adapter import ScenarioAdapter, write_scenario_logs
from .fault_adapter import FaultAdapter
from .router_adapter import RouterAdapter
from .table_dump import dump, format_tables

__all__ = [
    "Adapter",
    "ScenarioAdapter",
    "write_scenario_logs",
    "FaultAdapter",
    "RouterAdapter",
    "dump",
    "format_tables",
]
