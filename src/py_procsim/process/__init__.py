"""Process subsystem — PCB, process table, and scheduling.

Re-exports public symbols so callers can write::

    from py_procsim.process import Process, ProcessTable, Scheduler
"""

from py_procsim.process.pcb import MEMORY_RESIDENT_STATES, Process, ProcessState
from py_procsim.process.scheduler import Scheduler
from py_procsim.process.table import ProcessTable

__all__ = [
    "MEMORY_RESIDENT_STATES",
    "Process",
    "ProcessState",
    "ProcessTable",
    "Scheduler",
]
