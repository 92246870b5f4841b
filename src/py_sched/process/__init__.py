"""Process subsystem — PCB, bursts, queues, and dispatch policies.

Re-exports public symbols so callers can write::

    from py_sched.process import Process, Scheduler, create_policy
"""

from py_sched.process.pcb import Burst, BurstKind, Process, ProcessState
from py_sched.process.scheduler import (
    EmptyQueueError,
    FCFSPolicy,
    PolicyName,
    PriorityPolicy,
    RoundRobinPolicy,
    Scheduler,
    SchedulingPolicy,
    ShortestRemainingBurstPolicy,
    create_policy,
)

__all__ = [
    "Burst",
    "BurstKind",
    "EmptyQueueError",
    "FCFSPolicy",
    "PolicyName",
    "PriorityPolicy",
    "Process",
    "ProcessState",
    "RoundRobinPolicy",
    "Scheduler",
    "SchedulingPolicy",
    "ShortestRemainingBurstPolicy",
    "create_policy",
]
