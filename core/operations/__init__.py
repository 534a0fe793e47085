"""
Operations Module

단계형 작업 스트리밍 엔진:
Progress Event, Phase Registry, Precondition Gate, Native Phase Executor,
Process Phase Adapter, Stream Publisher.
"""

from core.operations.errors import (
    MissingDependencyError,
    OperationError,
    PhaseRegistryError,
    TransportClosedError,
)
from core.operations.events import (
    FATAL_PHASE,
    SETUP_PHASE,
    TERMINAL_PHASE,
    ProgressCounter,
    ProgressEvent,
    ProgressLevel,
)
from core.operations.executor import (
    ExecutorState,
    GatedOperation,
    NativePhaseExecutor,
    PhaseStep,
    StepContext,
)
from core.operations.gate import GateDecision, GateOutcome, evaluate_gate
from core.operations.phases import PhaseDefinition, PhaseRegistry
from core.operations.process_adapter import ProcessPhaseAdapter, classify
from core.operations.publisher import QueueTransport, StreamPublisher, launch

__all__ = [
    # Errors
    "OperationError",
    "PhaseRegistryError",
    "MissingDependencyError",
    "TransportClosedError",
    # Events
    "SETUP_PHASE",
    "TERMINAL_PHASE",
    "FATAL_PHASE",
    "ProgressCounter",
    "ProgressEvent",
    "ProgressLevel",
    # Gate / Registry
    "GateDecision",
    "GateOutcome",
    "evaluate_gate",
    "PhaseDefinition",
    "PhaseRegistry",
    # Executors
    "ExecutorState",
    "GatedOperation",
    "NativePhaseExecutor",
    "PhaseStep",
    "StepContext",
    "ProcessPhaseAdapter",
    "classify",
    # Publisher
    "QueueTransport",
    "StreamPublisher",
    "launch",
]
