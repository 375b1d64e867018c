"""Capability-based agents with a tiny confidence learning model."""

from __future__ import annotations

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

DEFAULT_CONFIDENCE = 0.5
EXECUTE_CONFIDENCE = 0.7
MAX_SYSTEM_LOAD = 0.8
LEARNING_STEP = 0.1


@dataclass(frozen=True)
class ResourceRequirements:
    """Estimated resources a capability needs."""

    cpu_usage: float
    memory_usage: int
    estimated_execution_time: timedelta


@dataclass(frozen=True)
class AgentCapability:
    """Something an agent can do."""

    name: str
    description: str
    complexity: float
    resource_requirements: ResourceRequirements
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class PerformanceMetric:
    timestamp: datetime
    metric_type: str
    value: float


class TaskStatus(Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass
class TaskDescriptor:
    name: str
    status: TaskStatus = TaskStatus.PENDING
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AgentContext:
    """State an agent consults when deciding."""

    system_state: dict[str, Any] = field(default_factory=dict)
    performance_history: list[PerformanceMetric] = field(default_factory=list)
    active_tasks: list[TaskDescriptor] = field(default_factory=list)


class TaskExecutionDecision(Enum):
    EXECUTE = "Execute"
    DEFER = "Defer"
    REJECT = "Reject"


class AdvancedAgent(ABC):
    """Interface for capability-based agents."""

    @property
    @abstractmethod
    def id(self) -> uuid.UUID:
        """Unique agent identifier."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent name."""

    @abstractmethod
    def list_capabilities(self) -> list[AgentCapability]:
        """Capabilities this agent offers."""

    @abstractmethod
    async def evaluate_task(
        self, task: TaskDescriptor, context: AgentContext
    ) -> TaskExecutionDecision:
        """Decide whether to take on a task."""

    @abstractmethod
    async def execute_capability(
        self, capability_id: uuid.UUID, context: AgentContext
    ) -> dict[str, Any]:
        """Run one capability and return its result."""

    @abstractmethod
    async def learn_from_execution(
        self, task: TaskDescriptor, execution_result: dict[str, Any]
    ) -> None:
        """Update internal state from an execution result."""


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class CoreAgent(AdvancedAgent):
    """Default agent that executes once it is confident enough."""

    def __init__(self, name: str, capabilities: list[AgentCapability]) -> None:
        self._id = uuid.uuid4()
        self._name = name
        self._capabilities = list(capabilities)
        self._confidence: dict[uuid.UUID, float] = {}
        self._model_lock = asyncio.Lock()
        self._history: list[PerformanceMetric] = []
        self._history_lock = asyncio.Lock()

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def performance_history(self) -> list[PerformanceMetric]:
        return list(self._history)

    def list_capabilities(self) -> list[AgentCapability]:
        return list(self._capabilities)

    def confidence(self, capability_id: uuid.UUID) -> float:
        """Learned confidence for a capability, 0.5 when nothing is known."""
        return self._confidence.get(capability_id, DEFAULT_CONFIDENCE)

    async def evaluate_task(
        self, task: TaskDescriptor, context: AgentContext
    ) -> TaskExecutionDecision:
        async with self._model_lock:
            load = _as_number(context.system_state.get("system_load"))
            system_load = 0.0 if load is None else load
            for capability in self._capabilities:
                if (
                    self.confidence(capability.id) > EXECUTE_CONFIDENCE
                    and system_load < MAX_SYSTEM_LOAD
                ):
                    return TaskExecutionDecision.EXECUTE
        return TaskExecutionDecision.DEFER

    async def execute_capability(
        self, capability_id: uuid.UUID, context: AgentContext
    ) -> dict[str, Any]:
        capability = next(
            (c for c in self._capabilities if c.id == capability_id), None
        )
        if capability is None:
            raise LookupError("Capability not found")
        now = datetime.now(timezone.utc)
        result = {
            "capability_name": capability.name,
            "status": "executed",
            "timestamp": now.isoformat(),
        }
        async with self._history_lock:
            self._history.append(PerformanceMetric(now, capability.name, 1.0))
        return result

    async def learn_from_execution(
        self, task: TaskDescriptor, execution_result: dict[str, Any]
    ) -> None:
        status = execution_result.get("status")
        success = isinstance(status, str) and status == "executed"
        async with self._model_lock:
            capability = next(
                (c for c in self._capabilities if c.name == task.name), None
            )
            if capability is None:
                return
            current = self.confidence(capability.id)
            current += LEARNING_STEP if success else -LEARNING_STEP
            self._confidence[capability.id] = min(max(current, 0.0), 1.0)


class AgentManager:
    """Dispatches tasks to the first agent willing to run them."""

    def __init__(self, context: AgentContext | None = None) -> None:
        self._agents: list[AdvancedAgent] = []
        self.context = context if context is not None else AgentContext()

    def register_agent(self, agent: AdvancedAgent) -> None:
        self._agents.append(agent)

    async def execute_task(self, task: TaskDescriptor) -> dict[str, Any]:
        """Run the task on the first suitable agent.

        Raises RuntimeError when no agent executes it.
        """
        for agent in self._agents:
            decision = await agent.evaluate_task(task, self.context)
            if decision is TaskExecutionDecision.REJECT:
                break
            if decision is TaskExecutionDecision.DEFER:
                continue
            for capability in agent.list_capabilities():
                result = await agent.execute_capability(capability.id, self.context)
                await agent.learn_from_execution(task, result)
                return result
        raise RuntimeError("No agent could execute the task")