"""Simple analysis agents and an orchestrator that runs them."""

from __future__ import annotations

import asyncio
import hashlib
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

CPU_USAGE_THRESHOLD = 0.9
MEMORY_USAGE_THRESHOLD = 0.85
MIN_SECRET_LENGTH = 8
WEAK_KEY_MARKERS = ("test", "default")


class RecommendationCategory(Enum):
    """Area a recommendation concerns."""

    PERFORMANCE = "Performance"
    SECURITY = "Security"
    RESOURCE_OPTIMIZATION = "ResourceOptimization"
    ERROR_MITIGATION = "ErrorMitigation"


class RecommendationSeverity(Enum):
    """How urgent a recommendation is."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class AgentRecommendation:
    """A single finding produced by an agent."""

    category: RecommendationCategory
    severity: RecommendationSeverity
    description: str
    suggested_action: str | None = None


@dataclass
class AgentActionResult:
    """Outcome of one agent run."""

    success: bool
    message: str
    recommendations: list[AgentRecommendation] = field(default_factory=list)


class AIAgent(ABC):
    """Base class for agents run by an orchestrator."""

    def __init__(self) -> None:
        self._id = uuid.uuid4()

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable agent name."""

    @abstractmethod
    async def execute(self) -> AgentActionResult:
        """Run the agent's primary action."""

    @abstractmethod
    async def background_task(self) -> None:
        """Periodic housekeeping."""


class OptimizationAgent(AIAgent):
    """Flags high CPU and memory utilisation."""

    def __init__(self) -> None:
        super().__init__()
        self._metrics: dict[str, float] = {}
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "Resource Optimization Agent"

    async def update_metrics(self, metrics: Mapping[str, float]) -> None:
        """Merge new metric values into the current set."""
        async with self._lock:
            self._metrics.update(metrics)

    async def _analyze_resource_utilization(self) -> list[AgentRecommendation]:
        async with self._lock:
            metrics = dict(self._metrics)
        recommendations = []
        cpu = metrics.get("cpu_usage")
        if cpu is not None and cpu > CPU_USAGE_THRESHOLD:
            recommendations.append(
                AgentRecommendation(
                    RecommendationCategory.RESOURCE_OPTIMIZATION,
                    RecommendationSeverity.HIGH,
                    "High CPU Utilization Detected",
                    "Consider scaling resources or optimizing workload",
                )
            )
        memory = metrics.get("memory_usage")
        if memory is not None and memory > MEMORY_USAGE_THRESHOLD:
            recommendations.append(
                AgentRecommendation(
                    RecommendationCategory.RESOURCE_OPTIMIZATION,
                    RecommendationSeverity.HIGH,
                    "High Memory Utilization Detected",
                    "Implement memory caching or increase memory allocation",
                )
            )
        return recommendations

    async def execute(self) -> AgentActionResult:
        recommendations = await self._analyze_resource_utilization()
        return AgentActionResult(True, "Resource analysis completed", recommendations)

    async def background_task(self) -> None:
        async with self._lock:
            pass


class SecurityAgent(AIAgent):
    """Stores hashed secrets and flags weak-looking keys."""

    def __init__(self) -> None:
        super().__init__()
        self._store: dict[str, str] = {}
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "Security Management Agent"

    @staticmethod
    def _hash_secret(value: str) -> str:
        return hashlib.sha256(value.encode("utf-8")).hexdigest()

    async def store_secret(self, key: str, value: str) -> None:
        """Validate a secret and store its SHA-256 digest under key."""
        if len(value.encode("utf-8")) < MIN_SECRET_LENGTH:
            raise ValueError("Secret too short")
        async with self._lock:
            self._store[key] = self._hash_secret(value)

    def stored_digest(self, key: str) -> str:
        """Return the stored digest for key."""
        return self._store[key]

    async def _analyze_secrets(self) -> list[AgentRecommendation]:
        async with self._lock:
            keys = list(self._store)
        return [
            AgentRecommendation(
                RecommendationCategory.SECURITY,
                RecommendationSeverity.HIGH,
                f"Potentially weak secret key detected: {key}",
                "Review and replace secret",
            )
            for key in keys
            if any(marker in key for marker in WEAK_KEY_MARKERS)
        ]

    async def execute(self) -> AgentActionResult:
        recommendations = await self._analyze_secrets()
        return AgentActionResult(True, "Security analysis completed", recommendations)

    async def background_task(self) -> None:
        return None


class AgentOrchestrator:
    """Runs every registered agent in registration order."""

    def __init__(self) -> None:
        self._agents: list[AIAgent] = []

    @property
    def agents(self) -> tuple[AIAgent, ...]:
        return tuple(self._agents)

    def register_agent(self, agent: AIAgent) -> None:
        self._agents.append(agent)

    async def execute_all(self) -> list[AgentActionResult]:
        """Execute each agent; the first failure propagates."""
        return [await agent.execute() for agent in self._agents]


@dataclass
class AgentConfig:
    """Global agent settings."""

    max_concurrent_agents: int = 10
    default_capability_timeout: float = 30.0