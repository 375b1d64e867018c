import hashlib

import pytest

from devforge.agents import (
    AgentConfig,
    AgentOrchestrator,
    OptimizationAgent,
    RecommendationCategory,
    RecommendationSeverity,
    SecurityAgent,
)


@pytest.mark.asyncio
async def test_optimization_agent_high_cpu():
    agent = OptimizationAgent()
    await agent.update_metrics({"cpu_usage": 0.95, "memory_usage": 0.5})
    result = await agent.execute()
    assert result.success
    assert len(result.recommendations) == 1
    rec = result.recommendations[0]
    assert rec.description == "High CPU Utilization Detected"
    assert rec.category is RecommendationCategory.RESOURCE_OPTIMIZATION
    assert rec.severity is RecommendationSeverity.HIGH


@pytest.mark.asyncio
async def test_optimization_agent_cpu_and_memory():
    agent = OptimizationAgent()
    await agent.update_metrics({"cpu_usage": 0.95})
    await agent.update_metrics({"memory_usage": 0.9})
    result = await agent.execute()
    assert [r.description for r in result.recommendations] == [
        "High CPU Utilization Detected",
        "High Memory Utilization Detected",
    ]


@pytest.mark.asyncio
async def test_optimization_agent_thresholds_are_exclusive():
    agent = OptimizationAgent()
    await agent.update_metrics({"cpu_usage": 0.9, "memory_usage": 0.85})
    result = await agent.execute()
    assert result.recommendations == []
    assert result.message == "Resource analysis completed"


@pytest.mark.asyncio
async def test_security_agent_flags_test_key():
    agent = SecurityAgent()
    await agent.store_secret("test_key", "password")
    result = await agent.execute()
    assert result.success
    assert [r.description for r in result.recommendations] == [
        "Potentially weak secret key detected: test_key"
    ]
    assert result.recommendations[0].category is RecommendationCategory.SECURITY


@pytest.mark.asyncio
async def test_security_agent_stores_digest():
    agent = SecurityAgent()
    await agent.store_secret("prod_key", "password")
    assert agent.stored_digest("prod_key") == hashlib.sha256(b"password").hexdigest()
    result = await agent.execute()
    assert result.recommendations == []


@pytest.mark.asyncio
async def test_security_agent_rejects_short_secret():
    agent = SecurityAgent()
    with pytest.raises(ValueError, match="Secret too short"):
        await agent.store_secret("prod_key", "secret")


@pytest.mark.asyncio
async def test_security_agent_flags_default_key():
    agent = SecurityAgent()
    await agent.store_secret("default_db", "password")
    result = await agent.execute()
    assert len(result.recommendations) == 1


@pytest.mark.asyncio
async def test_agent_orchestrator():
    orchestrator = AgentOrchestrator()
    orchestrator.register_agent(OptimizationAgent())
    orchestrator.register_agent(SecurityAgent())
    results = await orchestrator.execute_all()
    assert len(results) == 2
    assert [r.message for r in results] == [
        "Resource analysis completed",
        "Security analysis completed",
    ]


def test_agent_names_and_ids():
    a, b = OptimizationAgent(), SecurityAgent()
    assert a.name == "Resource Optimization Agent"
    assert b.name == "Security Management Agent"
    assert a.id != b.id and isinstance(a.id.hex, str)


def test_agent_config_defaults():
    config = AgentConfig()
    assert (config.max_concurrent_agents, config.default_capability_timeout) == (10, 30.0)