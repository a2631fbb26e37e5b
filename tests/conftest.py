"""
Shared pytest fixtures for mbean-spine tests.

- Resets structlog configuration and bound context between tests
- Provides a few representative object names
"""

import pytest
import structlog

from mbeanspine.object_name import ObjectInstance, ObjectName


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Each test starts from structlog's default (uncached) configuration."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def gc_name() -> ObjectName:
    return ObjectName('java.lang:type=GarbageCollector,name="G1 Young Generation"')


@pytest.fixture
def memory_pool_names() -> list[ObjectName]:
    return [
        ObjectName(f"java.lang:type=MemoryPool,name=pool{i}")
        for i in range(5)
    ]


@pytest.fixture
def gc_instance(gc_name) -> ObjectInstance:
    return ObjectInstance(gc_name, "sun.management.GarbageCollectorImpl")
