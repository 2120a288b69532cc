"""
Pytest configuration and fixtures for recordkit tests

This module provides shared record definitions for unit and integration tests.
"""
import pytest

from recordkit import RecordBuilder, ref


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for a single component"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that run whole records through the engine"
    )


# =======================
# DEFINITION FIXTURES
# =======================

@pytest.fixture
def person_definition():
    """
    Person with a required age bounded by a binding

    Returns:
        RecordDefinition with age (0 < age < max_age) and an optional name
    """
    return (
        RecordBuilder("Person")
        .field("age", "integer", required=True, greater_than=0, less_than=ref("max_age"))
        .field("name", "string")
        .build()
    )


@pytest.fixture
def score_definition():
    """
    Score derived from rating and category and guarded against the rating

    Returns:
        RecordDefinition with rating, category and a derived score
    """
    return (
        RecordBuilder("Score")
        .field("rating", "integer")
        .field("category", "integer")
        .field("score", "integer", derive=ref("rating") + ref("category"), when=ref("score") > ref("rating"))
        .build()
    )


@pytest.fixture
def address_definition():
    """Address with a required city"""
    return RecordBuilder("Address").field("city", "string", required=True).field("zip", "string").build()
