"""Shared fixtures"""

import pytest

from grist_sync.mapper.mapping import FieldMapping
from tests.fakes import FakeDestination


@pytest.fixture
def user_mappings():
    """email/name mappings used by the scenario tests"""
    return [FieldMapping("email", "email"), FieldMapping("name", "name")]


@pytest.fixture
def empty_destination():
    """Destination with the scenario columns and no rows"""
    return FakeDestination(columns=["email", "name"])
