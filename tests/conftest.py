"""
Shared fixtures for the StarRecord test suite.

Every test starts from a clean model registry: no initialized model types,
no listeners, no driver, locale or cache store, and default configuration.
"""

from unittest.mock import Mock

import pytest

from starrecord import ACLModel, MemoryDriver, Model, StorageDriver, registry, set_config


@pytest.fixture(autouse=True)
def clean_registry():
    registry.reset()
    set_config(None)
    ACLModel.set_requester(None)
    yield
    registry.reset()
    set_config(None)
    ACLModel.set_requester(None)


@pytest.fixture
def driver():
    """In-memory storage driver installed for all models"""
    driver = MemoryDriver()
    Model.set_driver(driver)
    return driver


@pytest.fixture
def mock_driver():
    """Mock storage driver that accepts every write and stores nothing"""
    driver = Mock(spec=StorageDriver)
    driver.create_model.return_value = True
    driver.get_created_id.return_value = 1
    driver.load_model.return_value = None
    driver.update_model.return_value = True
    driver.delete_model.return_value = True
    driver.query_models.return_value = []
    driver.total_records.return_value = 0

    Model.set_driver(driver)
    return driver
