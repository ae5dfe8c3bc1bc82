"""
Root conftest.py - configuration shared by all test layers.

Test Layers:
    - integration/: Repositories against a real PostgreSQL
    - component/  : Service workflows against in-memory stores
    - unit/       : Entities, errors and config (no I/O)
"""
import os
import sys

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Select deployment/environments/test.env before core.config is imported
os.environ.setdefault("ENV", "testing")


def pytest_configure(config):
    """Register markers for every layer so `-m` works from the root"""
    config.addinivalue_line("markers", "unit: unit tests (no I/O)")
    config.addinivalue_line("markers", "component: component tests (mocked dependencies)")
    config.addinivalue_line("markers", "integration: integration tests (real PostgreSQL)")
