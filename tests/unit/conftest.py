"""Shared fixtures for unit tests."""

import sys

import pytest


@pytest.fixture(autouse=True)
def reset_server_state():
    """Reset server module state between tests to prevent test pollution.

    Global state in server modules (like _SERVER_START_TIME in health.py)
    is restored after every test.
    """
    original_modules = {}
    server_modules = [k for k in sys.modules if k.startswith("mediagrab.server")]

    for module_name in server_modules:
        module = sys.modules[module_name]
        if hasattr(module, "_SERVER_START_TIME"):
            original_modules[module_name] = {
                "_SERVER_START_TIME": getattr(module, "_SERVER_START_TIME", None)
            }

    yield

    for module_name, state in original_modules.items():
        if module_name in sys.modules:
            module = sys.modules[module_name]
            for attr, value in state.items():
                setattr(module, attr, value)
