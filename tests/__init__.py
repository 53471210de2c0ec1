"""
Test suite for convey.

Test Structure:
    - conftest.py: Shared fixtures (in-memory store, module loaders, orchestrator factory)
    - configs/, designs/: Configuration files and design modules used by file-based runs
    - test_orchestrator.py: End-to-end check runs
    - test_services.py: Targets, publishing, migration, markers and module loading
    - test_memory_store.py, test_motor_store.py: Store adapters
    - test_models.py, test_versioning.py, test_config.py, test_cli.py

Running Tests:
    pytest                          # Run all tests
    pytest -v                       # Verbose output
    pytest tests/test_services.py   # Run specific test file
"""
