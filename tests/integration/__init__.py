"""
Integration tests for the eventtap library.

These tests require a LocalStack instance with EventBridge and SQS, started
automatically through testcontainers.

Tests are skipped automatically if testcontainers or Docker is not available.

Run integration tests:
    pytest tests/integration/ -v

Skip integration tests:
    pytest tests/ -v -m "not integration"
"""
