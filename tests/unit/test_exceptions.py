"""Tests for the exceptions module."""

import pytest
from arb_monitor.exceptions import (
    ArbMonitorError,
    ConfigurationError,
    LegFailure,
    NetworkError,
    QuoteUnavailable,
    ScanSkipped,
    ValidationError,
)


def test_base_exception():
    """Test the base exception class."""
    error = ArbMonitorError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = ArbMonitorError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    """Test configuration error."""
    error = ConfigurationError("Config error", {"config_file": "test.yaml"})
    assert str(error) == "Config error"
    assert error.details["config_file"] == "test.yaml"
    assert isinstance(error, ArbMonitorError)


def test_validation_error():
    error = ValidationError("Validation failed")
    assert str(error) == "Validation failed"
    assert isinstance(error, ArbMonitorError)


def test_network_error():
    """Test network error keeps the endpoint."""
    error = NetworkError("Unreachable", endpoint="https://rpc.example")
    assert str(error) == "Unreachable"
    assert error.endpoint == "https://rpc.example"
    assert isinstance(error, ArbMonitorError)


def test_quote_unavailable():
    """Test quote failure message and attributes."""
    error = QuoteUnavailable("WETH", "USDC", "execution reverted", {"fee_tier": 3000})
    assert str(error) == "WETH -> USDC: execution reverted"
    assert error.token_in == "WETH"
    assert error.token_out == "USDC"
    assert error.reason == "execution reverted"
    assert error.details["fee_tier"] == 3000


def test_leg_failure_message_names_step():
    cause = QuoteUnavailable("USDC", "DAI", "no pool")
    error = LegFailure(2, cause, completed=["leg1"])

    assert str(error) == "Step 2 (USDC -> DAI) failed: no pool"
    assert error.step == 2
    assert error.cause is cause
    assert error.completed == ("leg1",)


@pytest.mark.parametrize("step", [0, 4, -1])
def test_leg_failure_rejects_invalid_step(step):
    with pytest.raises(ValueError):
        LegFailure(step, QuoteUnavailable("A", "B", "x"))


def test_scan_skipped_wraps_failure():
    failure = LegFailure(1, QuoteUnavailable("WETH", "USDC", "no pool"))
    error = ScanSkipped("WETH → USDC → DAI", failure)

    assert error.failure is failure
    assert "Skipped WETH → USDC → DAI" in str(error)
    assert isinstance(error, ArbMonitorError)
