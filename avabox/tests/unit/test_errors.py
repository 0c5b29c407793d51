"""
Unit tests for the avabox typed error classes.
"""

from avabox.commands.errors import (
    AvaboxError,
    CancellationError,
    ClientError,
    ConfigurationError,
    NetworkResolutionError,
    NodeError,
    ProvisionError,
    RpcError,
    TransactionError,
    TransientTransportError,
    ValidationError,
)


class TestAvaboxError:
    """Tests for the base AvaboxError class."""

    def test_basic_error(self):
        """Test basic error creation with message only."""
        error = AvaboxError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.code is None
        assert error.details == {}

    def test_error_with_code(self):
        error = AvaboxError("Something went wrong", code="ERR_001")
        assert str(error) == "[ERR_001] Something went wrong"

    def test_to_dict(self):
        """Test error serialization to dictionary."""
        error = AvaboxError("Test error", code="TEST_CODE", details={"key": "value"})
        assert error.to_dict() == {
            "type": "AvaboxError",
            "message": "Test error",
            "code": "TEST_CODE",
            "details": {"key": "value"},
        }

    def test_to_dict_minimal(self):
        assert AvaboxError("Test error").to_dict() == {
            "type": "AvaboxError",
            "message": "Test error",
        }


class TestProvisionError:
    def test_names_node_and_artifact(self):
        """Test that the failing artifact ends up in the details."""
        error = ProvisionError("disk full", node_index=2, artifact="tls.key")
        assert error.code == "PROVISION_FAILED"
        assert error.node_index == 2
        assert error.details == {"node_index": 2, "artifact": "tls.key"}
        assert isinstance(error, AvaboxError)

    def test_node_index_zero_is_kept(self):
        error = ProvisionError("boom", node_index=0)
        assert error.details["node_index"] == 0


class TestNodeError:
    def test_code_and_node_index(self):
        error = NodeError("container exited", node_index=2)
        assert error.code == "NODE_ERROR"
        assert error.details == {"node_index": 2}
        assert isinstance(error, AvaboxError)


class TestNetworkResolutionError:
    def test_peer_index(self):
        error = NetworkResolutionError("no ip", node_index=3, peer_index=1)
        assert error.code == "NETWORK_RESOLUTION_FAILED"
        assert error.details == {"node_index": 3, "peer_index": 1}


class TestClientErrors:
    """Tests for the RPC error family."""

    def test_client_error_details(self):
        error = ClientError("bad gateway", url="http://127.0.0.1:9650", status_code=502)
        assert error.details == {"url": "http://127.0.0.1:9650", "status_code": 502}
        assert error.code is None

    def test_rpc_error_is_client_error(self):
        error = RpcError("insufficient funds", method="avm.export", rpc_code=-32000)
        assert isinstance(error, ClientError)
        assert error.code == "RPC_ERROR"
        assert error.details["method"] == "avm.export"
        assert error.details["rpc_code"] == -32000

    def test_transient_transport_error(self):
        """Test that premature close is a distinct client error."""
        error = TransientTransportError("closed", url="http://x")
        assert isinstance(error, ClientError)
        assert error.code == "PREMATURE_CLOSE"


class TestCancellationError:
    def test_waiting_for(self):
        error = CancellationError("stop", waiting_for="X-chain bootstrap", node_index=0)
        assert error.code == "CANCELLED"
        assert error.details == {"waiting_for": "X-chain bootstrap", "node_index": 0}


class TestTransactionError:
    def test_step_and_subnet(self):
        """Test that the failed step and subnet are reported."""
        error = TransactionError(
            "rejected", step="create_chain", node_index=1, subnet="subnet-b"
        )
        assert error.code == "TRANSACTION_FAILED"
        assert error.step == "create_chain"
        assert error.subnet == "subnet-b"
        assert error.details == {
            "step": "create_chain",
            "node_index": 1,
            "subnet": "subnet-b",
        }

    def test_without_subnet(self):
        error = TransactionError("rejected", step="export", node_index=0)
        assert "subnet" not in error.details


class TestValidationAndConfigurationErrors:
    def test_validation_error(self):
        error = ValidationError("bad address", field="address", value="Q-abc")
        assert error.code == "VALIDATION_FAILED"
        assert error.details == {"field": "address", "value": "Q-abc"}

    def test_configuration_error(self):
        error = ConfigurationError("missing nodes", config_file="net.yml")
        assert error.code == "CONFIGURATION_ERROR"
        assert str(error) == "[CONFIGURATION_ERROR] missing nodes"
        assert error.details == {"config_file": "net.yml"}
