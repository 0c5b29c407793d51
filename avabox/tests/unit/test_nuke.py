"""
Unit tests for the nuke command.
"""

from unittest.mock import MagicMock, patch

from avabox.commands.nuke import execute_nuke


class TestExecuteNuke:
    @patch("avabox.commands.nuke.NetworkManager")
    @patch("avabox.commands.nuke.VolumeManager")
    @patch("avabox.commands.nuke.NodeManager")
    def test_removes_everything_for_test_name(
        self, mock_node_manager, mock_volume_manager, mock_network_manager
    ):
        mock_node_manager.return_value.remove_containers.return_value = 3
        mock_volume_manager.return_value.remove_volumes.return_value = 3
        mock_network_manager.return_value.remove_networks.return_value = 1

        removed = execute_nuke("local", silent=True)

        assert removed == {"containers": 3, "volumes": 3, "networks": 1}
        mock_node_manager.return_value.remove_containers.assert_called_once_with(
            "avabox.test=local"
        )
        mock_volume_manager.return_value.remove_volumes.assert_called_once_with(
            "avabox.test=local"
        )
        mock_network_manager.return_value.remove_networks.assert_called_once_with(
            "avabox.test=local"
        )

    @patch("avabox.commands.nuke.console")
    def test_shares_one_client(self, mock_console):
        client = MagicMock()
        client.containers.list.return_value = []
        client.volumes.list.return_value = []
        client.networks.list.return_value = []

        removed = execute_nuke("local", client=client)

        assert removed == {"containers": 0, "volumes": 0, "networks": 0}
        client.containers.list.assert_called_once_with(
            all=True, filters={"label": "avabox.test=local"}
        )
        mock_console.print.assert_called_once()
