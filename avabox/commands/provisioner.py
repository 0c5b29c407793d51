"""
Provisioner - Materialize a node's configuration into its Docker volume.

Everything the node reads at startup is written before its container is
created:

    genesis.json               chain genesis
    tls.cert / tls.key         staking TLS identity
    configs/vms/aliases.json   VM id -> [subnet name]
    plugins/<vm-id>            VM binary, one per assigned subnet

The first failure aborts provisioning with a ProvisionError; a partially
written volume is never handed to container creation.
"""

import json
from typing import Any, Union

import docker

from avabox.commands.constants import (
    CLEANUP_LABEL,
    DEFAULT_UID_GID,
    GENESIS_FILE,
    NODE_OWNER_LABEL,
    PLUGINS_DIR,
    TLS_CERT_FILE,
    TLS_KEY_FILE,
    VM_ALIASES_FILE,
)
from avabox.commands.errors import ProvisionError
from avabox.commands.managers.volume import VolumeManager
from avabox.commands.models import NodeDescriptor, dump_vm_aliases
from avabox.commands.utils import console

Genesis = Union[dict[str, Any], bytes, str]

# Files that must not be readable by anyone but the node user
_PRIVATE_FILES = {TLS_KEY_FILE}


def encode_genesis(genesis: Genesis) -> bytes:
    """Serialize the chain genesis the way the node expects to read it."""
    if isinstance(genesis, bytes):
        return genesis
    if isinstance(genesis, str):
        return genesis.encode("utf-8")
    return json.dumps(genesis, indent=2).encode("utf-8")


def build_artifacts(descriptor: NodeDescriptor, genesis: Genesis) -> list[tuple[str, bytes]]:
    """Ordered (relative path, content) pairs to write into the node volume."""
    artifacts = [
        (GENESIS_FILE, encode_genesis(genesis)),
        (TLS_CERT_FILE, descriptor.credentials.tls_cert),
        (TLS_KEY_FILE, descriptor.credentials.tls_key),
        (VM_ALIASES_FILE, dump_vm_aliases(descriptor.subnets)),
    ]
    for subnet in descriptor.subnets:
        artifacts.append((f"{PLUGINS_DIR}/{subnet.vm_id}", subnet.vm))
    return artifacts


def _file_mode(rel_path: str) -> int:
    if rel_path.startswith(f"{PLUGINS_DIR}/"):
        return 0o755
    if rel_path in _PRIVATE_FILES:
        return 0o600
    return 0o644


class Provisioner:
    """Prepares node volumes through a VolumeManager."""

    def __init__(
        self,
        volumes: VolumeManager,
        image: str,
        uid_gid: str = DEFAULT_UID_GID,
    ):
        self.volumes = volumes
        self.image = image
        self.uid_gid = uid_gid

    def provision(self, descriptor: NodeDescriptor, genesis: Genesis) -> str:
        """Create and fill the node volume; return the volume name.

        Raises:
            ProvisionError: naming the node index and the artifact that failed.
        """
        volume_name = descriptor.name
        labels = {
            CLEANUP_LABEL: descriptor.test_name,
            NODE_OWNER_LABEL: descriptor.name,
        }

        try:
            self.volumes.create_volume(volume_name, labels)
        except docker.errors.DockerException as e:
            raise self._error(descriptor, "volume", e) from e

        try:
            self.volumes.set_volume_owner(volume_name, self.image, self.uid_gid)
        except docker.errors.DockerException as e:
            raise self._error(descriptor, "volume-owner", e) from e

        try:
            artifacts = build_artifacts(descriptor, genesis)
        except (TypeError, ValueError) as e:
            raise self._error(descriptor, GENESIS_FILE, e) from e

        for rel_path, content in artifacts:
            try:
                self.volumes.write_file(
                    volume_name, rel_path, content, self.uid_gid, _file_mode(rel_path)
                )
            except (docker.errors.DockerException, OSError) as e:
                raise self._error(descriptor, rel_path, e) from e

        console.print(
            f"[green]✓ Provisioned {descriptor.name} ({len(artifacts)} files, {len(descriptor.subnets)} subnet(s))[/green]"
        )
        return volume_name

    def _error(self, descriptor: NodeDescriptor, artifact: str, cause: Exception) -> ProvisionError:
        console.print(
            f"[red]✗ Failed to provision {descriptor.name} ({artifact}): {str(cause)}[/red]"
        )
        return ProvisionError(
            f"failed to provision {descriptor.name}: {artifact}: {cause}",
            node_index=descriptor.index,
            artifact=artifact,
        )
