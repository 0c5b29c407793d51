"""
Configuration management for test network files.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from avabox.commands.constants import (
    DEFAULT_IMAGE_REPOSITORY,
    DEFAULT_IMAGE_VERSION,
    DEFAULT_NETWORK_ID,
    DEFAULT_NODE_BINARY,
    DEFAULT_UID_GID,
    ERROR_FILE_NOT_FOUND,
    ERROR_UNKNOWN_SUBNET,
    READINESS_POLL_INTERVAL,
    READINESS_POLL_JITTER,
    REQUIRED_CONFIG_KEYS,
)
from avabox.commands.errors import ConfigurationError
from avabox.commands.models import NodeCredentials, NodeDescriptor, SubnetEntry


@dataclass(frozen=True)
class ImageConfig:
    repository: str = DEFAULT_IMAGE_REPOSITORY
    version: str = DEFAULT_IMAGE_VERSION
    uid_gid: str = DEFAULT_UID_GID

    @property
    def ref(self) -> str:
        return f"{self.repository}:{self.version}"


@dataclass(frozen=True)
class WalletConfig:
    """Keystore user on the node and the addresses it controls."""

    username: str
    password: str
    x_address: str
    p_address: str


@dataclass
class NodeConfig:
    descriptor: NodeDescriptor
    wallet: Optional[WalletConfig] = None


@dataclass
class NetworkConfig:
    name: str
    network_id: str
    image: ImageConfig
    binary: str
    docker_network: str
    docker_subnet: Optional[str]
    genesis: Union[dict[str, Any], bytes]
    nodes: list[NodeConfig] = field(default_factory=list)
    poll_interval: float = READINESS_POLL_INTERVAL
    poll_jitter: float = READINESS_POLL_JITTER

    @property
    def descriptors(self) -> list[NodeDescriptor]:
        return [node.descriptor for node in self.nodes]


def _read_bytes(base_dir: Path, value: str, config_file: str) -> bytes:
    path = Path(value)
    if not path.is_absolute():
        path = base_dir / path
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise ConfigurationError(
            ERROR_FILE_NOT_FOUND.format(path=path), config_file=config_file
        ) from e


def _require(mapping: dict, key: str, where: str, config_file: str) -> Any:
    if key not in mapping or mapping[key] in (None, ""):
        raise ConfigurationError(
            f"Missing required field '{key}' in {where}", config_file=config_file
        )
    return mapping[key]


def _load_genesis(base_dir: Path, value: Any, config_file: str):
    if isinstance(value, dict):
        return value
    if not isinstance(value, str):
        raise ConfigurationError(
            "'genesis' must be a mapping or a path to a JSON file",
            config_file=config_file,
        )
    raw = _read_bytes(base_dir, value, config_file)
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid genesis JSON in {value}: {str(e)}", config_file=config_file
        ) from e


def _load_subnets(base_dir: Path, entries: list, config_file: str) -> dict[str, dict]:
    subnets = {}
    for position, entry in enumerate(entries or []):
        where = f"subnets[{position}]"
        name = _require(entry, "name", where, config_file)
        if name in subnets:
            raise ConfigurationError(
                f"Duplicate subnet name '{name}'", config_file=config_file
            )
        genesis = entry.get("genesis")
        if entry.get("genesis_file"):
            genesis_bytes = _read_bytes(base_dir, entry["genesis_file"], config_file)
        elif isinstance(genesis, (dict, list)):
            genesis_bytes = json.dumps(genesis).encode("utf-8")
        else:
            genesis_bytes = str(genesis or "{}").encode("utf-8")
        subnets[name] = {
            "name": name,
            "vm_id": _require(entry, "vm_id", where, config_file),
            "vm": _read_bytes(
                base_dir, _require(entry, "vm_file", where, config_file), config_file
            ),
            "genesis": genesis_bytes,
        }
    return subnets


def _load_wallet(entry: Optional[dict], where: str, config_file: str) -> Optional[WalletConfig]:
    if not entry:
        return None
    return WalletConfig(
        username=_require(entry, "username", where, config_file),
        password=_require(entry, "password", where, config_file),
        x_address=_require(entry, "x_address", where, config_file),
        p_address=_require(entry, "p_address", where, config_file),
    )


def load_network_config(config_path: str) -> NetworkConfig:
    """Load a test network definition from a YAML file.

    Relative file references (genesis, TLS files, VM binaries) resolve
    against the directory of the config file.

    Raises:
        ConfigurationError: if the file is missing, malformed or incomplete.
    """
    path = Path(config_path)
    try:
        with open(path) as file:
            config = yaml.safe_load(file)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Network configuration file not found: {config_path}",
            config_file=config_path,
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML format: {str(e)}", config_file=config_path
        ) from e

    if not isinstance(config, dict):
        raise ConfigurationError(
            "Network configuration must be a mapping", config_file=config_path
        )
    for key in REQUIRED_CONFIG_KEYS:
        _require(config, key, "network config", config_path)

    base_dir = path.parent
    name = str(config["name"])
    network_id = str(config.get("network_id", DEFAULT_NETWORK_ID))
    try:
        image = ImageConfig(**(config.get("image") or {}))
    except TypeError as e:
        raise ConfigurationError(
            f"Invalid 'image' section: {str(e)}", config_file=config_path
        ) from e
    docker_network = config.get("docker_network") or {}
    readiness = config.get("readiness") or {}
    subnets = _load_subnets(base_dir, config.get("subnets"), config_path)

    network = NetworkConfig(
        name=name,
        network_id=network_id,
        image=image,
        binary=config.get("binary", DEFAULT_NODE_BINARY),
        docker_network=docker_network.get("name", f"avabox-{name}"),
        docker_subnet=docker_network.get("subnet"),
        genesis=_load_genesis(base_dir, config.get("genesis", {}), config_path),
        poll_interval=float(readiness.get("poll_interval", READINESS_POLL_INTERVAL)),
        poll_jitter=float(readiness.get("jitter", READINESS_POLL_JITTER)),
    )

    if not isinstance(config["nodes"], list):
        raise ConfigurationError("'nodes' must be a list", config_file=config_path)

    for index, entry in enumerate(config["nodes"]):
        where = f"nodes[{index}]"
        credentials = NodeCredentials(
            private_key=str(_require(entry, "private_key", where, config_path)),
            node_id=str(_require(entry, "node_id", where, config_path)),
            tls_cert=_read_bytes(
                base_dir, _require(entry, "tls_cert", where, config_path), config_path
            ),
            tls_key=_read_bytes(
                base_dir, _require(entry, "tls_key", where, config_path), config_path
            ),
        )
        node_subnets = []
        for subnet_name in entry.get("subnets") or []:
            if subnet_name not in subnets:
                raise ConfigurationError(
                    ERROR_UNKNOWN_SUBNET.format(node=index, subnet=subnet_name),
                    config_file=config_path,
                )
            node_subnets.append(SubnetEntry(**subnets[subnet_name]))

        descriptor = NodeDescriptor(
            index=index,
            test_name=name,
            network_id=network_id,
            docker_network=network.docker_network,
            credentials=credentials,
            public_ip=str(_require(entry, "public_ip", where, config_path)),
            subnets=node_subnets,
        )
        network.nodes.append(
            NodeConfig(
                descriptor=descriptor,
                wallet=_load_wallet(entry.get("wallet"), f"{where}.wallet", config_path),
            )
        )

    return network
