"""
Constants and configuration values used across the avabox codebase.
"""

# Network ports (inside the node container)
DEFAULT_RPC_PORT = 9650
DEFAULT_STAKING_PORT = 9651

# Docker port binding strings (used in container port mappings)
RPC_PORT_BINDING = f"{DEFAULT_RPC_PORT}/tcp"
STAKING_PORT_BINDING = f"{DEFAULT_STAKING_PORT}/tcp"

# API endpoints
INFO_ENDPOINT = "/ext/info"
PLATFORM_CHAIN_ENDPOINT = "/ext/bc/P"
ASSET_CHAIN_ENDPOINT = "/ext/bc/X"
CONTRACT_CHAIN_ENDPOINT = "/ext/bc/C/rpc"
KEYSTORE_ENDPOINT = "/ext/keystore"

# Primary network chain aliases
ASSET_CHAIN = "X"
PLATFORM_CHAIN = "P"
CONTRACT_CHAIN = "C"
DEFAULT_CHAINS = (ASSET_CHAIN, PLATFORM_CHAIN, CONTRACT_CHAIN)
AVAX_ASSET_ID = "AVAX"

# Docker configuration
DEFAULT_IMAGE_REPOSITORY = "avaplatform/avalanchego"
DEFAULT_IMAGE_VERSION = "v1.9.16"
DEFAULT_UID_GID = "1025:1025"
DEFAULT_NODE_BINARY = "/avalanchego/build/avalanchego"
DEFAULT_NETWORK_ID = "1337"
HELPER_IMAGE = "busybox:stable"
NODE_HOME_DIR = "/home/heighliner/ava"
VOLUME_MOUNT_DIR = "/mnt/dockervolume"
NODE_NAME_PREFIX = "av"
MAX_HOSTNAME_LENGTH = 63

# Labels attached to every container and volume created for a test
CLEANUP_LABEL = "avabox.test"
NODE_OWNER_LABEL = "avabox.node-owner"
NODE_LABEL = "avabox.node"

# Node storage layout (relative to NODE_HOME_DIR)
GENESIS_FILE = "genesis.json"
TLS_CERT_FILE = "tls.cert"
TLS_KEY_FILE = "tls.key"
VM_ALIASES_FILE = "configs/vms/aliases.json"
PLUGINS_DIR = "plugins"

# Polling and wait intervals
READINESS_POLL_INTERVAL = 0.5  # seconds between isBootstrapped queries
READINESS_POLL_JITTER = 0.0  # seconds of uniform jitter added to each poll
PORT_PROBE_TIMEOUT = 1.0  # seconds for a single connect attempt
TX_STATUS_POLL_INTERVAL = 0.5  # seconds between tx status queries
RPC_READ_TIMEOUT = 30.0  # seconds for a single JSON-RPC round trip
CONTAINER_STOP_TIMEOUT = 10  # seconds
NODE_LOG_TAIL = 50  # log lines printed when a node fails to become ready

# Subnet pipeline steps
STEP_PREPARE = "prepare_keystore"
STEP_EXPORT = "export"
STEP_IMPORT = "import"
STEP_CREATE_SUBNET = "create_subnet"
STEP_CREATE_CHAIN = "create_chain"

# Transaction status values reported by the chains
TX_ACCEPTED_STATUSES = {"Accepted", "Committed"}
TX_REJECTED_STATUSES = {"Rejected", "Aborted", "Dropped"}

# Network config - reserved top level keys
REQUIRED_CONFIG_KEYS = ("name", "nodes")

# Error messages
ERROR_NODE_NOT_STARTED = "Node {node} has no container yet"
ERROR_FILE_NOT_FOUND = "File not found: {path}"
ERROR_UNKNOWN_SUBNET = "Node {node} references unknown subnet '{subnet}'"
ERROR_KEYSTORE_USER_EXISTS = "user already exists"
