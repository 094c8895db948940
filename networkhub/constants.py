"""
Constants and configuration values used across the networkhub codebase.
"""

# Environment tags
LOCAL = "local"
DOCKER = "docker"

# Public network names understood by thor's --network flag
THOR_NETWORK_MAIN = "main"
THOR_NETWORK_TEST = "test"
PUBLIC_BASE_IDS = {"mainnet": THOR_NETWORK_MAIN, "testnet": THOR_NETWORK_TEST}

# Thor REST API endpoints
PEERS_ENDPOINT = "/node/network/peers"
BLOCKS_ENDPOINT = "/blocks"
BEST_BLOCK = "best"

# Node defaults
DEFAULT_VERBOSITY = 3
DEFAULT_API_CORS = "*"
DEFAULT_LOCAL_API_HOST = "127.0.0.1"
DEFAULT_DOCKER_API_HOST = "0.0.0.0"
LOCAL_ENODE_IP = "127.0.0.1"

# Files written into a node's config dir
MASTER_KEY_FILE = "master.key"
P2P_KEY_FILE = "p2p.key"
GENESIS_FILE = "genesis.json"

# Docker defaults
DOCKER_HOME_DIR = "/home/thor"
DOCKER_HOSTNAME_PREFIX = "thor-"
DOCKER_NETWORK_SUFFIX = "-network"
DOCKER_KILLED_EXIT_CODE = 137  # 128 + SIGKILL

# IP allocation (.0 is the network, .1 the gateway)
IP_FIRST_HOST = 2
IP_LAST_HOST = 253
PRIVATE_IP_PREFIX = 10

# Ephemeral port range
PORT_RANGE_START = 49152
PORT_RANGE_END = 65535
PORT_RANDOM_ATTEMPTS = 100
PORT_BIND_HOST = "127.0.0.1"

# Process and container management timeouts
NODE_STOP_GRACE_PERIOD = 10  # seconds between SIGINT and SIGKILL
CONTAINER_STOP_TIMEOUT = 10  # seconds
FAKE_EXECUTION_WARMUP = 10  # seconds a fake node blocks instead of spawning

# Health polling
PEER_WAIT_TIMEOUT = 120  # seconds
PEER_POLL_INTERVAL = 3  # seconds between peer count checks
HEALTH_CHECK_TIMEOUT = 60  # seconds
HEALTH_POLL_INTERVAL = 1  # seconds between block checks
HTTP_REQUEST_TIMEOUT = 5  # seconds per request
