"""Constants used throughout MiniGit."""

# Directory names
REPO_DIR = ".minigit"
OBJECTS_DIR = "objects"
COMMITS_DIR = "commits"
REFS_DIR = "refs"

# File names
HEAD_FILE = "HEAD"
INDEX_FILE = "index"
CONFIG_FILE = "config"

# HEAD contents
HEAD_PREFIX = "ref: "
DEFAULT_BRANCH_REF = "refs/master"

# Staging index format
INDEX_VERSION = 1

# Hash algorithms
HASH_SHA256 = "sha256"
HASH_CHECKSUM = "checksum"  # additive byte sum, decimal string
HASH_ALGORITHMS = (HASH_SHA256, HASH_CHECKSUM)
DEFAULT_HASH_ALGORITHM = HASH_SHA256
SHA256_LENGTH = 64

# Environment
ENV_PREFIX = "MINIGIT"
ENV_REPO_DIR = "MINIGIT_DIR"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3
EXIT_HASH_COLLISION = 4
