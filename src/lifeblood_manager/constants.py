"""Constants for lifeblood manager."""

PACKAGE_NAME = "lifeblood"
VIEWER_NAME = "lifeblood_viewer"

ARCHIVE_URL_TEMPLATE = "https://github.com/pedohorse/lifeblood/archive/refs/heads/{branch}.zip"
DEFAULT_BRANCH = "dev"
COMMIT_ID_LENGTH = 13

# Layout of an installed version
CURRENT_LINK = "current"
METADATA_FILE = "meta.info"
METADATA_FORMAT_VERSION = "1"
ENTRY_POINT_FILE = "entry.py"
VENV_DIR = "venv"
REQUIREMENTS_FILE = "requirements.txt"
VIEWER_REQUIREMENTS_FILE = "requirements_viewer.txt"
BACKUP_PREFIX = "__"

# Layout of an extracted release archive
ARCHIVE_SOURCE_DIR = "src"
PACKAGE_DESCRIPTOR_DIR = "pkg_lifeblood"
VIEWER_DESCRIPTOR_DIR = "pkg_lifeblood_viewer"
PACKAGE_DESCRIPTOR_FILE = "setup.cfg"
REQUIREMENTS_MARKER = "install_requires"

# Interpreter discovery
PYTHON_OVERRIDE_ENV = "PYTHON_BIN"
DEFAULT_PYTHON_COMMANDS = ("python", "python3")
WINDOWS_COMMAND_NOT_FOUND = 9009

# Locations
CONFIG_LOCATION_ENV = "LIFEBLOOD_CONFIG_LOCATION"
BASE_PATH_ENV = "LIFEBLOOD_MANAGER_BASE"
CONFIG_FILE = "manager.toml"

# Timeouts (seconds)
DOWNLOAD_CONNECT_TIMEOUT = 90
DOWNLOAD_READ_TIMEOUT = 300
PYTHON_PROBE_TIMEOUT = 10
VENV_TIMEOUT = 300
PIP_TIMEOUT = 1800  # 30 minutes for dependency installs

# Termination escalation: graceful stop, then poll, then kill
STOP_POLL_INTERVAL = 0.5
STOP_POLL_ATTEMPTS = 30
