"""Global constants for release-engine"""

import re

APP_NAME = "release-engine"
LOGGER_NAME = "release_engine"
LOG_FORMAT = "%(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Project identification
PROJECT_CONFIG_FILE = ".release-engine.yaml"

# Version sentinel
LATEST_VERSION_ALIASES = ("", "HEAD", "LATEST")

# Build workspace layout
DESCRIPTOR_EXPORT_DIR = "AppConfigs"
ZIP_FOLDER_NAME = "___ZipFolder"
BUILD_LOGS_DIR = "_BuildLogs"
WORK_LOGS_DIR = "_Logs"
PACKAGE_ZIP_NAME = "CodeReleasePackage.zip"
RELEASE_NOTES_FILE = "ReleaseNotes.txt"
DESCRIPTOR_SUFFIX = ".xml"

# Naming patterns
RELEASE_FOLDER_PATTERN = "{application}_{version}"
VERSION_FILE_PATTERN = "{application}_version.txt"
RELEASE_FOLDER_REGEX = re.compile(r"^(?P<application>[A-Z0-9][A-Z0-9_.-]*?)_(?P<version>\d+)$")
APPLICATION_NAME_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9_.-]*$")
LOG_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
HISTORY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Target-side persisted state
CURRENT_VERSIONS_DIR = "CurrentVersions"
LOGS_ARCHIVE_DIR = "LogsArchive"
PACKAGES_DIR = "Packages"
HISTORY_FILE = "DeployHistory.log"
DEPLOY_ROOT_DIR = "_DeployRoot"
DEPLOY_LOGS_DIR = "_DeployLogs"
HISTORY_SEPARATOR = "|"
HISTORY_COLUMNS = (
    "Application",
    "EnvironmentNickname",
    "Server",
    "Version",
    "User",
    "Date",
    "Success",
)

# Database deploy
SQL_FOLDER_ORDER = (
    "CompiledChangeScripts",
    "Triggers",
    "Views",
    "Functions",
    "StoredProcedures",
    "Jobs",
)
SQL_BATCH_SEPARATOR = re.compile(r"^\s*GO\s*;?\s*$", re.IGNORECASE | re.MULTILINE)
MIRRORING_SUSPENDED = "SUSPENDED"
MIRRORING_ACTIVE_STATES = ("SYNCHRONIZED", "SYNCHRONIZING")
DATABASE_ONLINE = "ONLINE"

# Polling defaults
DEFAULT_POLL_INTERVAL = 5  # seconds
DEFAULT_POLL_MAX_WAIT = 300  # seconds

# Remote execution
DEFAULT_SSH_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 30  # seconds
DEFAULT_COPY_COMMAND = "rsync -a --delete --mkpath {source}/ {server}:{destination}/"
ACCESS_DENIED_PATTERN = re.compile(r"access is denied|permission denied", re.IGNORECASE)
CREDENTIAL_HINT = (
    "The remote host refused access. The supplied credential is most likely "
    "wrong or lacks rights on the target; re-run with a different user."
)

# Self deploy
SELF_DEPLOY_STAGING_SUFFIX = ".staging"
SELF_DEPLOY_PREVIOUS_SUFFIX = ".previous"


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "RE001"
    INVALID_APPLICATION = "RE002"
    INVALID_VERSION = "RE003"
    VERSION_TOO_NEW = "RE004"
    ALREADY_BUILT = "RE005"
    DESCRIPTOR_INVALID = "RE006"
    VERSION_FILE_INVALID = "RE007"
    TARGET_UNRESOLVED = "RE008"
    MISSING_REQUIRED_PARAMETER = "RE009"
    WORKSPACE_IO = "RE010"
    PUBLISH_IO = "RE011"
    DEPLOY_IO = "RE012"
    REMOTE_EXECUTION = "RE013"
    TASK_PROCESS = "RE014"
    DATABASE_FAILOVER = "RE015"
    DATABASE_SCRIPT = "RE016"
    POLL_TIMEOUT = "RE017"
    SOURCE_CONTROL = "RE018"
    RELEASE_NOT_FOUND = "RE019"
    NOTIFICATION_FAILED = "RE020"


# Environment variables
ENV_CONFIG_PATH = "RELEASE_ENGINE_CONFIG"
ENV_LOG_LEVEL = "RELEASE_ENGINE_LOG_LEVEL"
ENV_TASK_PREFIX = "RELEASE_ENGINE_"

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_INFO = "ℹ"
EMOJI_ARROW = "→"
EMOJI_PACKAGE = "📦"
EMOJI_ROCKET = "🚀"
EMOJI_SERVER = "🖥️"

# Messages templates
MSG_BUILD_SUCCESS = f"{EMOJI_SUCCESS} Built {{application}} version {{version}}"
MSG_BUILD_NOTHING_TO_DO = f"{EMOJI_INFO} {{application}} version {{version}} already built, nothing to do"
MSG_DEPLOY_SUCCESS = f"{EMOJI_SUCCESS} Deployed {{application}} version {{version}} to {{nickname}} ({{server}})"
MSG_FAILOVER_RETRY = f"{EMOJI_WARNING} {{server}} is not online, trying {{fallback}}..."
MSG_MIRRORING_SUSPENDED = f"{EMOJI_WARNING} Mirroring suspended for {{database}} on {{server}}"
MSG_MIRRORING_RESUMED = f"{EMOJI_SUCCESS} Mirroring resumed for {{database}} on {{server}}"

# Interactive prompts
PROMPT_SELECT_APPLICATION = "Application name"
PROMPT_ENTER_VERSION = "Version (number, or HEAD for latest)"
PROMPT_SELECT_NICKNAME = "Environment nickname"
