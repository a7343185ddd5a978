"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESTORE_FAILED = 3
    CONFIG_ERROR = 4
    RESTORE_ABORTED = 5


class FrameworkIdentifiers(Enum):
    """Framework identifiers understood by the target framework parser.

    Args:
        Enum (string): Full framework identifiers as NuGet writes them.
    """

    NETCOREAPP = ".NETCoreApp"
    NETSTANDARD = ".NETStandard"
    NETFRAMEWORK = ".NETFramework"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    NUGET_ORG_NAME = "nuget.org"
    NUGET_ORG_V3 = "https://api.nuget.org/v3/index.json"
    MAX_SEARCH_RESULTS = 50
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    SEMVER_LEVEL = "2.0.0"

    # NuGet V3 resource types, most preferred first
    SEARCH_RESOURCE_TYPES = [
        "SearchQueryService/3.5.0",
        "SearchQueryService/3.0.0-rc",
        "SearchQueryService/3.0.0-beta",
        "SearchQueryService",
    ]
    PACKAGE_BASE_ADDRESS_TYPES = ["PackageBaseAddress/3.0.0"]

    # Restore output
    ASSETS_FILE_NAME = "project.assets.json"
    PLACEHOLDER_FILE_NAME = "_._"
    BUILD_DIR_PARTS = ("RestorePad", "Build")
    PLATFORM_PACKAGE_NETCOREAPP = "Microsoft.NETCore.App"
    DOTNET_EXECUTABLE = "dotnet"

    # NuGet.Config discovery
    CONFIG_FILE_NAMES = ["NuGet.Config", "nuget.config", "NuGet.config"]
    USER_CONFIG_DIR = (".nuget", "NuGet")
    DEFAULT_GLOBAL_PACKAGES_DIR = (".nuget", "packages")
    ENV_NUGET_PACKAGES = "NUGET_PACKAGES"
    ENV_LOG_LEVEL = "RESTOREPAD_LOG_LEVEL"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
