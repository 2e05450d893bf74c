"""
Provider Error Taxonomy.

Every failure the lifecycle engine surfaces derives from ProviderError so
front ends can report them uniformly. Messages carry the package name,
version and path involved.
"""


class ProviderError(Exception):
    """Base exception for package provider errors."""

    pass


class NotAPackage(ProviderError):
    """Raised when Install/Update is given a path that is not a package."""

    pass


class DescriptorNotFound(ProviderError):
    """Raised when an archive has no descriptor entry."""

    pass


class DescriptorParseError(ProviderError):
    """Raised when descriptor content is malformed or incomplete."""

    pass


class DowngradeRejected(ProviderError):
    """Raised when an update would lower the installed version."""

    def __init__(self, name: str, installed: str, candidate: str):
        self.name = name
        self.installed = installed
        self.candidate = candidate
        super().__init__(
            f"Refusing to downgrade {name} from {installed} to {candidate}"
        )


class ScriptExecutionFailure(ProviderError):
    """Raised when a lifecycle script fails, times out or cannot be launched."""

    pass


class FilesystemError(ProviderError):
    """Raised when a cache or staging filesystem operation fails."""

    pass
