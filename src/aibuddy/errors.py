# aibuddy: Error taxonomy. Every terminal failure derives from AIBuddyError so the CLI can report it and exit non-zero in one place.


class AIBuddyError(RuntimeError):
    """Base class for failures that end the current invocation."""


class ConfigMissingError(AIBuddyError):
    """Credential or context config is absent; the user must run install."""


class ContextDiscoveryError(AIBuddyError):
    """Not a version-controlled tree, or no tracked file matches the allow-list."""


class ModelError(AIBuddyError):
    """Transport failure, timeout, or an error reported by the remote API."""


class ReplyParseError(AIBuddyError):
    """The model reply is not JSON (even after stripping a code fence) or has the wrong shape."""


class GitError(AIBuddyError):
    """A git command failed or the repository cannot be used."""


class StepFailedError(AIBuddyError):
    """A plan step could not be completed; remaining steps are abandoned."""


class UnsafePathError(AIBuddyError):
    """A patch names a file outside the repository root; nothing from that patch is written."""
