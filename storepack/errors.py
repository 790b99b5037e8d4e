"""Exceptions raised by the bundling engine."""


class DefinitionError(ValueError):
    """Bundle definition file is missing, malformed or empty. Fatal for the whole run."""


class TargetDiscoveryError(LookupError):
    """No deployed locale could be found to bundle."""


class StagingError(OSError):
    """Staging directory could not be prepared. Fatal for one target."""


class SwapError(OSError):
    """Promoting the staging directory to live failed. Fatal for one target."""


class MinificationError(RuntimeError):
    """Minified output could not be produced or failed verification."""
