class ResolverError(Exception):
    """Base class for every error raised by the resolver pipeline."""


class ConfigMergeError(ResolverError):
    """An override configuration could not be merged onto the defaults."""


class NodeConnectionError(ResolverError):
    """The RPC node could not be reached within the dial timeout."""


class ContractBindError(ResolverError):
    """The NKN account contract handle could not be constructed."""


class NameResolutionError(ResolverError):
    """An ENS name could not be resolved to an address."""


class ContractCallError(ResolverError):
    """The contract query failed, reverted, or returned malformed data."""
