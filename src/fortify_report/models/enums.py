"""String enums shared across the Fortify report core."""

from enum import StrEnum


class ProviderKind(StrEnum):
    SSC = "ssc"
    FOD = "fod"


class ErrorKind(StrEnum):
    CONFIGURATION = "configuration_error"
    AUTH = "auth_error"
    RESOLUTION = "resolution_error"
    NETWORK = "network_error"
    PROTOCOL = "protocol_error"


class Likelihood(StrEnum):
    LIKELY = "Likely"
    POSSIBLE = "Possible"
    UNLIKELY = "Unlikely"


class Confidence(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AssemblyStatus(StrEnum):
    SUCCEEDED = "succeeded"
    WARNING = "warning"
    FAILED = "failed"
