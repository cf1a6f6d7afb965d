"""
Enumerations for AI Tagger Engine data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum
from typing import Optional


class TaggingMode(str, Enum):
    """
    Semantic contract for one analysis request.
    
    Determines the prompt shape and which response fields are mandatory.
    The two hybrid flavors perform one generate call plus one matching
    call and merge the results.
    """
    
    PREDEFINED_TAGS = "predefined"
    GENERATE_NEW = "generate"
    EXISTING_TAGS = "existing"
    HYBRID_GENERATE_EXISTING = "hybrid-generate-existing"
    HYBRID_GENERATE_PREDEFINED = "hybrid-generate-predefined"
    CUSTOM = "custom"
    
    @property
    def is_hybrid(self) -> bool:
        return self in (
            TaggingMode.HYBRID_GENERATE_EXISTING,
            TaggingMode.HYBRID_GENERATE_PREDEFINED,
        )
    
    @property
    def is_matching(self) -> bool:
        """True for modes that select verbatim from the candidate vocabulary."""
        return self in (TaggingMode.PREDEFINED_TAGS, TaggingMode.EXISTING_TAGS)
    
    @property
    def matching_mode(self) -> Optional["TaggingMode"]:
        """Matching half of a hybrid mode (None for non-hybrid modes)."""
        if self == TaggingMode.HYBRID_GENERATE_EXISTING:
            return TaggingMode.EXISTING_TAGS
        if self == TaggingMode.HYBRID_GENERATE_PREDEFINED:
            return TaggingMode.PREDEFINED_TAGS
        return None


class ErrorKind(str, Enum):
    """Failure classification shared by the transport and the connection probe."""
    
    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTH = "auth"
    HTTP = "http"
    CANCELLED = "cancelled"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ConnectionTestResult(str, Enum):
    """Caller-facing outcome of a connection probe."""
    
    SUCCESS = "success"
    FAILED = "failed"


class CancelReason(str, Enum):
    """Why a cancellation token fired."""
    
    TIMEOUT = "timeout"
    DISPOSED = "disposed"
    CALLER = "caller"


class ServiceType(str, Enum):
    """Transport profile: limits and retry budget differ per profile."""
    
    CLOUD = "cloud"
    LOCAL = "local"
