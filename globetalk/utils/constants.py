"""
Constants for the GlobeTalk matchmaking service.

This module contains all magic numbers, string identifiers, and configuration
values used throughout the application. Centralizing these makes the codebase
easier to maintain and tune.
"""


# =============================================================================
# PENPAL REQUEST STATUSES
# =============================================================================

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"


# =============================================================================
# IDENTIFIERS
# =============================================================================

# Joins the two sorted user ids of a canonical pair id ("alice_bob")
PAIR_ID_SEPARATOR = "_"

# Shown in place of a missing display name
DEFAULT_USERNAME = "Anonymous"


# =============================================================================
# PAGINATION
# =============================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# =============================================================================
# STORAGE
# =============================================================================

# Environment variables read by the storage layer
ENV_DATABASE_URL = "DATABASE_URL"
ENV_POOL_MIN = "GLOBETALK_POOL_MIN"
ENV_POOL_MAX = "GLOBETALK_POOL_MAX"

DEFAULT_POOL_MIN = 1
DEFAULT_POOL_MAX = 10


# =============================================================================
# API
# =============================================================================

# Header carrying the caller id verified by the upstream auth layer
USER_ID_HEADER = "X-User-Id"

ENV_LOG_LEVEL = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

SERVICE_NAME = "globetalk-matchmaking"
SERVICE_VERSION = "1.0.0"
