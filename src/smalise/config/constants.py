"""Configuration constants.

Values here are format conventions and hard caps, not user settings.
For configurable values, see models.py.
"""

# =============================================================================
# Smali format conventions
# =============================================================================

SMALI_EXTENSION = ".smali"
"""Extension of smali source files; also appended to class-derived paths."""

SMALI_LANGUAGE_ID = "smali"
"""Language identifier reported by smali text documents."""

# =============================================================================
# Bulk loading
# =============================================================================

LOADING_FILE_NUM_LIMIT = 50
"""Default number of files opened and parsed concurrently during bulk load."""

LOAD_CONCURRENCY_MAX = 500
"""Upper bound for the configurable load concurrency."""

# =============================================================================
# Discovery
# =============================================================================

HARDCODED_EXCLUDE_DIRS: frozenset[str] = frozenset({".git", ".svn", ".hg", ".bzr", ".smalise"})
"""Directories never scanned or watched, regardless of configuration."""

CONFIG_DIR_NAME = ".smalise"
"""Per-workspace configuration directory."""
