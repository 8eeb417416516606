"""
Logging.py

Centralized logging configuration for the OG card generator.
Every module logs through the shared g_logger; scanners and scorers also
accept a trace sink that defaults to g_logger.debug.
"""

# =============================================================================
# STANDARD LIBRARY IMPORTS
# =============================================================================
import os
import sys
import logging

# =============================================================================
# RE-EXPORT LOGGING CONSTANTS
# =============================================================================
DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

# LOG_LEVEL options: DEBUG, INFO, WARNING, ERROR, CRITICAL
# - DEBUG: candidate-by-candidate trace lines and score breakdowns
# - INFO: tier progress, winners, fallbacks
LOG_LEVEL = os.environ.get("OGCARD_LOG_LEVEL", "INFO")

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
LOG_FILE = os.path.join(SCRIPT_DIR, "ogcard.log")
MAX_LOG_BYTES = 1024 * 1024


def _rotate_log_file(log_file=None):
    """
    Trim the log file to its last MAX_LOG_BYTES, cutting at a line boundary.
    """
    target_file = log_file or LOG_FILE

    try:
        if not os.path.exists(target_file):
            return
        if os.path.getsize(target_file) <= MAX_LOG_BYTES:
            return

        with open(target_file, 'rb') as f:
            f.seek(-MAX_LOG_BYTES, 2)
            remaining_content = f.read()

        # Handles both LF and CRLF endings
        first_newline_pos = remaining_content.find(b'\n')
        if first_newline_pos != -1:
            remaining_content = remaining_content[first_newline_pos + 1:]

        with open(target_file, 'wb') as f:
            f.write(remaining_content)

    except OSError as e:
        # Never fail the application over log housekeeping
        print(f"Warning: Failed to rotate log file: {e}")


def _setup_logging(log_file=None, log_level=None):
    """Configure the root logger once and return the shared logger."""
    _rotate_log_file(log_file)

    desired_level = getattr(logging, (log_level or LOG_LEVEL).upper(), logging.INFO)

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handlers = [logging.StreamHandler(sys.stdout)]
        try:
            handlers.insert(0, logging.FileHandler(log_file or LOG_FILE, encoding='utf-8', mode='a'))
        except OSError:
            # Read-only installs still get console output
            pass
        logging.basicConfig(
            level=desired_level,
            format='%(asctime)s - %(levelname)s - %(message)s',
            handlers=handlers
        )
    else:
        root_logger.setLevel(desired_level)

    # Suppress HTTP client and decoder chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    logger = logging.getLogger("ogcard")
    logger.setLevel(desired_level)
    return logger


def set_log_level(level):
    """
    Change the level of the shared logger and the root handlers at runtime.

    Args:
        level: a level name ("DEBUG") or numeric level
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    g_logger.setLevel(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def default_trace(line):
    """Default trace sink: one DEBUG record per trace line."""
    g_logger.debug(line)


# Create the global logger instance
g_logger = _setup_logging()
