"""
Tagged console logging.
Prints "[Tag] message" lines; errors always print, everything else only
while debug is enabled at a high enough level.
"""

TAG_APP = "App"
TAG_BUS = "Bus"
TAG_BUTTONS = "Buttons"
TAG_ENCODER = "Encoder"
TAG_ROUTER = "Router"
TAG_MIDI = "Midi"

_debug_enabled = False
_debug_level = 1


def log(tag, message, level=1, is_error=False):
    """
    Print a tagged log line.

    Args:
        tag: Category prefix, one of the TAG_* constants
        message: Text to print
        level: Required debug level (1=important, 2=verbose)
        is_error: Errors print even when debug is off
    """
    if is_error:
        print("[" + tag + "] ERROR: " + message)
        return
    if not _debug_enabled or level > _debug_level:
        return
    print("[" + tag + "] " + message)


def debug(enable=None, level=None):
    """
    Toggle or query debug logging.

    Args:
        enable: True to enable, False to disable, None to query
        level: Debug verbosity (1=important events, 2=verbose)

    Returns:
        dict with 'enabled' and 'level' keys when querying (enable=None)
    """
    global _debug_enabled, _debug_level

    if enable is None:
        return {"enabled": _debug_enabled, "level": _debug_level}

    _debug_enabled = bool(enable)
    if level is not None:
        _debug_level = int(level)
    log(TAG_APP, "debug enabled (level=" + str(_debug_level) + ")")
    return None
