# =============================================================================
# mailwire: MIME Content Streaming for SMTP
# =============================================================================
#
# mailwire turns an outgoing mail (headers, text, attachments, related
# parts) into a MIME byte stream and writes it straight onto an SMTP
# connection during the DATA phase, one part at a time.
#
# Features:
#   - multipart/mixed, /alternative, /related and /encrypted envelopes
#   - Base64 attachments wrapped at 76 characters
#   - Shared, thread-safe cache of encoded attachments
#   - Transport and stream sinks (send it, or dump it to a file)
#   - Async SMTP sessions with keyring credentials
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "mailwire"

# Main entry point - this is what gets called by the 'mailwire' command
from mailwire.app import main

__all__ = ["main", "__version__", "__app_name__"]
