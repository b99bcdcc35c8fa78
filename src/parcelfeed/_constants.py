"""Internal constants shared across the library."""

#: Fee-type code persisted when the device never reported one.
UNKNOWN_FEE_TYPE = "U"

#: Decimal places used when fingerprinting payloads for de-duplication.
FINGERPRINT_DECIMALS = 2

# ------------------------------------------------------------------
# Server-Sent Events framing
# ------------------------------------------------------------------

SSE_CONTENT_TYPE = "text/event-stream"
KEEPALIVE_FRAME = b": keep-alive\n\n"
