"""
Streaming Engine Constants

Central location for wire-level constants shared by the frame iterator,
the fetch fallback policy and the provider drivers.
"""

# SSE payload that terminates a stream without being delivered as a frame
DEFAULT_DONE_DATA = "[DONE]"

# Upstream statuses that mean "the request shape was rejected"
INVALID_REQUEST_FALLBACK_STATUSES = frozenset({400, 422})

# Label suffix for the reduced-body attempt
MINIMAL_DEFAULTS_LABEL_SUFFIX = ":minimal-defaults"

# Request-default keys that survive the minimal retry
MINIMAL_RETRY_DEFAULT_KEYS = (
    "max_output_tokens",
    "max_tokens",
    "maxOutputTokens",
    "generationConfig",
)

# Keys inside a Gemini generationConfig kept by the minimal retry
MINIMAL_GENERATION_CONFIG_KEYS = ("maxOutputTokens",)

# How much of a non-SSE body to quote in shape errors
ERROR_PREVIEW_CHARS = 500

# Synthetic tool ids: tool-<hint>-<seq>
TOOL_HINT_MAX_CHARS = 48

# Timeouts (seconds)
DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_READ_TIMEOUT = 300.0

# Environment variables read by StreamOptions.from_env()
CONNECT_TIMEOUT_ENV_VAR = "LLM_STREAM_CONNECT_TIMEOUT"
READ_TIMEOUT_ENV_VAR = "LLM_STREAM_READ_TIMEOUT"
DONE_DATA_ENV_VAR = "LLM_STREAM_DONE_DATA"

# Provider adapters
GEMINI_API_KEY_ENV_VAR = "GEMINI_API_KEY"
GEMINI_BASE_URL_ENV_VAR = "GEMINI_BASE_URL"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
OPENAI_API_KEY_ENV_VAR = "OPENAI_API_KEY"
OPENAI_BASE_URL_ENV_VAR = "OPENAI_BASE_URL"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
