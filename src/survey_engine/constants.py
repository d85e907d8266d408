"""Survey engine constants shared across the SDK.

These values are referenced by the engine, evaluator, resume storage and
submission coordinator.  Tunables can be overridden via environment
variables so deployments can adjust them without code changes.
"""

import os

# Resume-storage slot names.  Two independent slots: the current step
# index (stringified int) and the JSON-serialized response map.
# SURVEY_STORAGE_PREFIX namespaces both slots (e.g. one prefix per survey).
STORAGE_PREFIX = os.getenv("SURVEY_STORAGE_PREFIX", "")
STORAGE_KEY_CURRENT_STEP = f"{STORAGE_PREFIX}survey_current_step"
STORAGE_KEY_RESPONSES = f"{STORAGE_PREFIX}survey_responses"

# Debounce window for free-text inputs, in seconds.
DEFAULT_DEBOUNCE_SECONDS = float(os.getenv("SURVEY_DEBOUNCE_SECONDS", "0.5"))

# Timeout for HTTP definition fetches and HTTP submission sinks.
HTTP_TIMEOUT_SECONDS = float(os.getenv("SURVEY_HTTP_TIMEOUT", "10.0"))

# Identity used in submissions when no claim is available.
UNKNOWN_IDENTITY = "unknown"

# Claim keys checked in priority order when resolving the submitter.
IDENTITY_CLAIM_PRIORITY: tuple[str, ...] = (
    "preferredName",
    "preferred_username",
    "email",
    "name",
)

# Logical operators for condition groups (matched case-insensitively).
OPERATOR_AND = "AND"
OPERATOR_OR = "OR"

# Message attached to every failed required-question check.
REQUIRED_MESSAGE = "This question is required"
