"""
PrepForge - Custom Exceptions.

Defines a hierarchy of domain-specific exceptions for clean error handling.
"""


class PrepForgeError(Exception):
    """Base exception for all PrepForge errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# -----------------------------------------------------------------------------
# Configuration Errors
# -----------------------------------------------------------------------------

class ConfigurationError(PrepForgeError):
    """Raised when configuration is invalid or missing."""
    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when a required API key is missing."""

    def __init__(self, key_name: str):
        super().__init__(
            message=f"Missing required API key: {key_name}",
            details="Please set this in your .env file or environment variables",
        )


class TemplateNotFoundError(ConfigurationError):
    """Raised when a template version or template name does not exist."""

    def __init__(self, version: str, name: str | None = None):
        self.version = version
        self.name = name
        if name is None:
            super().__init__(message=f"Prompt version {version} not found")
        else:
            super().__init__(
                message=f"Prompt '{name}' not found in version {version}",
            )


# -----------------------------------------------------------------------------
# Prompt Errors (caller errors)
# -----------------------------------------------------------------------------

class PromptError(PrepForgeError):
    """Base exception for invalid prompt requests."""
    pass


class MissingVariableError(PromptError):
    """Raised by strict binding when a referenced variable has no value."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(message=f"Missing required variable: {name}")


class UnknownKindError(PromptError):
    """Raised when a problem kind has no template mapping."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(message=f"Unknown problem kind: {kind}")


# -----------------------------------------------------------------------------
# Generation Errors (contained by the retry controller)
# -----------------------------------------------------------------------------

class GenerationError(PrepForgeError):
    """Base exception for transient problem-generation failures."""

    error_kind = "generation"


class UpstreamUnavailableError(GenerationError):
    """Raised when the generative-text service fails or times out."""

    error_kind = "upstream_unavailable"

    def __init__(self, service: str, reason: str):
        super().__init__(
            message=f"{service} unavailable",
            details=reason,
        )


class RateLimitedError(UpstreamUnavailableError):
    """Raised when the generative-text service rejects a call for rate limiting."""

    error_kind = "rate_limited"

    def __init__(self, service: str, retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(
            service=service,
            reason=f"rate limited, retry after {retry_after}s" if retry_after else "rate limited",
        )


class EmptyCompletionError(UpstreamUnavailableError):
    """Raised when the service returns no usable text."""

    error_kind = "empty_completion"

    def __init__(self, service: str, reason: str = "empty response"):
        super().__init__(service=service, reason=reason)


class NoJsonFoundError(GenerationError):
    """Raised when no JSON object can be located in a completion."""

    error_kind = "no_json_found"

    def __init__(self, details: str | None = None):
        super().__init__(message="No JSON object found in completion", details=details)


class MalformedJsonError(GenerationError):
    """Raised when the located JSON span does not parse."""

    error_kind = "malformed_json"

    def __init__(self, reason: str, fragment: str):
        self.fragment = fragment
        super().__init__(
            message="Malformed JSON in completion",
            details=f"{reason} in {fragment!r}",
        )


class SchemaViolationError(GenerationError):
    """Raised when parsed data does not satisfy the problem schema."""

    error_kind = "schema_violation"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(
            message="Problem schema violation",
            details=", ".join(fields),
        )


# -----------------------------------------------------------------------------
# Persistence Errors
# -----------------------------------------------------------------------------

class PersistenceError(PrepForgeError):
    """Raised when the document store cannot complete a read or write."""
    pass


class DocumentExistsError(PersistenceError):
    """Raised by a conditional create when the key is already taken."""

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(message=f"Document already exists: {collection}/{key}")


# -----------------------------------------------------------------------------
# Session Errors
# -----------------------------------------------------------------------------

class SessionError(PrepForgeError):
    """Base exception for round session errors."""
    pass


class SessionNotFoundError(SessionError):
    """Raised when no session exists for a round."""

    def __init__(self, key: str):
        super().__init__(
            message=f"Session not found: {key}",
        )


class SimulationNotFoundError(SessionError):
    """Raised when a simulation ID is not found for the user."""

    def __init__(self, simulation_id: str):
        super().__init__(
            message=f"Simulation not found: {simulation_id}",
        )


class InvalidRoundError(SessionError):
    """Raised when a round index is outside the simulation's rounds."""

    def __init__(self, round_index: int, round_count: int):
        super().__init__(
            message="Invalid round number",
            details=f"Index {round_index}, simulation has {round_count} rounds",
        )


class InvalidProblemIndexError(SessionError):
    """Raised when a problem index is outside the session's problems."""

    def __init__(self, problem_index: int, problem_count: int):
        super().__init__(
            message="Invalid problem index",
            details=f"Index {problem_index}, session has {problem_count} problems",
        )


class InvalidSessionStateError(SessionError):
    """Raised when an operation is invalid for the current session state."""

    def __init__(self, current_state: str, required_state: str):
        super().__init__(
            message="Invalid session state",
            details=f"Current: {current_state}, Required: {required_state}",
        )
