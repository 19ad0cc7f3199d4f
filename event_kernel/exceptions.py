"""
Typed exception hierarchy for the event analytics kernel.

Every error carries a machine-readable ``code`` class attribute and its
context as structured attributes, so callers catch by type and log or
serialize fields instead of parsing messages.

Hierarchy::

    EventAnalyticsError (base)
    |
    +-- ValidationError
    |   +-- InvalidPricingRuleError
    |   +-- InvalidAttendanceError
    |
    +-- UpstreamFetchError
    |
    +-- QuotaError
    |   +-- QuotaExceededError
    |   +-- QuotaRecordNotFoundError
    |
    +-- InsightError
    |   +-- InsightGenerationError
    |   +-- MalformedInsightResponseError
    |
    +-- ConfigError
        +-- UnknownPlanError

Codes:

    Category    | Code                       | When raised
    ------------|----------------------------|-----------------------------------
    Validation  | INVALID_PRICING_RULE       | Unknown markup/discount type
                | INVALID_ATTENDANCE         | Negative attendance counts
    Upstream    | UPSTREAM_FETCH_FAILED      | Storage read failed mid-refresh
    Quota       | QUOTA_EXCEEDED             | Reservation past the tier ceiling
                | QUOTA_RECORD_NOT_FOUND     | Reserve without a checked window
    Insight     | INSIGHT_GENERATION_FAILED  | Generator returned non-success
                | MALFORMED_INSIGHT_RESPONSE | Generator payload had no text
    Config      | UNKNOWN_PLAN               | Strict tier lookup missed

Quota exhaustion is a defined terminal state, not a failure: the quota
service reports ``can_generate_more=False`` on check and only raises
``QuotaExceededError`` when a caller tries to reserve anyway.  Generator
errors never reach the presentation layer; the insight service catches
them and persists the fallback summary.
"""


class EventAnalyticsError(Exception):
    """
    Base exception for all event analytics errors.

    All subclasses define a ``code`` class attribute.
    """

    code: str = "EVENT_ANALYTICS_ERROR"


# Validation


class ValidationError(EventAnalyticsError):
    """Base exception for rejected input values."""

    code: str = "VALIDATION_ERROR"


class InvalidPricingRuleError(ValidationError):
    """Markup or discount type is not one of the supported values."""

    code: str = "INVALID_PRICING_RULE"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}")


class InvalidAttendanceError(ValidationError):
    """Attendance counts must be non-negative integers."""

    code: str = "INVALID_ATTENDANCE"

    def __init__(self, event_id: str, expected: int, actual: int):
        self.event_id = event_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid attendance for event {event_id}: "
            f"expected={expected}, actual={actual}"
        )


# Upstream


class UpstreamFetchError(EventAnalyticsError):
    """A storage read failed; the refresh cycle is abandoned."""

    code: str = "UPSTREAM_FETCH_FAILED"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to fetch {source}: {reason}")


# Quota


class QuotaError(EventAnalyticsError):
    """Base exception for insight quota bookkeeping."""

    code: str = "QUOTA_ERROR"


class QuotaExceededError(QuotaError):
    """The weekly insight ceiling has been reached for this scope."""

    code: str = "QUOTA_EXCEEDED"

    def __init__(self, scope_key: str, insights_generated: int, max_insights: int):
        self.scope_key = scope_key
        self.insights_generated = insights_generated
        self.max_insights = max_insights
        super().__init__(
            f"Insight quota exhausted for {scope_key}: "
            f"{insights_generated}/{max_insights}"
        )


class QuotaRecordNotFoundError(QuotaError):
    """No quota row exists for the scope and week."""

    code: str = "QUOTA_RECORD_NOT_FOUND"

    def __init__(self, scope_key: str, week_start: str):
        self.scope_key = scope_key
        self.week_start = week_start
        super().__init__(f"No quota record for {scope_key} in week {week_start}")


# Insight generation


class InsightError(EventAnalyticsError):
    """Base exception for the text-generation side channel."""

    code: str = "INSIGHT_ERROR"


class InsightGenerationError(InsightError):
    """The text-generation collaborator failed."""

    code: str = "INSIGHT_GENERATION_FAILED"

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Insight generation failed: {reason}")


class MalformedInsightResponseError(InsightError):
    """The generator answered but the payload carried no usable text."""

    code: str = "MALFORMED_INSIGHT_RESPONSE"

    def __init__(self, payload_keys: list[str]):
        self.payload_keys = payload_keys
        super().__init__(f"Insight response has no text (keys: {payload_keys})")


# Configuration


class ConfigError(EventAnalyticsError):
    """Base exception for configuration problems."""

    code: str = "CONFIG_ERROR"


class UnknownPlanError(ConfigError):
    """Subscription plan name is not defined in the active configuration."""

    code: str = "UNKNOWN_PLAN"

    def __init__(self, plan_name: str):
        self.plan_name = plan_name
        super().__init__(f"Unknown subscription plan: {plan_name}")
