from __future__ import annotations


class SurveyError(Exception):
    # Base class for domain errors raised by the scoring engine.
    pass


class ConfigurationError(SurveyError):
    # Scoring configuration is malformed or missing fields its type requires.
    pass


class UnknownScoringTypeError(ConfigurationError):
    def __init__(self, scoring_type: object):
        super().__init__(f"unknown scoring type: {scoring_type!r}")
        self.scoring_type = scoring_type


class UnimplementedStrategyError(ConfigurationError):
    def __init__(self, scoring_type: str):
        super().__init__(f"scoring type '{scoring_type}' is not implemented")
        self.scoring_type = scoring_type


class NoResponsesError(SurveyError):
    def __init__(self, message: str = "No responses found for this user and survey"):
        super().__init__(message)


class SurveyNotFoundError(SurveyError):
    # Raised by the survey store when a survey id is unknown.
    pass


class LocalizationError(SurveyError, ValueError):
    # A required localized field is missing or has an unsupported shape.
    pass


class ExpressionError(SurveyError, ValueError):
    # Formula expression is malformed or uses a disallowed construct.
    pass
