"""Custom exception hierarchy for the pipeline advisor."""


class AdvisorError(Exception):
    """Base exception for all pipeline advisor errors."""


class FeaturesError(AdvisorError):
    """Features document is not usable (invalid JSON, wrong shape, bad repo id)."""


class ClassifierError(AdvisorError):
    """Error calling the zero-shot classifier."""


class GenerationError(AdvisorError):
    """Error calling a generative model provider."""


class ConfigurationError(AdvisorError):
    """Error in system configuration."""
