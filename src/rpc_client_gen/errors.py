"""Error types raised by the generation pipeline."""


class RpcGenError(Exception):
    """Base class for every error the pipeline surfaces to callers."""


class ConfigurationError(RpcGenError):
    """Invalid or missing settings, reported once with every violation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Configuration validation failed: {', '.join(self.errors)}")


class AnalysisError(RpcGenError):
    """One or more routes failed static resolution."""

    def __init__(self, failures: list[str]):
        self.failures = list(failures)
        super().__init__(f"Failed to process {len(self.failures)} routes: {', '.join(self.failures)}")


class TypeResolutionError(RpcGenError):
    """A type annotation could not be read from a controller source."""


class SchemaDerivationError(RpcGenError):
    """A schema could not be derived for a single type."""


class ClientEmissionError(RpcGenError):
    """The client module text could not be synthesized."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Client generation failed: {'; '.join(self.errors)}")
