from typing import Any, Iterable


class LLMMemError(RuntimeError):
    """Base class for the errors raised while estimating the memory of a model."""


class InvalidQuantization(LLMMemError, ValueError):
    def __init__(self, quantization: Any, valid_options: Iterable[str] = ()) -> None:
        self.quantization = quantization
        options = list(valid_options)
        message = f"QUANTIZATION={quantization!r} NOT RECOGNIZED"
        if options:
            message += f", VALID OPTIONS ARE: {', '.join(options)}"
        super().__init__(message)


class UnresolvableParameterCount(LLMMemError):
    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(
            f"PARAMETER COUNT FOR `{model_id}` COULDN'T BE RESOLVED, NEITHER THE HUB NOR THE MODEL ID"
            " (e.g. `7b`, `350m`) PROVIDE IT"
        )


class MetadataUnavailable(LLMMemError):
    def __init__(self, model_id: str, reason: str) -> None:
        self.model_id = model_id
        self.reason = reason
        super().__init__(f"METADATA FOR `{model_id}` UNAVAILABLE: {reason}")
