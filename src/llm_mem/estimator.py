"""Memory estimation for a model given its size, quantization and context window."""

import math
from numbers import Integral, Real

from llm_mem.metadata import MemoryBreakdown
from llm_mem.types import QuantizationLike, get_quantization_level
from llm_mem.utils.constants import BYTES_PER_GB, CONTEXT_BYTES_PER_TOKEN, DEFAULT_OS_OVERHEAD_GB


def _check_non_negative(name: str, value: Real) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name.upper()} MUST BE A NUMBER, GOT {type(value).__name__}")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{name.upper()}={value} MUST BE FINITE AND NON-NEGATIVE")


def estimate_memory_breakdown(
    parameters_in_billions: float,
    quantization: QuantizationLike,
    context_window_tokens: int,
    os_overhead_gb: float = DEFAULT_OS_OVERHEAD_GB,
) -> MemoryBreakdown:
    """Estimate the memory required to run a model, keeping every term of the sum.

    Formula:
    total_bytes = parameters x (bits / 8) + context_window x 0.5e6 + os_overhead_gb x 1e9

    Where:
    - parameters = parameters_in_billions x 1e9
    - bits is the bit-width of the quantization level (e.g. 4 for `4-bit`, 32 for `fp32`)
    - 0.5e6 bytes per token of context is a fixed assumption, not the actual KV cache size
    """
    level = get_quantization_level(quantization)
    _check_non_negative("parameters_in_billions", parameters_in_billions)
    _check_non_negative("os_overhead_gb", os_overhead_gb)
    if isinstance(context_window_tokens, bool) or not isinstance(context_window_tokens, Integral):
        raise TypeError(f"CONTEXT_WINDOW_TOKENS MUST BE AN INTEGER, GOT {type(context_window_tokens).__name__}")
    if context_window_tokens < 0:
        raise ValueError(f"CONTEXT_WINDOW_TOKENS={context_window_tokens} MUST BE NON-NEGATIVE")

    parameters = parameters_in_billions * 1e9
    bits_per_parameter = level.bits
    parameter_bytes = parameters * (bits_per_parameter / 8)

    context_bytes = context_window_tokens * CONTEXT_BYTES_PER_TOKEN
    overhead_bytes = os_overhead_gb * BYTES_PER_GB

    return MemoryBreakdown(
        parameters_in_billions=parameters_in_billions,
        quantization=level,
        context_window_tokens=context_window_tokens,
        os_overhead_gb=os_overhead_gb,
        parameter_bytes=parameter_bytes,
        context_bytes=context_bytes,
        overhead_bytes=overhead_bytes,
        total_bytes=parameter_bytes + context_bytes + overhead_bytes,
    )


def estimate_memory_gb(
    parameters_in_billions: float,
    quantization: QuantizationLike,
    context_window_tokens: int,
    os_overhead_gb: float = DEFAULT_OS_OVERHEAD_GB,
) -> float:
    """Estimated memory in (decimal) GB, not rounded."""
    return estimate_memory_breakdown(
        parameters_in_billions=parameters_in_billions,
        quantization=quantization,
        context_window_tokens=context_window_tokens,
        os_overhead_gb=os_overhead_gb,
    ).total_gb
