import logging
import re
from typing import Iterable, Optional, Tuple

from llm_mem.errors import UnresolvableParameterCount
from llm_mem.estimator import estimate_memory_breakdown
from llm_mem.hub.hf_client import HuggingFaceMetadataProvider, MetadataProvider, create_client
from llm_mem.metadata import FileDescriptor, MemoryBreakdown, ModelMetadata
from llm_mem.types import QuantizationLevel
from llm_mem.utils.constants import DEFAULT_OS_OVERHEAD_GB

logger = logging.getLogger(__name__)

# NOTE: Order matters, the billions pattern is checked first, so e.g. `foo-7b-350m` is 7B params
PARAMETER_NAME_PATTERNS = [
    (re.compile(r"(\d+)b", re.IGNORECASE), 1e9),
    (re.compile(r"(\d+)m", re.IGNORECASE), 1e6),
]

# NOTE: Order matters, the first suffix found within the files wins regardless of the file order
SUFFIX_QUANTIZATION = [
    ("int4", QuantizationLevel.BIT_4),
    ("int8", QuantizationLevel.BIT_8),
    ("fp16", QuantizationLevel.FP16),
]

# NOTE: Unquantized models are assumed to be stored at full precision
DEFAULT_QUANTIZATION = QuantizationLevel.FP32


def parse_parameter_count_from_name(model_id: str) -> Optional[float]:
    """Guess the raw parameter count from the model id e.g. `meta-llama/Llama-2-7b-hf` -> 7e9."""
    for pattern, multiplier in PARAMETER_NAME_PATTERNS:
        # NOTE: A zero match e.g. `0b` is not a parameter count, so the next pattern is checked instead
        if (match := pattern.search(model_id)) and int(match.group(1)) > 0:
            return int(match.group(1)) * multiplier
    return None


def detect_quantization(files: Optional[Iterable[FileDescriptor]]) -> Optional[QuantizationLevel]:
    if not files:
        return None
    suffixes = {f.suffix.lower() for f in files if f.suffix}
    for suffix, quantization in SUFFIX_QUANTIZATION:
        if suffix in suffixes:
            return quantization
    return None


async def resolve_model_metadata(provider: MetadataProvider, model_id: str) -> ModelMetadata:
    record = await provider.fetch(model_id)

    if record.parameters is not None:
        parameters = record.parameters
        logger.info(f"PARAMETERS={parameters} SOURCE=HUB")
    elif (parameters := parse_parameter_count_from_name(model_id)) is not None:
        logger.info(f"PARAMETERS={parameters} SOURCE=MODEL_ID")
    else:
        raise UnresolvableParameterCount(model_id)

    quantization = detect_quantization(record.files)
    logger.info(f"QUANTIZATION={quantization} SOURCE={'FILES' if quantization else 'NONE'}")
    return ModelMetadata(parameters=parameters, quantization=quantization)


async def _resolve(
    model_id: str, provider: Optional[MetadataProvider], revision: str
) -> ModelMetadata:
    if provider is not None:
        return await resolve_model_metadata(provider, model_id)
    async with create_client() as client:
        return await resolve_model_metadata(HuggingFaceMetadataProvider(client=client, revision=revision), model_id)


async def resolve_and_estimate_breakdown(
    model_id: str,
    context_window_tokens: int,
    os_overhead_gb: float = DEFAULT_OS_OVERHEAD_GB,
    provider: Optional[MetadataProvider] = None,
    revision: str = "main",
) -> Tuple[ModelMetadata, MemoryBreakdown]:
    metadata = await _resolve(model_id, provider, revision)
    breakdown = estimate_memory_breakdown(
        parameters_in_billions=metadata.parameters / 1e9,
        quantization=metadata.quantization or DEFAULT_QUANTIZATION,
        context_window_tokens=context_window_tokens,
        os_overhead_gb=os_overhead_gb,
    )
    logger.info(f"MODEL={model_id} TOTAL MEMORY={breakdown.total_gb:.3f} (IN GIGABYTES)")
    return metadata, breakdown


async def resolve_and_estimate(
    model_id: str,
    context_window_tokens: int,
    os_overhead_gb: float = DEFAULT_OS_OVERHEAD_GB,
    provider: Optional[MetadataProvider] = None,
    revision: str = "main",
) -> float:
    """Resolve the parameter count and quantization of `model_id` and estimate its memory in GB.

    The parameter count comes from the provider when available, and otherwise from the model id
    (e.g. `7b` or `350m`); the quantization comes from the suffix tags of the listed files, defaulting
    to `fp32`. When no `provider` is given, the Hugging Face Hub is queried at `revision`.
    """
    _, breakdown = await resolve_and_estimate_breakdown(
        model_id=model_id,
        context_window_tokens=context_window_tokens,
        os_overhead_gb=os_overhead_gb,
        provider=provider,
        revision=revision,
    )
    return breakdown.total_gb
