from llm_mem.errors import InvalidQuantization, LLMMemError, MetadataUnavailable, UnresolvableParameterCount
from llm_mem.estimator import estimate_memory_breakdown, estimate_memory_gb
from llm_mem.hub.hf_client import HuggingFaceMetadataProvider, MetadataProvider
from llm_mem.metadata import FileDescriptor, MemoryBreakdown, ModelMetadata, ProviderRecord
from llm_mem.resolver import resolve_and_estimate, resolve_and_estimate_breakdown
from llm_mem.types import QuantizationBits, QuantizationLevel

__all__ = [
    "FileDescriptor",
    "HuggingFaceMetadataProvider",
    "InvalidQuantization",
    "LLMMemError",
    "MemoryBreakdown",
    "MetadataProvider",
    "MetadataUnavailable",
    "ModelMetadata",
    "ProviderRecord",
    "QuantizationBits",
    "QuantizationLevel",
    "UnresolvableParameterCount",
    "estimate_memory_breakdown",
    "estimate_memory_gb",
    "resolve_and_estimate",
    "resolve_and_estimate_breakdown",
]
