import json
from typing import Any, Dict, Optional

from llm_mem.estimator import estimate_memory_breakdown
from llm_mem.hub.hf_client import MetadataProvider
from llm_mem.metadata import ModelMetadata, breakdown_to_json
from llm_mem.print import print_report
from llm_mem.resolver import resolve_and_estimate_breakdown
from llm_mem.utils.constants import DEFAULT_CONTEXT_WINDOW, DEFAULT_OS_OVERHEAD_GB


async def run(
    model_id: Optional[str] = None,
    parameters_in_billions: Optional[float] = None,
    quantization: Optional[str] = None,
    context_window: int = DEFAULT_CONTEXT_WINDOW,
    os_overhead_gb: float = DEFAULT_OS_OVERHEAD_GB,
    revision: str = "main",
    json_output: bool = False,
    provider: Optional[MetadataProvider] = None,
) -> Dict[str, Any]:
    metadata: Optional[ModelMetadata] = None
    if model_id is not None:
        metadata, breakdown = await resolve_and_estimate_breakdown(
            model_id=model_id,
            context_window_tokens=context_window,
            os_overhead_gb=os_overhead_gb,
            provider=provider,
            revision=revision,
        )
    else:
        if parameters_in_billions is None or quantization is None:
            raise RuntimeError("EITHER `--model-id` OR BOTH `--parameters` AND `--quantization` ARE REQUIRED")
        breakdown = estimate_memory_breakdown(
            parameters_in_billions=parameters_in_billions,
            quantization=quantization,
            context_window_tokens=context_window,
            os_overhead_gb=os_overhead_gb,
        )

    out = breakdown_to_json(model_id=model_id, metadata=metadata, breakdown=breakdown)
    if json_output:
        print(json.dumps(out))
    else:
        print_report(breakdown=breakdown, model_id=model_id)
    return out
