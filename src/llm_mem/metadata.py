import math
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from llm_mem.types import QuantizationLevel
from llm_mem.utils.constants import BYTES_PER_GB


@dataclass
class FileDescriptor:
    filename: str
    suffix: Optional[str] = None


@dataclass
class ProviderRecord:
    """What the metadata provider knows about a model, either field may be missing."""

    model_id: str
    parameters: Optional[float] = None
    files: Optional[List[FileDescriptor]] = None


@dataclass
class ModelMetadata:
    parameters: float  # raw count, not in billions
    quantization: Optional[QuantizationLevel] = None


@dataclass
class MemoryBreakdown:
    """Memory estimate split into the weights, the context window and the OS overhead."""

    parameters_in_billions: float
    quantization: QuantizationLevel
    context_window_tokens: int
    os_overhead_gb: float
    parameter_bytes: float
    context_bytes: float
    overhead_bytes: float
    total_bytes: float

    @property
    def total_gb(self) -> float:
        return self.total_bytes / BYTES_PER_GB


class MalformedMetadataError(ValueError):
    pass


# NOTE: Splits e.g. `model-int4`, `model.int8` or `model_fp16` on the last separator, so that the trailing
# token is used as the suffix tag of the file
_SUFFIX_SEPARATOR = re.compile(r"[._-]")


def get_file_suffix(filename: str) -> Optional[str]:
    stem, _ = os.path.splitext(os.path.basename(filename))
    tokens = [token for token in _SUFFIX_SEPARATOR.split(stem) if token]
    if len(tokens) < 2:
        return None
    return tokens[-1].lower()


def _as_parameter_count(value: Any) -> Optional[float]:
    # NOTE: `bool` is a subclass of `int`, but `True` is not a parameter count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        finite = math.isfinite(value)
    except OverflowError:
        raise MalformedMetadataError(f"PARAMETER COUNT WITH {value.bit_length()} BITS DOES NOT FIT IN A FLOAT") from None
    if not finite or value <= 0:
        return None
    return value


def _as_list(value: Any, field: str) -> List[Any]:
    if not isinstance(value, list):
        raise MalformedMetadataError(f"`{field}` IS {type(value).__name__}, EXPECTED list")
    return value


def parse_model_info(model_id: str, raw_metadata: Any) -> ProviderRecord:
    """Turn a Hub model-info payload into a `ProviderRecord`.

    Both the `api/models/{model_id}` shape (`safetensors.total` and `siblings[].rfilename`) and the legacy
    inference API shape (`modelCard.parameters` and `modelCard.modeldownloads[].suffix`) are understood, and
    the former wins when both are present. Raises `MalformedMetadataError` when the payload shape is wrong.
    """
    if not isinstance(raw_metadata, dict):
        raise MalformedMetadataError(f"RESPONSE IS {type(raw_metadata).__name__}, EXPECTED dict")

    model_card = raw_metadata.get("modelCard") or {}
    if not isinstance(model_card, dict):
        raise MalformedMetadataError(f"`modelCard` IS {type(model_card).__name__}, EXPECTED dict")

    safetensors = raw_metadata.get("safetensors") or {}
    parameters = None
    if isinstance(safetensors, dict):
        parameters = _as_parameter_count(safetensors.get("total"))
    if parameters is None:
        parameters = _as_parameter_count(model_card.get("parameters"))

    files: Optional[List[FileDescriptor]] = None
    if raw_metadata.get("siblings") is not None:
        files = []
        for sibling in _as_list(raw_metadata["siblings"], "siblings"):
            if not isinstance(sibling, dict) or not isinstance(sibling.get("rfilename"), str):
                continue
            files.append(FileDescriptor(filename=sibling["rfilename"], suffix=get_file_suffix(sibling["rfilename"])))
    elif model_card.get("modeldownloads") is not None:
        files = []
        for download in _as_list(model_card["modeldownloads"], "modelCard.modeldownloads"):
            if not isinstance(download, dict):
                continue
            suffix = download.get("suffix")
            files.append(
                FileDescriptor(
                    filename=str(download.get("filename") or download.get("name") or ""),
                    suffix=suffix.lower() if isinstance(suffix, str) else None,
                )
            )

    return ProviderRecord(model_id=model_id, parameters=parameters, files=files)


def breakdown_to_json(model_id: Optional[str], metadata: Optional[ModelMetadata], breakdown: MemoryBreakdown) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "model_id": model_id,
        "parameters": metadata.parameters if metadata is not None else breakdown.parameters_in_billions * 1e9,
        "parameters_in_billions": breakdown.parameters_in_billions,
        "quantization": breakdown.quantization.value,
        "context_window_tokens": breakdown.context_window_tokens,
        "os_overhead_gb": breakdown.os_overhead_gb,
        "parameter_bytes": breakdown.parameter_bytes,
        "context_bytes": breakdown.context_bytes,
        "overhead_bytes": breakdown.overhead_bytes,
        "total_bytes": breakdown.total_bytes,
        "total_gb": breakdown.total_gb,
    }
    if model_id is None:
        out.pop("model_id")
    return out
