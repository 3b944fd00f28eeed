from enum import Enum
from typing import Dict, Union

from llm_mem.errors import InvalidQuantization


class QuantizationLevel(str, Enum):
    BIT_1 = "1-bit"
    BIT_2 = "2-bit"
    BIT_3 = "3-bit"
    BIT_4 = "4-bit"
    BIT_5 = "5-bit"
    BIT_6 = "6-bit"
    BIT_8 = "8-bit"
    FP16 = "fp16"
    FP32 = "fp32"

    def __str__(self) -> str:
        return self.value

    @property
    def bits(self) -> int:
        return QuantizationBits[self]


# Conversion quantization level -> bits-per-parameter
QuantizationBits: Dict[QuantizationLevel, int] = {
    QuantizationLevel.BIT_1: 1,
    QuantizationLevel.BIT_2: 2,
    QuantizationLevel.BIT_3: 3,
    QuantizationLevel.BIT_4: 4,
    QuantizationLevel.BIT_5: 5,
    QuantizationLevel.BIT_6: 6,
    QuantizationLevel.BIT_8: 8,
    QuantizationLevel.FP16: 16,
    QuantizationLevel.FP32: 32,
}

QuantizationLike = Union[QuantizationLevel, str]


def get_quantization_level(quantization: QuantizationLike) -> QuantizationLevel:
    """Map a label (e.g. `"4-bit"`, `"fp16"`) to its `QuantizationLevel`, raising `InvalidQuantization` otherwise."""
    if isinstance(quantization, QuantizationLevel):
        return quantization
    try:
        return QuantizationLevel(quantization)
    except ValueError:
        raise InvalidQuantization(quantization, [level.value for level in QuantizationLevel]) from None


def get_quantization_bits(quantization: QuantizationLike) -> int:
    return QuantizationBits[get_quantization_level(quantization)]
