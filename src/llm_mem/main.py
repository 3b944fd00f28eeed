import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from llm_mem.cli import run
from llm_mem.types import QuantizationLevel
from llm_mem.utils.constants import DEFAULT_CONTEXT_WINDOW, DEFAULT_OS_OVERHEAD_GB, LOG_LEVEL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Estimate the memory required to run an LLM.")
    parser.add_argument("--model-id", help="Model ID on the Hugging Face Hub")
    parser.add_argument("--revision", default="main", help="Model revision")
    parser.add_argument("--parameters", type=float, help="Number of parameters in billions, instead of --model-id")
    parser.add_argument(
        "--quantization",
        choices=[level.value for level in QuantizationLevel],
        help="Quantization level, required with --parameters",
    )
    parser.add_argument("--context-window", type=int, default=DEFAULT_CONTEXT_WINDOW, help="Context window in tokens")
    parser.add_argument("--os-overhead-gb", type=float, default=DEFAULT_OS_OVERHEAD_GB, help="OS overhead in GB")
    parser.add_argument("--json-output", action="store_true", help="Output as JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.model_id is None and (args.parameters is None or args.quantization is None):
        parser.error("either --model-id or both --parameters and --quantization are required")

    logging.basicConfig(
        format="[%(levelname)s] @ %(filename)s:%(lineno)d :: %(message)s",
        level=LOG_LEVEL,
    )

    try:
        asyncio.run(
            run(
                model_id=args.model_id,
                parameters_in_billions=args.parameters,
                quantization=args.quantization,
                context_window=args.context_window,
                os_overhead_gb=args.os_overhead_gb,
                revision=args.revision,
                json_output=args.json_output,
            )
        )
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
