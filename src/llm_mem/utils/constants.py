import os

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 10.0))

HF_ENDPOINT = os.getenv("HF_ENDPOINT", "https://huggingface.co").rstrip("/")

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()

DEFAULT_OS_OVERHEAD_GB = 2.0

DEFAULT_CONTEXT_WINDOW = 2048

# NOTE: Flat assumption of working memory per token of context, regardless of the model width or the
# quantization, so it won't match the actual KV cache size of a model.
CONTEXT_BYTES_PER_TOKEN = 0.5 * 1e6

BYTES_PER_GB = 1e9
