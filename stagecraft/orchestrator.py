import time
import uuid
from typing import Any, Dict, Optional, Tuple

import yaml

from stagecraft.boundary import SequenceHandle
from stagecraft.normalizers import Normalizer
from stagecraft.pre_tokenizers import PreTokenizer
from stagecraft.utils import get_logger, validate_config

logger = get_logger(__name__)


def load_config(config_path: str) -> Dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    validate_config(cfg)
    return cfg


def build_pipelines(cfg: Dict[str, Any]) -> Tuple[Optional[Normalizer], Optional[PreTokenizer]]:
    """Decode the configured pipelines; a missing section yields ``None``."""
    normalizer = None
    pre_tokenizer = None
    if cfg.get("normalizer") is not None:
        normalizer = Normalizer.from_dict(cfg["normalizer"])
        logger.info("config normalizer=%s", normalizer.descriptor)
    if cfg.get("pre_tokenizer") is not None:
        pre_tokenizer = PreTokenizer.from_dict(cfg["pre_tokenizer"])
        logger.info("config pre_tokenizer=%s", pre_tokenizer.descriptor)
    return normalizer, pre_tokenizer


def process(
    text: str,
    normalizer: Optional[Normalizer] = None,
    pre_tokenizer: Optional[PreTokenizer] = None,
) -> Dict[str, Any]:
    """Normalize ``text``, then pre-tokenize the normalized result.

    Token offsets refer to the normalized text.
    """
    t0 = time.monotonic()
    normalized = normalizer.normalize_str(text) if normalizer is not None else text
    tokens = []
    if pre_tokenizer is not None:
        tokens = [
            {"text": span, "start": start, "end": end}
            for span, (start, end) in pre_tokenizer.pre_tokenize_str(normalized)
        ]
    logger.debug("processed chars=%d tokens=%d took_ms=%d", len(text), len(tokens), int((time.monotonic() - t0) * 1000))
    return {"normalized": normalized, "tokens": tokens}


def _apply_overrides(cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> None:
    if not overrides:
        return
    if overrides.get("normalize") is False:
        cfg.pop("normalizer", None)
    if overrides.get("pre_tokenize") is False:
        cfg.pop("pre_tokenizer", None)


def run_once(
    config_path: str,
    text: str,
    *,
    normalize: Optional[bool] = None,
    pre_tokenize: Optional[bool] = None,
) -> Dict[str, Any]:
    """Load the config at ``config_path`` and run its pipelines over ``text`` once."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s ===", run_id)

    try:
        cfg = load_config(config_path)
        _apply_overrides(cfg, {"normalize": normalize, "pre_tokenize": pre_tokenize})
        normalizer, pre_tokenizer = build_pipelines(cfg)
        result = process(text, normalizer, pre_tokenizer)
        logger.info("run ok tokens=%d", len(result["tokens"]))
        return result
    except Exception as e:
        logger.error("Pipeline execution failed: %s", e)
        raise
    finally:
        logger.info("=== run end id=%s ===", run_id)


def describe_config(config_path: str) -> Dict[str, Any]:
    """Descriptors of the configured pipelines, keyed by section."""
    normalizer, pre_tokenizer = build_pipelines(load_config(config_path))
    out: Dict[str, Any] = {}
    if normalizer is not None:
        out["normalizer"] = _describe_handle(normalizer)
    if pre_tokenizer is not None:
        out["pre_tokenizer"] = _describe_handle(pre_tokenizer)
    return out


def _describe_handle(handle) -> Dict[str, Any]:
    desc = {"kind": str(handle.descriptor)}
    if isinstance(handle, SequenceHandle):
        desc["stages"] = [str(item.descriptor) for item in handle]
    return desc
