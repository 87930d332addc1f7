"""
procurement_engines.tracer -- PROCUREMENT_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure calculator and, after each call, logs
    which engine ran (name and version), a fingerprint of the inputs that
    determine its result, and how long it took.  Two calls with equal
    inputs carry equal fingerprints, so a displayed status can be matched
    to the exact inputs it was computed from.

Architecture position:
    Engines -- support code for the calculation layer.  The only side
    effect is the log record; no I/O reaches the engines through here.

Invariants enforced:
    - Canonical forms are order-independent for mappings and
      representation-independent for Decimal (``100.00`` == ``100``).
    - Dataclass inputs are fingerprinted field by field.
    - The wrapped function's arguments and result pass through untouched.

Failure modes:
    - A fingerprint field the call leaves unbound hashes as ``null``.
    - Exceptions from the wrapped function propagate; no trace is logged.

Usage:
    @traced_engine("refund_due", "1.0", fingerprint_fields=("purchase", "amount_paid"))
    def calculate_refund_due(purchase, amount_paid, returns=None, timeline=None):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from procurement_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "PROCUREMENT_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    """Stable text form of ``value`` for hashing."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return "NaN" if value.is_nan() else str(value.normalize())
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (int, float, str)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        pairs = sorted((str(k), _canonicalize(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """First 16 hex digits of SHA-256 over ``name=value`` pairs of the fields."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorate a pure engine function so each call logs a trace record.

    Args:
        engine_name: Identifier written as ``engine_name`` (e.g. "refund_due").
        engine_version: Version of the calculation rules (e.g. "1.0").
        fingerprint_fields: Parameters hashed into ``input_fingerprint``.
            Arguments are bound against the signature, so positional and
            keyword calls fingerprint alike.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            _logger.info(
                TRACE_TYPE,
                extra={
                    "trace_type": TRACE_TYPE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": elapsed_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
