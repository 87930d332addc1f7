"""
procurement_config -- single public entrypoint for runtime settings.

Responsibility:
    ``load_settings()`` is the only way to obtain configuration.  It reads
    the bundled ``defaults.yaml`` and overlays an optional deployment file.
    No other component reads configuration files directly.

Architecture position:
    Configuration sits above ``procurement_kernel`` and beside
    ``procurement_services``.  The kernel and engines MUST NEVER import
    from ``procurement_config``; the composition root passes plain values
    down.

Failure modes:
    - ``FileNotFoundError`` -- deployment file does not exist.
    - ``yaml.YAMLError`` -- deployment file is not valid YAML.
    - ``ConfigurationError`` -- unknown key or invalid value.

Audit relevance:
    Every successful call emits a ``PROCUREMENT_CONFIG_TRACE`` log entry
    with the resolved settings (credentials masked) and the source files.
"""

from __future__ import annotations

from pathlib import Path

from procurement_config.loader import load_yaml_file, parse_settings, settings_as_dict
from procurement_config.schema import Settings
from procurement_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"


def load_settings(path: Path | str | None = None) -> Settings:
    """Load defaults, overlay ``path`` when given, and validate.

    Args:
        path: Deployment settings file.  Keys present here replace the
            bundled defaults; absent keys keep them.

    Returns:
        Frozen ``Settings``.
    """
    data = load_yaml_file(_DEFAULTS_FILE)
    sources = [str(_DEFAULTS_FILE)]
    if path is not None:
        data.update(load_yaml_file(Path(path)))
        sources.append(str(path))

    settings = parse_settings(data)

    _logger.info(
        "PROCUREMENT_CONFIG_TRACE",
        extra={
            "trace_type": "PROCUREMENT_CONFIG_TRACE",
            "sources": sources,
            "settings": settings_as_dict(settings),
        },
    )
    return settings


__all__ = [
    "Settings",
    "load_settings",
]
