"""
Configuration validation.

Turns the merged raw configuration (TOML + environment + CLI) into an
immutable AuditConfig. Every problem surfaces as ConfigurationError naming
the offending setting, before any telemetry is read.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import (
    AtopConfig,
    AuditConfig,
    OutputConfig,
    ReportConfig,
    SourceConfig,
    Thresholds,
    DEFAULT_ATOP_THRESHOLDS,
)
from ..models.telemetry import Window
from ..validation import (
    ConfigurationError,
    ValidationError,
    validate_boolean,
    validate_link_speed_map,
    validate_positive_float,
    validate_positive_integer,
    validate_time_of_day,
)

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = {"window", "source", "report", "thresholds", "network", "output", "atop", "system"}


def validate_window(window_data: Dict[str, Any]) -> Window:
    """
    Validate the analysis window.

    start == end selects the full day; start after end is rejected because
    the window never wraps past midnight.
    """
    defaults = AuditConfig().window
    start = validate_time_of_day(window_data.get("start", defaults.start), field_name="window.start")
    end = validate_time_of_day(window_data.get("end", defaults.end), field_name="window.end")
    if start > end:
        raise ValidationError(
            f"window.start ({start}) must not be after window.end ({end}); "
            "use equal values for a full-day window",
            field_name="window",
            value=(start, end),
        )
    return Window(start=start, end=end)


def validate_source_config(source_data: Dict[str, Any]) -> SourceConfig:
    defaults = SourceConfig()

    sa_dirs_raw = source_data.get("sa_dirs", [str(p) for p in defaults.sa_dirs])
    if isinstance(sa_dirs_raw, str):
        sa_dirs_raw = [part for part in sa_dirs_raw.split(":") if part]
    if not isinstance(sa_dirs_raw, list) or not sa_dirs_raw:
        raise ValidationError(
            "source.sa_dirs must be a non-empty list of directories",
            field_name="source.sa_dirs",
            value=sa_dirs_raw,
        )
    sa_dirs = tuple(Path(str(d)).expanduser() for d in sa_dirs_raw)

    max_files = validate_positive_integer(
        source_data.get("max_files", defaults.max_files),
        min_value=1,
        max_value=366,
        field_name="source.max_files",
    )
    decoder_timeout = validate_positive_float(
        source_data.get("decoder_timeout", defaults.decoder_timeout),
        min_value=1.0,
        max_value=3600.0,
        field_name="source.decoder_timeout",
    )
    return SourceConfig(sa_dirs=sa_dirs, max_files=max_files, decoder_timeout=decoder_timeout)


def validate_report_config(report_data: Dict[str, Any]) -> ReportConfig:
    defaults = ReportConfig()
    return ReportConfig(
        top_n=validate_positive_integer(
            report_data.get("top_n", defaults.top_n),
            min_value=1,
            max_value=10000,
            field_name="report.top_n",
        ),
        include_loopback=validate_boolean(
            report_data.get("include_loopback", defaults.include_loopback),
            field_name="report.include_loopback",
        ),
        include_inventory=validate_boolean(
            report_data.get("include_inventory", defaults.include_inventory),
            field_name="report.include_inventory",
        ),
        debug=validate_boolean(report_data.get("debug", defaults.debug), field_name="report.debug"),
    )


def validate_thresholds(threshold_data: Dict[str, Any]) -> Thresholds:
    """
    Validate scoring thresholds. All are non-negative numbers; percentages
    are capped at 100.
    """
    defaults = Thresholds()
    values = {}
    for name in Thresholds.__dataclass_fields__:
        max_value = 100.0 if name.endswith("_pct") or "util" in name or name == "mem_used_warn" else None
        values[name] = validate_positive_float(
            threshold_data.get(name, getattr(defaults, name)),
            min_value=0.0,
            max_value=max_value,
            field_name=f"thresholds.{name}",
        )
    unknown = set(threshold_data) - set(values)
    if unknown:
        logger.warning(f"Ignoring unknown threshold settings: {sorted(unknown)}")
    return Thresholds(**values)


def validate_network_config(network_data: Dict[str, Any]) -> Dict[str, int]:
    """
    Resolve the per-interface link speed map.

    Precedence: [network.link_speeds] table, then the IF_SPEED_Mbps list,
    then per-interface IF_SPEED_Mbps_<iface> overrides, then --link-speed flags.
    """
    speeds: Dict[str, int] = {}
    speeds.update(validate_link_speed_map(
        network_data.get("link_speeds", {}), field_name="network.link_speeds"
    ))
    if "link_speeds_list" in network_data:
        speeds.update(validate_link_speed_map(
            network_data["link_speeds_list"], field_name="IF_SPEED_Mbps"
        ))
    if "link_speed_overrides" in network_data:
        speeds.update(validate_link_speed_map(
            network_data["link_speed_overrides"], field_name="IF_SPEED_Mbps_<iface>"
        ))
    if "link_speeds_cli" in network_data:
        speeds.update(validate_link_speed_map(
            network_data["link_speeds_cli"], field_name="--link-speed"
        ))
    if speeds:
        logger.debug(f"Link speeds (Mbps): {speeds}")
    return speeds


def validate_output_config(output_data: Dict[str, Any]) -> OutputConfig:
    defaults = OutputConfig()
    summary_name = output_data.get("summary_name", defaults.summary_name)
    archive_name = output_data.get("archive_name", defaults.archive_name)
    for field_name, value in (("output.summary_name", summary_name), ("output.archive_name", archive_name)):
        if not isinstance(value, str) or not value.strip() or "/" in value:
            raise ValidationError(
                f"{field_name} must be a plain file name",
                field_name=field_name,
                value=value,
            )
    return OutputConfig(
        audit_dir=Path(str(output_data.get("audit_dir", defaults.audit_dir))).expanduser(),
        summary_name=summary_name,
        summary_lines=validate_positive_integer(
            output_data.get("summary_lines", defaults.summary_lines),
            min_value=1,
            max_value=100000,
            field_name="output.summary_lines",
        ),
        archive_name=archive_name,
        write_summary=validate_boolean(
            output_data.get("write_summary", defaults.write_summary),
            field_name="output.write_summary",
        ),
        create_archive=validate_boolean(
            output_data.get("create_archive", defaults.create_archive),
            field_name="output.create_archive",
        ),
    )


def validate_atop_config(atop_data: Dict[str, Any]) -> AtopConfig:
    defaults = AtopConfig()
    thresholds = dict(DEFAULT_ATOP_THRESHOLDS)
    raw_thresholds = atop_data.get("thresholds", {})
    if not isinstance(raw_thresholds, dict):
        raise ValidationError(
            "atop.thresholds must be a table",
            field_name="atop.thresholds",
            value=raw_thresholds,
        )
    for metric, value in raw_thresholds.items():
        if metric not in thresholds:
            raise ValidationError(
                f"atop.thresholds has unknown metric '{metric}', expected one of {sorted(thresholds)}",
                field_name="atop.thresholds",
                value=metric,
            )
        thresholds[metric] = validate_positive_float(
            value, min_value=0.0, field_name=f"atop.thresholds.{metric}"
        )
    return AtopConfig(
        log_path=Path(str(atop_data.get("log_path", defaults.log_path))).expanduser(),
        top_n=validate_positive_integer(
            atop_data.get("top_n", defaults.top_n),
            min_value=1,
            max_value=1000,
            field_name="atop.top_n",
        ),
        thresholds=thresholds,
    )


def validate_audit_config(data: Dict[str, Any]) -> AuditConfig:
    """
    Validate merged configuration data and build the AuditConfig.

    Args:
        data: Merged raw configuration in the TOML layout

    Returns:
        Validated, immutable AuditConfig

    Raises:
        ConfigurationError: If any setting is invalid
    """
    unknown_sections = set(data) - KNOWN_SECTIONS
    if unknown_sections:
        logger.warning(f"Ignoring unknown configuration sections: {sorted(unknown_sections)}")

    try:
        vcpu_raw = data.get("system", {}).get("vcpu_count")
        vcpu_count = None
        if vcpu_raw not in (None, ""):
            vcpu_count = validate_positive_integer(
                vcpu_raw, min_value=1, max_value=65536, field_name="system.vcpu_count"
            )

        return AuditConfig(
            window=validate_window(data.get("window", {})),
            source=validate_source_config(data.get("source", {})),
            report=validate_report_config(data.get("report", {})),
            thresholds=validate_thresholds(data.get("thresholds", {})),
            link_speeds=validate_network_config(data.get("network", {})),
            output=validate_output_config(data.get("output", {})),
            atop=validate_atop_config(data.get("atop", {})),
            vcpu_count=vcpu_count,
        )
    except ConfigurationError:
        raise
    except ValidationError as e:
        raise ConfigurationError(str(e), field_name=e.field_name, value=e.value) from e
    except AttributeError as e:
        # a section given as a scalar instead of a table
        raise ConfigurationError(f"Malformed configuration section: {e}") from e
