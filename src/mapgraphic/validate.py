"""Validation layer for config, geography data and map kinds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .config import AppConfig
from .map_overrides import load_map_overrides, with_override
from .map_types import TypeConfigFactory, resolve_map_type
from .models import GeoData, TypeConfig
from .topology import TopologyError, load_geodata


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Checks that the configured map kind can render against the loaded data."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self, *, strict: bool = False) -> ValidationReport:
        report = ValidationReport()
        self._validate_config_paths(report)
        factory = self._validate_map_kind(report)
        data = self._validate_geodata(report)
        if factory is None or data is None:
            return report
        for label, width in self._probe_widths():
            type_config = factory(width, label == "mobile")
            self._validate_layers(report, type_config, data, label=label)
            self._validate_label_ids(report, type_config, data, label=label, strict=strict)
        return report

    def _probe_widths(self) -> tuple[tuple[str, int], ...]:
        breakpoint_px = self.cfg.map.mobile_breakpoint
        desktop = max(self.cfg.map.default_width, breakpoint_px + 1)
        return (("mobile", max(breakpoint_px, 1)), ("desktop", desktop))

    def _validate_config_paths(self, report: ValidationReport) -> None:
        for path in self.cfg.paths.required_input_files:
            if not path.exists():
                report.add_error(f"Missing required input file: {path}")
        overrides = self.cfg.paths.map_overrides
        if overrides is not None and not overrides.exists():
            report.add_info(f"No map overrides file at {overrides}; using built-in map kinds")

    def _validate_map_kind(self, report: ValidationReport) -> TypeConfigFactory | None:
        try:
            factory = resolve_map_type(self.cfg.map.kind)
        except ValueError as exc:
            report.add_error(str(exc))
            return None
        if self.cfg.paths.map_overrides is None:
            return factory
        try:
            overrides = load_map_overrides(self.cfg.paths.map_overrides)
        except (OSError, ValueError) as exc:
            report.add_error(f"Failed parsing map overrides: {exc}")
            return factory
        if overrides:
            report.add_info(f"Loaded map overrides for: {', '.join(sorted(overrides))}")
        return with_override(factory, overrides.get(self.cfg.map.kind))

    def _validate_geodata(self, report: ValidationReport) -> GeoData | None:
        try:
            data = load_geodata(
                self.cfg.paths.geodata,
                timeout_s=self.cfg.fetch.request_timeout_s,
                user_agent=self.cfg.fetch.user_agent,
            )
        except TopologyError as exc:
            report.add_error(f"Failed loading geography data: {exc}")
            return None
        summary = ", ".join(f"{name}={len(group)}" for name, group in sorted(data.items()))
        report.add_info(f"Loaded geography groups: {summary or '(none)'}")
        return data

    def _validate_layers(
        self,
        report: ValidationReport,
        type_config: TypeConfig,
        data: GeoData,
        *,
        label: str,
    ) -> None:
        missing = [layer for layer in type_config.required_layers if layer not in data]
        if missing:
            report.add_error(
                f"Map kind '{type_config.name}' ({label}) needs missing layers: {', '.join(missing)}"
            )
        for layer in type_config.labels:
            group = data.get(layer)
            if group is None:
                continue
            unlabeled = [f.id for f in group if f.geometry is None]
            if unlabeled:
                report.add_error(
                    f"Layer '{layer}' has features without geometry to label: "
                    f"{_format_code_list([str(v) for v in unlabeled])}"
                )

    def _validate_label_ids(
        self,
        report: ValidationReport,
        type_config: TypeConfig,
        data: GeoData,
        *,
        label: str,
        strict: bool,
    ) -> None:
        for layer, nudges in type_config.label_nudges.items():
            if layer not in type_config.labels or layer not in data:
                continue
            unknown = sorted(set(nudges.by_id) - data[layer].ids)
            if unknown:
                self._add_quality_issue(
                    report,
                    f"Label nudges for '{layer}' ({label}) name unknown ids: {_format_code_list(unknown)}",
                    strict=strict,
                )
        for layer, subs in type_config.label_subs.items():
            if layer not in type_config.labels or layer not in data:
                continue
            unknown = sorted(set(subs) - data[layer].ids)
            if unknown:
                self._add_quality_issue(
                    report,
                    f"Label substitutions for '{layer}' ({label}) name unknown ids: "
                    f"{_format_code_list(unknown)}",
                    strict=strict,
                )

    @staticmethod
    def _add_quality_issue(report: ValidationReport, msg: str, *, strict: bool) -> None:
        if strict:
            report.add_error(msg)
        else:
            report.add_warning(msg)


def _format_code_list(values: list[str], limit: int = 12) -> str:
    if len(values) <= limit:
        return ", ".join(values)
    shown = ", ".join(values[:limit])
    return f"{shown}, ... (+{len(values) - limit} more)"


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
