"""Per-plugin verify-then-update decision engine."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from pluginguard.app.verify.comparator import ComparisonError, TreeComparator
from pluginguard.app.verify.fetcher import ArtifactFetcher, FetchError
from pluginguard.app.verify.probe import ExistenceProbe, ProbeResult
from pluginguard.domain.artifact import is_valid_identifier
from pluginguard.domain.comparison import ComparisonReport
from pluginguard.domain.outcome import AbortReason, CounterDelta, PluginState, ProcessOutcome, RunState
from pluginguard.ports.registry import PluginRegistry, RegistryError, UpdateApplyError
from pluginguard.utils.runlog import RunLogger

SEPARATOR = "-" * 40
SUMMARY_RULE = "=" * 44
SUMMARY_SEPARATOR = "-" * 44


class DecisionEngine:
    """Decides update / skip / abort for each plugin and keeps the run counters.

    A plugin is only ever updated when its files are byte-identical to the
    published release of the installed version and the registry offers an
    update. Plugins are processed one at a time; each plugin's scratch directory
    is removed before the next one starts.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        fetcher: ArtifactFetcher,
        comparator: TreeComparator,
        logger: RunLogger,
        state: RunState,
        *,
        plugins_dir: Path,
        probe: ExistenceProbe | None = None,
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._comparator = comparator
        self._logger = logger
        self._state = state
        self._plugins_dir = plugins_dir
        self._probe = probe
        self._total_found: int | None = None

    @property
    def state(self) -> RunState:
        return self._state

    def process_all(self) -> List[ProcessOutcome]:
        try:
            plugins = list(self._registry.list_installed())
        except RegistryError as exc:
            self._logger.error(f"Could not list installed plugins: {exc}")
            self._total_found = 0
            return []
        self._total_found = len(plugins)
        self._logger.info(f"Found {len(plugins)} plugins to process...")
        self._logger.info("This process might take several minutes to complete...")
        self._logger.info(SEPARATOR)
        return [self.process_plugin(identifier) for identifier in plugins]

    def process_plugin(self, identifier: str) -> ProcessOutcome:
        log = self._logger
        log.info(f"Processing plugin: {identifier}", progress=True)
        if not is_valid_identifier(identifier):
            message = f"Plugin {identifier} not found."
            log.error(message)
            return self._aborted(identifier, AbortReason.NOT_INSTALLED, message, detail="invalid identifier")
        work_dir = self._state.scratch_dir / identifier
        try:
            outcome = self._run(identifier, work_dir)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
        self._state.apply(outcome.delta)
        if outcome.kind is not PluginState.ABORTED:
            log.info(f"Update process completed for {identifier}", progress=True)
        log.info(SEPARATOR, progress=True)
        return outcome

    def report_summary(self) -> None:
        log = self._logger
        log.info(SUMMARY_RULE)
        log.info("Update Summary:")
        log.info(SUMMARY_SEPARATOR)
        if self._total_found is not None:
            log.info(f"Total plugins found: {self._total_found}")
        log.info(f"Plugins updated: {self._state.updated}")
        log.info(f"Plugins with differences: {self._state.differing}")
        log.info(f"Plugins already up to date: {self._state.up_to_date}")
        log.info(f"Premium plugins: {self._state.premium}")
        log.info(SUMMARY_RULE)

    def _run(self, identifier: str, work_dir: Path) -> ProcessOutcome:
        log = self._logger

        # start -> version-resolved
        try:
            version = self._registry.current_version(identifier)
        except RegistryError as exc:
            message = f"Plugin {identifier} not found: {exc}"
            log.error(message)
            return self._aborted(identifier, AbortReason.NOT_INSTALLED, message, detail=str(exc))
        if version is None:
            message = f"Plugin {identifier} not found."
            log.error(message)
            return self._aborted(identifier, AbortReason.NOT_INSTALLED, message)
        log.info(f"Current version: {version}", progress=True)

        premium = self._classify(identifier, version)

        # version-resolved -> artifact-fetched
        shutil.rmtree(work_dir, ignore_errors=True)
        log.info("Downloading current version for comparison...", progress=True)
        try:
            upstream_dir = self._fetcher.fetch(identifier, version, work_dir)
        except FetchError as exc:
            message = f"Could not download {identifier} {version}: {exc}"
            log.error(message)
            return self._aborted(
                identifier, AbortReason.FETCH_FAILED, message, version=version, detail=exc.kind.value, delta=premium
            )

        # artifact-fetched -> compared
        log.info("Comparing directories...", progress=True)
        try:
            report = self._comparator.compare(self._plugins_dir / identifier, upstream_dir)
        except ComparisonError as exc:
            message = str(exc)
            log.error(message)
            return self._aborted(identifier, AbortReason.COMPARE_FAILED, message, version=version, delta=premium)

        if not report.identical:
            return self._skip_modified(identifier, version, report, premium)
        return self._decide_update(identifier, version, report, premium)

    def _classify(self, identifier: str, version: str) -> CounterDelta:
        if self._probe is None:
            return CounterDelta()
        if self._probe.probe(identifier, version) is ProbeResult.PUBLISHED:
            return CounterDelta()
        self._logger.warning(
            f"Plugin {identifier} {version} is not published in the public registry (premium or private plugin)."
        )
        return CounterDelta(premium=1)

    def _skip_modified(
        self, identifier: str, version: str, report: ComparisonReport, premium: CounterDelta
    ) -> ProcessOutcome:
        self._logger.report(report.format_text(identifier))
        message = (
            "Local plugin files differ from the published version. "
            "This might indicate custom modifications. Update aborted."
        )
        self._logger.warning(message)
        return ProcessOutcome(
            identifier=identifier,
            kind=PluginState.SKIPPED_MODIFIED,
            message=message,
            version=version,
            report=report,
            delta=premium + CounterDelta(differing=1),
        )

    def _decide_update(
        self, identifier: str, version: str, report: ComparisonReport, premium: CounterDelta
    ) -> ProcessOutcome:
        log = self._logger
        try:
            available = self._registry.update_available(identifier)
        except RegistryError as exc:
            message = f"Could not check for updates of {identifier}: {exc}"
            log.error(message)
            return self._aborted(identifier, AbortReason.REGISTRY_FAILED, message, version=version, delta=premium)

        if not available:
            message = f"Plugin {identifier} is already up to date."
            log.info(message, progress=True)
            return self._up_to_date(identifier, version, report, premium, message)

        log.info(f"Update available for {identifier}", progress=True)
        log.info("Plugin files verified. Proceeding with update...", progress=True)
        if self._state.options.dry_run:
            message = f"Would update {identifier} to version {version}"
            log.dry_run(message)
            return self._up_to_date(identifier, version, report, premium, message)

        try:
            self._registry.apply_update(identifier, version)
        except UpdateApplyError as exc:
            message = f"Update of {identifier} failed: {exc}"
            log.error(message)
            return self._aborted(
                identifier, AbortReason.UPDATE_APPLY_FAILED, message, version=version, detail=str(exc), delta=premium
            )
        message = f"Plugin {identifier} updated."
        log.info(message, progress=True)
        return ProcessOutcome(
            identifier=identifier,
            kind=PluginState.UPDATE_APPLIED,
            message=message,
            version=version,
            report=report,
            delta=premium + CounterDelta(updated=1),
        )

    def _up_to_date(
        self, identifier: str, version: str, report: ComparisonReport, premium: CounterDelta, message: str
    ) -> ProcessOutcome:
        return ProcessOutcome(
            identifier=identifier,
            kind=PluginState.SKIPPED_UP_TO_DATE,
            message=message,
            version=version,
            report=report,
            delta=premium + CounterDelta(up_to_date=1),
        )

    def _aborted(
        self,
        identifier: str,
        reason: AbortReason,
        message: str,
        *,
        version: str | None = None,
        detail: str | None = None,
        delta: CounterDelta | None = None,
    ) -> ProcessOutcome:
        return ProcessOutcome(
            identifier=identifier,
            kind=PluginState.ABORTED,
            message=message,
            version=version,
            reason=reason,
            detail=detail,
            delta=delta or CounterDelta(),
        )


__all__ = ["DecisionEngine"]
