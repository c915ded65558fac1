"""Lookup tables from source/target names to adapter factories.

Adding a source or a target means writing a factory and registering it
here; the sync engine only sees the Fetcher and Uploader contracts.
"""

from collections.abc import Callable

from timesheet_sync.client.base import BaseClientOpts, Fetcher, Uploader
from timesheet_sync.client.clockify import ClockifyClient
from timesheet_sync.client.harvest import HarvestClient
from timesheet_sync.client.tempo import TempoClient
from timesheet_sync.client.timewarrior import TimewarriorClient
from timesheet_sync.client.toggl import TogglClient
from timesheet_sync.config import Config, compile_pattern
from timesheet_sync.errors import ConfigurationError

FetcherFactory = Callable[[Config, BaseClientOpts], Fetcher]
UploaderFactory = Callable[[Config, BaseClientOpts], Uploader]


def client_opts(config: Config) -> BaseClientOpts:
    """Common options of every adapter, read from the run configuration."""
    return BaseClientOpts(
        timeout=config.timeout,
        tags_as_tasks_regex=config.pattern("tags_as_tasks_regex"),
    )


def _clockify(config: Config, opts: BaseClientOpts) -> Fetcher:
    section = config.section("clockify")
    return ClockifyClient(
        api_key=config.require_token("clockify"),
        workspace=section.get("workspace"),
        base_url=section.get("url") or ClockifyClient.DEFAULT_URL,
        opts=opts,
    )


def _harvest(config: Config, opts: BaseClientOpts) -> Fetcher:
    return HarvestClient(
        api_key=config.require_token("harvest"),
        account=config.require("harvest", "account"),
        base_url=config.section("harvest").get("url") or HarvestClient.DEFAULT_URL,
        opts=opts,
    )


def _tempo(config: Config, opts: BaseClientOpts) -> TempoClient:
    return TempoClient(
        base_url=config.require("tempo", "url"),
        username=config.require("tempo", "username"),
        password=config.require_token("tempo"),
        opts=opts,
    )


def _timewarrior(config: Config, opts: BaseClientOpts) -> Fetcher:
    section = config.section("timewarrior")
    client_regex = compile_pattern(config.require("timewarrior", "client_tag_regex"), "timewarrior.client_tag_regex")
    project_regex = compile_pattern(config.require("timewarrior", "project_tag_regex"), "timewarrior.project_tag_regex")
    return TimewarriorClient(
        client_tag_regex=client_regex,
        project_tag_regex=project_regex,
        command=section.get("command") or "timew",
        arguments=section.get("arguments") or [],
        unbillable_tag=section.get("unbillable_tag") or "unbillable",
        opts=opts,
    )


def _toggl(config: Config, opts: BaseClientOpts) -> Fetcher:
    return TogglClient(
        api_key=config.require_token("toggl"),
        workspace=config.require("toggl", "workspace"),
        base_url=config.section("toggl").get("url") or TogglClient.DEFAULT_URL,
        opts=opts,
    )


SOURCES: dict[str, FetcherFactory] = {
    "clockify": _clockify,
    "harvest": _harvest,
    "tempo": _tempo,
    "timewarrior": _timewarrior,
    "toggl": _toggl,
}

TARGETS: dict[str, UploaderFactory] = {
    "tempo": _tempo,
}


def validate_route(source: str | None, target: str | None) -> None:
    """Check that a sync from ``source`` to ``target`` is possible.

    Raises:
        ConfigurationError: If either is missing or unknown, or they match.
    """
    if not source:
        raise ConfigurationError("sync source must be set")
    if not target:
        raise ConfigurationError("sync target must be set")
    if source == target:
        raise ConfigurationError("sync source cannot match the target")
    if source not in SOURCES:
        raise ConfigurationError(f"'{source}' is not part of the supported sources {sorted(SOURCES)}")
    if target not in TARGETS:
        raise ConfigurationError(f"'{target}' is not part of the supported targets {sorted(TARGETS)}")


def get_fetcher(name: str, config: Config) -> Fetcher:
    """Build the fetcher registered as ``name``.

    Raises:
        ConfigurationError: If no such source exists or it is misconfigured.
    """
    factory = SOURCES.get(name)
    if factory is None:
        raise ConfigurationError(f"'{name}' is not part of the supported sources {sorted(SOURCES)}")
    return factory(config, client_opts(config))


def get_uploader(name: str, config: Config) -> Uploader:
    """Build the uploader registered as ``name``.

    Raises:
        ConfigurationError: If no such target exists or it is misconfigured.
    """
    factory = TARGETS.get(name)
    if factory is None:
        raise ConfigurationError(f"'{name}' is not part of the supported targets {sorted(TARGETS)}")
    return factory(config, client_opts(config))
