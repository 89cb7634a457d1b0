"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING, TextIO

from artimport.adapters.api import PublicArtApiClient
from artimport.adapters.importers import (
    ALL_IMPORTERS,
    VancouverImporter,
    default_registry,
    index_by_id,
    load_source_artists,
)
from artimport.config import ConfigurationError, get_api_config, load_import_config
from artimport.domain.artist_matching import ArtistMatcher
from artimport.domain.batch_processor import BatchProcessor, DuplicatePolicy
from artimport.domain.bulk_approval import BulkApprovalWorkflow
from artimport.domain.duplicate_detection import DuplicateDetector
from artimport.domain.errors import ApiError
from artimport.domain.model import DEFAULT_APPROVAL_CHUNK_SIZE, ApprovalFilters, SessionState
from artimport.reporting import (
    ProgressLogger,
    ReportContext,
    default_report_path,
    display_bulk_approval,
    display_dry_run_report,
    display_results,
    display_status,
    display_validation_results,
    generate_dry_run_report,
    save_detailed_report,
    save_dry_run_report,
    save_new_artwork_report,
)

if TYPE_CHECKING:
    from pathlib import Path

    from artimport.adapters.api import HealthResponse
    from artimport.adapters.importers import ImporterRegistry
    from artimport.config import ApiConfig, ImportConfig
    from artimport.domain.cancellation import CancellationToken
    from artimport.domain.model import BulkApprovalResult, ProcessingSession, SourceArtist
    from artimport.domain.ports import ImporterAdapter

type ApiClientFactory = Callable[[ApiConfig], PublicArtApiClient]
type Prompt = Callable[[str], str]

log = getLogger(__name__)

CONFIRMATION_WORD = "YES"
LARGE_BATCH_SIZE = 100
SMALL_BATCH_SIZE = 5
LARGE_DUPLICATE_RADIUS = 500.0


def _default_client(api_config: ApiConfig) -> PublicArtApiClient:
    return PublicArtApiClient(config=api_config)


@dataclass(slots=True, frozen=True)
class ConfigSources:
    """Where configuration comes from; resolved per importer so its defaults apply."""

    overrides: Mapping[str, object | None] = field(default_factory=dict[str, object | None])
    config_file: Path | None = None
    environ: Mapping[str, str] | None = None

    def load(self, importer_defaults: Mapping[str, object] | None = None) -> ImportConfig:
        return load_import_config(
            overrides=self.overrides,
            config_file=self.config_file,
            importer_defaults=importer_defaults,
            environ=self.environ,
        )


@dataclass(slots=True, frozen=True)
class ImportRequest:
    input_file: Path
    importer: str = "generic"
    source: str | None = None
    output: Path | None = None
    dry_run: bool = False
    offset: int = 0
    limit: int | None = None
    continue_on_error: bool = True
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP
    artist_data: Path | None = None
    new_artwork_report: Path | None = None


@dataclass(slots=True, frozen=True)
class ImportOutcome:
    importer: str
    session: ProcessingSession
    report_path: Path
    summary_path: Path | None = None


@dataclass(slots=True, frozen=True)
class StatusReport:
    config: ImportConfig
    health: HealthResponse | None = None
    health_error: str | None = None
    checked_health: bool = False
    advice: tuple[str, ...] = ()


# Import, validate, dry-run


async def run_import(
    request: ImportRequest,
    sources: ConfigSources | None = None,
    *,
    registry: ImporterRegistry | None = None,
    client_factory: ApiClientFactory = _default_client,
    cancellation: CancellationToken | None = None,
    out: TextIO | None = None,
) -> list[ImportOutcome]:
    """Run one importer (or every registered importer for ``all``) over the input file."""

    return await _run(
        request,
        sources or ConfigSources(),
        mode="dry-run" if request.dry_run else "import",
        registry=registry,
        client_factory=client_factory,
        cancellation=cancellation,
        out=out,
    )


async def run_validation(
    request: ImportRequest,
    sources: ConfigSources | None = None,
    *,
    registry: ImporterRegistry | None = None,
    client_factory: ApiClientFactory = _default_client,
    cancellation: CancellationToken | None = None,
    out: TextIO | None = None,
) -> list[ImportOutcome]:
    return await _run(
        replace(request, dry_run=True),
        sources or ConfigSources(),
        mode="validation",
        registry=registry,
        client_factory=client_factory,
        cancellation=cancellation,
        out=out,
    )


async def run_dry_run(
    request: ImportRequest,
    sources: ConfigSources | None = None,
    *,
    registry: ImporterRegistry | None = None,
    client_factory: ApiClientFactory = _default_client,
    cancellation: CancellationToken | None = None,
    out: TextIO | None = None,
) -> list[ImportOutcome]:
    return await _run(
        replace(request, dry_run=True),
        sources or ConfigSources(),
        mode="dry-run",
        registry=registry,
        client_factory=client_factory,
        cancellation=cancellation,
        out=out,
    )


async def _run(
    request: ImportRequest,
    sources: ConfigSources,
    *,
    mode: str,
    registry: ImporterRegistry | None,
    client_factory: ApiClientFactory,
    cancellation: CancellationToken | None,
    out: TextIO | None,
) -> list[ImportOutcome]:
    registry = registry or default_registry()
    adapters = _select_adapters(registry, request.importer)
    # Configuration problems surface before any file or network I/O.
    configs = [_config_for(adapter, sources, dry_run=request.dry_run) for adapter in adapters]

    source_artists: list[SourceArtist] = []
    if request.artist_data is not None:
        source_artists = load_source_artists(request.artist_data)

    log.info(
        "Starting %s: importer=%s, input=%s, offset=%s, limit=%s",
        mode,
        request.importer,
        request.input_file,
        request.offset,
        request.limit,
    )
    outcomes: list[ImportOutcome] = []
    for adapter, config in zip(adapters, configs, strict=True):
        if cancellation is not None and cancellation.cancelled:
            break
        if source_artists and isinstance(adapter, VancouverImporter):
            adapter = replace(adapter, artist_lookup=index_by_id(source_artists))
        session = await _process(
            adapter,
            config,
            request,
            source_artists=source_artists,
            client_factory=client_factory,
            cancellation=cancellation,
        )
        report_path = _report_path(request, mode, adapter.name, multiple=len(adapters) > 1)
        outcomes.append(
            _report(
                session,
                request,
                mode=mode,
                adapter=adapter,
                config=config,
                path=report_path,
                out=out,
            )
        )
        if session.state is SessionState.CANCELLED:
            break

    if request.new_artwork_report is not None and mode == "import":
        # One file for the whole run so every importer's submissions are listed.
        save_new_artwork_report(
            [outcome.session for outcome in outcomes],
            request.new_artwork_report,
            mode=mode,
            frontend_base=configs[0].frontend_base,
        )

    log.info("Finished %s: %s session(s)", mode, len(outcomes))
    return outcomes


def _select_adapters(registry: ImporterRegistry, name: str) -> list[ImporterAdapter]:
    validation = registry.validate_importer(name)
    if not validation.valid:
        suggestions = ", ".join(validation.suggestions)
        raise ConfigurationError(f"{validation.message} Did you mean: {suggestions}?")
    if name == ALL_IMPORTERS:
        return registry.adapters()
    adapter = registry.get(name)
    if adapter is None:
        raise ConfigurationError(registry.help_message())
    return [adapter]


def _config_for(
    adapter: ImporterAdapter, sources: ConfigSources, *, dry_run: bool
) -> ImportConfig:
    config = sources.load(importer_defaults=adapter.default_config)
    return config.with_dry_run() if dry_run else config


async def _process(
    adapter: ImporterAdapter,
    config: ImportConfig,
    request: ImportRequest,
    *,
    source_artists: list[SourceArtist],
    client_factory: ApiClientFactory,
    cancellation: CancellationToken | None,
) -> ProcessingSession:
    raw_records = adapter.load(request.input_file)
    log.info(
        "Loaded %s record(s) from %s using %s",
        len(raw_records),
        request.input_file,
        adapter.name,
    )

    async with client_factory(get_api_config(config)) as api:
        processor = BatchProcessor(
            adapter=adapter,
            config=config,
            detector=DuplicateDetector(
                artworks=api,
                radius_meters=config.duplicate_radius,
                similarity_threshold=config.similarity_threshold,
            ),
            artists=ArtistMatcher(directory=api, frontend_base=config.frontend_base),
            gateway=None if config.dry_run else api,
            source_artists=source_artists,
            duplicate_policy=request.duplicate_policy,
            listeners=(ProgressLogger(),),
        )
        return await processor.process_data(
            raw_records,
            source=request.source,
            offset=request.offset,
            limit=request.limit,
            continue_on_error=request.continue_on_error,
            cancellation=cancellation,
        )


def _report_path(request: ImportRequest, mode: str, importer: str, *, multiple: bool) -> Path:
    if request.output is None:
        kind = importer if mode == "import" else mode
        if multiple and mode != "import":
            kind = f"{importer}-{mode}"
        return default_report_path(kind)
    if multiple:
        return request.output.with_name(f"{request.output.stem}-{importer}{request.output.suffix}")
    return request.output


def _summary_path(path: Path) -> Path:
    return path.with_name(f"{path.stem}-summary{path.suffix}")


def _report(
    session: ProcessingSession,
    request: ImportRequest,
    *,
    mode: str,
    adapter: ImporterAdapter,
    config: ImportConfig,
    path: Path,
    out: TextIO | None,
) -> ImportOutcome:
    summary_path: Path | None = None
    if mode == "dry-run":
        report = generate_dry_run_report(session)
        display_dry_run_report(report, out=out)
        summary_path = save_dry_run_report(report, _summary_path(path))
    elif mode == "validation":
        display_validation_results(session, out=out)
    else:
        display_results(session, out=out)

    # Every mode gets the full report; dry runs also keep the short summary beside it.
    context = ReportContext(
        importer=adapter.name,
        input_file=str(request.input_file),
        mode=mode,
        config=config,
        options={
            "limit": request.limit,
            "offset": request.offset,
            "stop_on_error": not request.continue_on_error,
            "source": request.source,
            "duplicate_policy": str(request.duplicate_policy),
        },
    )
    save_detailed_report(session, path, context, frontend_base=config.frontend_base)
    return ImportOutcome(
        importer=adapter.name, session=session, report_path=path, summary_path=summary_path
    )


# Bulk approval


def prompt_confirmation(result: BulkApprovalResult, *, prompt: Prompt = input) -> bool:
    answer = prompt(
        f"About to approve {result.found} pending submission(s). "
        f'Type "{CONFIRMATION_WORD}" to continue: '
    )
    return answer.strip() == CONFIRMATION_WORD


async def run_bulk_approve(
    sources: ConfigSources | None = None,
    *,
    source: str | None = None,
    user_token: str | None = None,
    max_submissions: int | None = None,
    chunk_size: int | None = None,
    dry_run: bool = False,
    auto_confirm: bool = False,
    client_factory: ApiClientFactory = _default_client,
    prompt: Prompt = input,
    out: TextIO | None = None,
) -> BulkApprovalResult:
    config = (sources or ConfigSources()).load()
    if not dry_run and not config.admin_token:
        raise ConfigurationError(
            "Bulk approval requires an admin token (--admin-token or ARTIMPORT_ADMIN_TOKEN)"
        )
    filters = ApprovalFilters(
        source=source,
        user_token=user_token,
        max_submissions=max_submissions,
        chunk_size=chunk_size or DEFAULT_APPROVAL_CHUNK_SIZE,
    )
    log.info(
        "Starting bulk approval: source=%s, max=%s, chunk_size=%s, dry_run=%s",
        source,
        max_submissions,
        filters.chunk_size,
        dry_run,
    )

    async with client_factory(get_api_config(config)) as api:
        workflow = BulkApprovalWorkflow(
            queue=api,
            confirm=lambda pending: prompt_confirmation(pending, prompt=prompt),
        )
        result = await workflow.run(filters, dry_run=dry_run, auto_confirm=auto_confirm)

    display_bulk_approval(result, filters=filters, out=out)
    log.info(
        "Finished bulk approval: approved=%s, rejected=%s, errors=%s",
        result.approved,
        result.rejected,
        len(result.errors),
    )
    return result


# Status


def configuration_advice(config: ImportConfig) -> tuple[str, ...]:
    advice: list[str] = []
    if config.uses_default_token:
        advice.append(
            "Using the default mass-import token; set ARTIMPORT_TOKEN or --token "
            "to attribute submissions to your account"
        )
    if config.batch_size > LARGE_BATCH_SIZE:
        advice.append(
            f"Batch size {config.batch_size} is above {LARGE_BATCH_SIZE}; "
            "large batches make progress harder to follow and resume"
        )
    elif config.batch_size < SMALL_BATCH_SIZE:
        advice.append(
            f"Batch size {config.batch_size} is below {SMALL_BATCH_SIZE}; "
            "imports will be slow"
        )
    if config.duplicate_radius > LARGE_DUPLICATE_RADIUS:
        advice.append(
            f"Duplicate radius {config.duplicate_radius:g} m is above "
            f"{LARGE_DUPLICATE_RADIUS:g} m; unrelated artworks may be flagged as duplicates"
        )
    return tuple(advice)


async def check_status(
    sources: ConfigSources | None = None,
    *,
    config_only: bool = False,
    client_factory: ApiClientFactory = _default_client,
    out: TextIO | None = None,
) -> StatusReport:
    config = (sources or ConfigSources()).load()
    health: HealthResponse | None = None
    health_error: str | None = None
    if not config_only:
        async with client_factory(get_api_config(config)) as api:
            try:
                health = await api.health()
            except ApiError as exc:
                log.warning("API health check failed: %s", exc)
                health_error = str(exc)

    status = StatusReport(
        config=config,
        health=health,
        health_error=health_error,
        checked_health=not config_only,
        advice=configuration_advice(config),
    )
    display_status(status, out=out)
    return status

