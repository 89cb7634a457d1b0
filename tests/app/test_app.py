from __future__ import annotations

import asyncio
import io
import json
from typing import TYPE_CHECKING, cast

import pytest

from artimport.adapters.api import HealthResponse
from artimport.app import (
    ConfigSources,
    ImportRequest,
    check_status,
    configuration_advice,
    prompt_confirmation,
    run_bulk_approve,
    run_dry_run,
    run_import,
    run_validation,
)
from artimport.config import ConfigurationError, ImportConfig
from artimport.domain.cancellation import CancellationToken
from artimport.domain.errors import ApiError
from artimport.domain.model import (
    BulkApprovalResult,
    ExistingArtwork,
    Location,
    PendingSubmission,
    SessionState,
)
from tests.support.fakes import FakeApi, FakeArtworkDirectory, FakeReviewQueue

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from artimport.app import ApiClientFactory

RECORDS = [
    {
        "id": "r1",
        "lat": 49.2827,
        "lon": -123.1207,
        "title": "Digital Orca",
        "artists": ["Douglas Coupland"],
    },
    {"id": "r2", "lat": 49.3000, "lon": -123.1400, "title": "Gate to the Northwest Passage"},
]
EXISTING = ExistingArtwork(
    id="existing-1",
    location=Location(lat=49.30003, lon=-123.14002),
    title="Gate to the Northwest Passage",
)


def _sources(**overrides: object) -> ConfigSources:
    return ConfigSources(
        overrides={
            "api_endpoint": "https://api.test",
            "token": "test-token",
            "retry_delay": 0,
            "frontend_base": "https://art.test",
            **overrides,
        },
        environ={},
    )


def _factory(api: FakeApi) -> ApiClientFactory:
    return cast("ApiClientFactory", lambda _config: api)


def _fake_api() -> FakeApi:
    return FakeApi(artworks=FakeArtworkDirectory(artworks=[EXISTING]))


def test_run_import_submits_and_writes_report(
    tmp_path: Path, write_json: Callable[[str, object], Path]
) -> None:
    api = _fake_api()
    output = tmp_path / "report.json"
    new_artworks = tmp_path / "new.txt"
    request = ImportRequest(
        input_file=write_json("records.json", RECORDS),
        output=output,
        new_artwork_report=new_artworks,
    )
    out = io.StringIO()

    outcomes = asyncio.run(
        run_import(request, _sources(), client_factory=_factory(api), out=out)
    )

    assert len(outcomes) == 1
    outcome = outcomes[0]
    assert outcome.importer == "generic"
    assert outcome.report_path == output
    assert outcome.session.state is SessionState.COMPLETED
    assert [record.external_id for record, _ in api.gateway.submitted] == ["r1"]
    assert api.opened == 1

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["summary"]["successful_imports"] == 1
    assert payload["summary"]["skipped_duplicates"] == 1
    assert payload["parameters"]["importer"] == "generic"
    assert "test-token" not in output.read_text(encoding="utf-8")
    assert new_artworks.read_text(encoding="utf-8").splitlines()[-1] == (
        "https://art.test/artwork/artwork-1"
    )
    assert "Successful: 1" in out.getvalue()


def test_run_import_defaults_report_name_to_importer(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_json: Callable[[str, object], Path]
) -> None:
    monkeypatch.chdir(tmp_path)
    api = _fake_api()
    request = ImportRequest(input_file=write_json("records.json", RECORDS))

    outcomes = asyncio.run(
        run_import(request, _sources(), client_factory=_factory(api), out=io.StringIO())
    )

    report_path = outcomes[0].report_path
    assert report_path.name.startswith("generic-report-")
    assert (tmp_path / report_path).exists()


def test_dry_run_never_submits(tmp_path: Path, write_json: Callable[[str, object], Path]) -> None:
    api = _fake_api()
    output = tmp_path / "dry.json"
    request = ImportRequest(input_file=write_json("records.json", RECORDS), output=output)
    out = io.StringIO()

    outcomes = asyncio.run(
        run_dry_run(request, _sources(), client_factory=_factory(api), out=out)
    )

    assert api.gateway.submitted == []
    outcome = outcomes[0]
    assert outcome.session.dry_run
    assert "Dry Run Report:" in out.getvalue()

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["mode"] == "dry-run"
    assert payload["metadata"]["session_id"] == outcome.session.id
    assert payload["parameters"]["importer"] == "generic"
    assert [entry["external_id"] for entry in payload["duplicate_records"]] == ["r2"]
    assert len(payload["raw_batches"]) == 1

    assert outcome.summary_path == tmp_path / "dry-summary.json"
    summary = json.loads(outcome.summary_path.read_text(encoding="utf-8"))
    assert summary["type"] == "dry-run"
    assert summary["summary"]["valid_records"] == 1
    assert summary["summary"]["duplicate_records"] == 1


def test_import_request_with_dry_run_flag_writes_full_report(
    tmp_path: Path, write_json: Callable[[str, object], Path]
) -> None:
    api = _fake_api()
    output = tmp_path / "dry.json"
    new_artworks = tmp_path / "new.txt"
    request = ImportRequest(
        input_file=write_json("records.json", RECORDS),
        output=output,
        dry_run=True,
        new_artwork_report=new_artworks,
    )

    asyncio.run(
        run_import(request, _sources(), client_factory=_factory(api), out=io.StringIO())
    )

    assert api.gateway.submitted == []
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["mode"] == "dry-run"
    assert "raw_batches" in payload
    assert (tmp_path / "dry-summary.json").exists()
    assert not new_artworks.exists()


def test_all_importers_share_one_new_artwork_report(
    tmp_path: Path, write_json: Callable[[str, object], Path]
) -> None:
    api = _fake_api()
    output = tmp_path / "report.json"
    new_artworks = tmp_path / "new.txt"
    request = ImportRequest(
        input_file=write_json("records.json", RECORDS),
        importer="all",
        output=output,
        new_artwork_report=new_artworks,
    )

    outcomes = asyncio.run(
        run_import(request, _sources(), client_factory=_factory(api), out=io.StringIO())
    )

    assert [outcome.importer for outcome in outcomes] == ["generic", "osm", "vancouver"]
    assert [outcome.report_path.name for outcome in outcomes] == [
        "report-generic.json",
        "report-osm.json",
        "report-vancouver.json",
    ]
    assert all(outcome.report_path.exists() for outcome in outcomes)
    # Only the generic importer understands these records; the later ones create nothing.
    assert [record.external_id for record, _ in api.gateway.submitted] == ["r1"]
    urls = [
        line
        for line in new_artworks.read_text(encoding="utf-8").splitlines()
        if not line.startswith("#")
    ]
    assert urls == ["https://art.test/artwork/artwork-1"]


def test_validation_reports_mapping_errors(
    tmp_path: Path, write_json: Callable[[str, object], Path]
) -> None:
    api = _fake_api()
    output = tmp_path / "validation.json"
    records = [RECORDS[0], {"id": "broken", "lat": 49.0, "lon": -123.0}]
    request = ImportRequest(input_file=write_json("records.json", records), output=output)
    out = io.StringIO()

    outcomes = asyncio.run(
        run_validation(request, _sources(), client_factory=_factory(api), out=out)
    )

    assert api.gateway.submitted == []
    assert outcomes[0].session.summary.failed_imports == 1
    text = out.getvalue()
    assert "Valid records: 1" in text
    assert "Invalid records: 1" in text
    assert "- broken:" in text
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["mode"] == "validation"


def test_unknown_importer_fails_before_io(tmp_path: Path) -> None:
    api = _fake_api()
    request = ImportRequest(input_file=tmp_path / "absent.json", importer="vancover")

    with pytest.raises(ConfigurationError, match="Did you mean: vancouver"):
        asyncio.run(run_import(request, _sources(), client_factory=_factory(api)))

    assert api.opened == 0


def test_invalid_configuration_fails_before_io(tmp_path: Path) -> None:
    api = _fake_api()
    request = ImportRequest(input_file=tmp_path / "absent.json")

    with pytest.raises(ConfigurationError):
        asyncio.run(
            run_import(request, _sources(batch_size=0), client_factory=_factory(api))
        )

    assert api.opened == 0


def test_cancelled_token_skips_processing(
    tmp_path: Path, write_json: Callable[[str, object], Path]
) -> None:
    api = _fake_api()
    cancellation = CancellationToken()
    cancellation.cancel("stopped")
    request = ImportRequest(
        input_file=write_json("records.json", RECORDS), output=tmp_path / "r.json"
    )

    outcomes = asyncio.run(
        run_import(
            request,
            _sources(),
            client_factory=_factory(api),
            cancellation=cancellation,
            out=io.StringIO(),
        )
    )

    assert outcomes == []
    assert api.gateway.submitted == []


# Bulk approval


PENDING = [
    PendingSubmission(id="s1", tags='{"source": "osm"}', user_token="import-token"),
    PendingSubmission(id="s2", tags={"source": "vancouver"}, user_token="import-token"),
    PendingSubmission(id="s3", tags={"source": "osm"}, user_token="someone-else"),
]


def _approval_api() -> FakeApi:
    return FakeApi(queue=FakeReviewQueue(pending=list(PENDING)))


def test_bulk_approve_in_chunks() -> None:
    api = _approval_api()
    out = io.StringIO()

    result = asyncio.run(
        run_bulk_approve(
            _sources(admin_token="admin"),
            source="osm",
            chunk_size=1,
            auto_confirm=True,
            client_factory=_factory(api),
            out=out,
        )
    )

    assert result.found == 2
    assert result.approved == 2
    assert api.queue.approved_chunks == [["s1"], ["s3"]]
    assert "Source filter: osm" in out.getvalue()


def test_bulk_approve_requires_admin_token() -> None:
    api = _approval_api()

    with pytest.raises(ConfigurationError, match="admin token"):
        asyncio.run(run_bulk_approve(_sources(), client_factory=_factory(api)))

    assert api.opened == 0


def test_bulk_approve_dry_run_without_admin_token() -> None:
    api = _approval_api()

    result = asyncio.run(
        run_bulk_approve(
            _sources(),
            user_token="import-token",
            dry_run=True,
            client_factory=_factory(api),
            out=io.StringIO(),
        )
    )

    assert result.dry_run
    assert result.found == 2
    assert api.queue.approved_chunks == []


def test_bulk_approve_declined_prompt_changes_nothing() -> None:
    api = _approval_api()
    prompts: list[str] = []

    def prompt(message: str) -> str:
        prompts.append(message)
        return "no"

    result = asyncio.run(
        run_bulk_approve(
            _sources(admin_token="admin"),
            client_factory=_factory(api),
            prompt=prompt,
            out=io.StringIO(),
        )
    )

    assert not result.confirmed
    assert api.queue.approved_chunks == []
    assert "About to approve 3 pending submission(s)" in prompts[0]


@pytest.mark.parametrize(
    ("answer", "expected"),
    [("YES", True), ("  YES\n", True), ("yes", False), ("", False)],
)
def test_prompt_confirmation_requires_exact_word(
    answer: str,
    expected: bool,
) -> None:
    confirmed = prompt_confirmation(BulkApprovalResult(found=1), prompt=lambda _: answer)

    assert confirmed is expected


# Status


def test_check_status_with_healthy_api() -> None:
    api = FakeApi(health_response=HealthResponse(status="healthy", version="1.4.0"))
    out = io.StringIO()

    status = asyncio.run(check_status(_sources(), client_factory=_factory(api), out=out))

    assert status.checked_health
    assert status.health is not None
    assert status.health.status == "healthy"
    assert "Status: healthy" in out.getvalue()
    assert "Version: 1.4.0" in out.getvalue()


def test_check_status_reports_unreachable_api() -> None:
    api = FakeApi(health_error=ApiError("GET /health failed: connection refused", transient=True))
    out = io.StringIO()

    status = asyncio.run(check_status(_sources(), client_factory=_factory(api), out=out))

    assert status.health is None
    assert status.health_error is not None
    assert "connection refused" in status.health_error
    assert "Unreachable:" in out.getvalue()


def test_check_status_config_only_skips_api() -> None:
    api = FakeApi()

    status = asyncio.run(
        check_status(
            _sources(batch_size=200),
            config_only=True,
            client_factory=_factory(api),
            out=io.StringIO(),
        )
    )

    assert api.opened == 0
    assert not status.checked_health
    assert any("above 100" in item for item in status.advice)


def test_configuration_advice() -> None:
    assert configuration_advice(ImportConfig(token="mine")) == ()

    advice = configuration_advice(ImportConfig(batch_size=2, duplicate_radius=1000.0))

    assert len(advice) == 3
    assert "default mass-import token" in advice[0]
    assert "below 5" in advice[1]
    assert "1000 m" in advice[2]
