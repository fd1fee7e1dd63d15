"""Tests for the mint reconciliation CLI."""

from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import timedelta

import pytest
import structlog

from scripts import run_mint_reconciliation
from src.bootstrap.minting import MintingComponents, build_minting_components
from src.config.minting_config import TEST_MINTING_CONFIG
from src.infrastructure.stubs import AssetStoreStub, AuditLogStub
from tests.helpers import FakeTimeAuthority
from tests.helpers.assets import make_minting_asset


@pytest.fixture
def components(
    monkeypatch: pytest.MonkeyPatch,
    asset_store: AssetStoreStub,
    audit_log: AuditLogStub,
    fake_time_authority: FakeTimeAuthority,
) -> Iterator[MintingComponents]:
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    components = build_minting_components(
        config=TEST_MINTING_CONFIG,
        asset_store=asset_store,
        audit_log=audit_log,
        time_authority=fake_time_authority,
    )
    monkeypatch.setattr(
        run_mint_reconciliation, "build_minting_components", lambda: components
    )
    monkeypatch.setattr(run_mint_reconciliation, "configure_logging", lambda *_: None)
    yield components
    structlog.reset_defaults()


class TestRun:
    @pytest.mark.asyncio
    async def test_json_report(
        self,
        components: MintingComponents,
        asset_store: AssetStoreStub,
        fake_time_authority: FakeTimeAuthority,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        await asset_store.save(
            make_minting_asset(
                "clip-1",
                lease_expires_at=fake_time_authority.utcnow() - timedelta(seconds=1),
            )
        )

        exit_code = await run_mint_reconciliation.run(
            limit=10, reconfirm=True, as_json=True
        )

        report = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert report["run_id"]
        assert report["sweep"]["examined"] == 1
        assert report["sweep"]["failed"] == 1
        assert report["reconfirmation"]["examined"] == 0

    @pytest.mark.asyncio
    async def test_text_report_without_reconfirmation(
        self, components: MintingComponents, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await run_mint_reconciliation.run(limit=10, reconfirm=False, as_json=False)

        output = capsys.readouterr().out
        assert "Stuck mint sweep" in output
        assert "examined: 0" in output
        assert "Fallback identifier reconfirmation" not in output


class TestMain:
    def test_rejects_non_positive_limit(
        self, components: MintingComponents, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("sys.argv", ["run_mint_reconciliation.py", "--limit", "0"])

        with pytest.raises(SystemExit) as exc_info:
            run_mint_reconciliation.main()

        assert exc_info.value.code == 2

    def test_runs_sweep(
        self,
        components: MintingComponents,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(
            "sys.argv", ["run_mint_reconciliation.py", "--json", "--skip-reconfirm"]
        )

        assert run_mint_reconciliation.main() == 0
        assert json.loads(capsys.readouterr().out)["reconfirmation"] is None
