"""Tests for the batch CAPTCHA auditor."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from form_automation.audit import AuditStore, CaptchaAuditor
from form_automation.audit.auditor import dedupe_records
from form_automation.exceptions import NavigationError
from form_automation.models import AuditRecord, CaptchaCheck, CaptchaType, RepresentativeInfo


def rep(bioguide_id: str) -> RepresentativeInfo:
    return RepresentativeInfo(
        bioguide_id=bioguide_id,
        name=f"Rep {bioguide_id}",
        contact_form_url=f"https://{bioguide_id.lower()}.house.gov/contact",
    )


def record(bioguide_id: str, **kwargs) -> AuditRecord:
    return AuditRecord(
        bioguide_id=bioguide_id,
        name=f"Rep {bioguide_id}",
        form_url=f"https://{bioguide_id.lower()}.house.gov/contact",
        loaded_successfully=True,
        **kwargs,
    )


@pytest.fixture
def store(tmp_path):
    return AuditStore(tmp_path / "results.json", tmp_path / "checkpoint.json")


@pytest.fixture
def perception():
    perception = MagicMock()
    perception.check_captcha = AsyncMock(return_value=CaptchaCheck(has_captcha=False, confidence=0.9))
    return perception


def make_auditor(mock_driver, perception, store, tmp_path, reps, save_every=10):
    directory = MagicMock()
    directory.find_with_forms.return_value = reps
    return CaptchaAuditor(
        driver=mock_driver,
        perception=perception,
        directory=directory,
        store=store,
        screenshot_dir=tmp_path / "shots",
        save_every=save_every,
        delay_seconds=0,
    )


def audited_urls(mock_driver) -> list[str]:
    return [c.args[1] for c in mock_driver.navigate.await_args_list]


class TestRunAudit:
    """Tests for CaptchaAuditor.run_audit."""

    @pytest.mark.asyncio
    async def test_full_run(self, mock_driver, perception, store, tmp_path):
        perception.check_captcha.side_effect = [
            CaptchaCheck(has_captcha=True, captcha_type=CaptchaType.RECAPTCHA, confidence=0.95),
            CaptchaCheck(has_captcha=False, confidence=0.9),
        ]
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B")])

        summary = await auditor.run_audit()

        assert summary.total == 2
        assert summary.with_captcha == 1
        assert summary.without_captcha == 1
        assert summary.results[0].captcha_type == CaptchaType.RECAPTCHA
        assert mock_driver.released == 2
        assert store.load_results() == summary.results
        assert not store.checkpoint_file.exists()

        shot_paths = [c.kwargs["path"] for c in mock_driver.screenshot.await_args_list]
        assert shot_paths == [tmp_path / "shots" / "A.png", tmp_path / "shots" / "B.png"]

    @pytest.mark.asyncio
    async def test_resume_processes_only_remaining(self, mock_driver, perception, store, tmp_path):
        """Test a resumed run audits only C and ends with A, B and C once each."""
        store.save_results([record("A"), record("B")])
        store.save_checkpoint({"A", "B"})
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B"), rep("C")])

        summary = await auditor.run_audit(resume=True)

        assert audited_urls(mock_driver) == ["https://c.house.gov/contact"]
        assert [r.bioguide_id for r in summary.results] == ["A", "B", "C"]
        assert summary.total == 3
        assert not store.checkpoint_file.exists()

    @pytest.mark.asyncio
    async def test_resume_reaudits_checkpointed_without_record(self, mock_driver, perception, store, tmp_path):
        """Test targets checkpointed after the last results save are audited again."""
        store.save_results([record("A")])
        store.save_checkpoint({"A", "B"})
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B"), rep("C")])

        summary = await auditor.run_audit(resume=True)

        assert audited_urls(mock_driver) == ["https://b.house.gov/contact", "https://c.house.gov/contact"]
        assert [r.bioguide_id for r in summary.results] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_without_resume_ignores_checkpoint(self, mock_driver, perception, store, tmp_path):
        store.save_results([record("A")])
        store.save_checkpoint({"A"})
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B")])

        summary = await auditor.run_audit()

        assert len(audited_urls(mock_driver)) == 2
        assert summary.total == 2

    @pytest.mark.asyncio
    async def test_failure_recorded_and_batch_continues(self, mock_driver, perception, store, tmp_path):
        mock_driver.navigate.side_effect = [NavigationError("https://a.house.gov/contact", "HTTP 503"), None]
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B")])

        summary = await auditor.run_audit()

        assert summary.failed_to_load == 1
        assert summary.without_captcha == 1
        failed = summary.results[0]
        assert failed.loaded_successfully is False
        assert "HTTP 503" in failed.error
        assert mock_driver.released == 2

    @pytest.mark.asyncio
    async def test_limit(self, mock_driver, perception, store, tmp_path):
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B"), rep("C")])

        summary = await auditor.run_audit(limit=2)

        assert summary.total == 2

    @pytest.mark.asyncio
    async def test_checkpoint_written_per_target(self, mock_driver, perception, store, tmp_path):
        """Test the checkpoint grows after every target and results every N."""
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A"), rep("B"), rep("C")], save_every=2)
        checkpoints = []
        saves = []
        save_checkpoint, save_results = store.save_checkpoint, store.save_results
        store.save_checkpoint = lambda completed: checkpoints.append(sorted(completed)) or save_checkpoint(completed)
        store.save_results = lambda records: saves.append(len(records)) or save_results(records)

        await auditor.run_audit()

        assert checkpoints == [
            ["A"],
            ["A", "B"],
            ["A", "B", "C"],
        ]
        assert saves == [2, 3]

    @pytest.mark.asyncio
    async def test_dom_hint_recorded(self, mock_driver, perception, store, tmp_path):
        mock_driver.page_html.return_value = '<div class="g-recaptcha"></div>'
        auditor = make_auditor(mock_driver, perception, store, tmp_path, [rep("A")])

        summary = await auditor.run_audit()

        assert summary.results[0].dom_captcha_hint == "recaptcha"
        assert summary.results[0].has_captcha is False


class TestAuditStore:
    """Tests for audit persistence."""

    def test_missing_files(self, store):
        assert store.load_checkpoint() == set()
        assert store.load_results() == []

    def test_corrupt_files_ignored(self, store):
        store.checkpoint_file.write_text("{not json")
        store.results_file.write_text("[]")

        assert store.load_checkpoint() == set()
        assert store.load_results() == []

    def test_clear_missing_checkpoint(self, store):
        store.clear_checkpoint()


def test_dedupe_records_keeps_latest():
    records = [record("A", has_captcha=False), record("B"), record("A", has_captcha=True)]

    deduped = dedupe_records(records)

    assert [r.bioguide_id for r in deduped] == ["B", "A"]
    assert deduped[1].has_captcha is True
