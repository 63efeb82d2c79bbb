"""Batch CAPTCHA audit across every known contact form.

The audit is sequential and resumable. The checkpoint is written after every
target; the results file every ``save_every`` targets and at the end. On
resume a target only counts as done when it is both checkpointed and present
in the saved results, so targets checkpointed after the last results save are
audited again rather than lost.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from form_automation.audit.store import AuditStore
from form_automation.browser import BrowserDriver
from form_automation.config import Settings, get_settings
from form_automation.directory import LegislatorDirectory
from form_automation.integrations.claude import VisionClient
from form_automation.models import AnalyzerConfig, AuditRecord, AuditSummary, BrowserOptions, RepresentativeInfo
from form_automation.perception import CaptchaDetector, FieldPerception

logger = logging.getLogger(__name__)

AUDIT_PAGE_TIMEOUT_MS = 30000

ProgressCallback = Callable[[int, int, AuditRecord], None]


def dedupe_records(records: list[AuditRecord]) -> list[AuditRecord]:
    """One record per bioguide ID; the latest record of each wins."""
    by_id: dict[str, AuditRecord] = {}
    for record in records:
        by_id.pop(record.bioguide_id, None)
        by_id[record.bioguide_id] = record
    return list(by_id.values())


class CaptchaAuditor:
    """Checks contact forms for CAPTCHAs with a lightweight vision prompt.

    Usage:
        auditor = CaptchaAuditor(driver, perception, directory, store, screenshot_dir)
        summary = await auditor.run_audit(limit=10, resume=True)
    """

    def __init__(
        self,
        driver: BrowserDriver,
        perception: FieldPerception,
        directory: LegislatorDirectory,
        store: AuditStore,
        screenshot_dir: str | Path,
        save_every: int = 10,
        delay_seconds: float = 0.5,
        detector: CaptchaDetector | None = None,
    ) -> None:
        self.driver = driver
        self.perception = perception
        self.directory = directory
        self.store = store
        self.screenshot_dir = Path(screenshot_dir)
        self.save_every = save_every
        self.delay_seconds = delay_seconds
        self.detector = detector or CaptchaDetector()

    async def audit_one(self, rep: RepresentativeInfo) -> AuditRecord:
        """Audit a single form; failures are recorded, never raised."""
        record = AuditRecord(
            bioguide_id=rep.bioguide_id,
            name=rep.name,
            form_url=rep.contact_form_url,
        )

        try:
            async with self.driver.session(AUDIT_PAGE_TIMEOUT_MS) as page:
                await self.driver.navigate(page, rep.contact_form_url)
                record.loaded_successfully = True

                screenshot = await self.driver.screenshot(
                    page,
                    full_page=True,
                    path=self.screenshot_dir / f"{rep.bioguide_id}.png",
                )

                detected = self.detector.detect_in_html(await self.driver.page_html(page))
                if detected is not None:
                    record.dom_captcha_hint = detected.vendor

                check = await self.perception.check_captcha(screenshot)
                record.has_captcha = check.has_captcha
                record.captcha_type = check.captcha_type
                record.confidence = check.confidence
        except Exception as e:
            logger.warning(f"Audit of {rep.name} ({rep.bioguide_id}) failed: {e}")
            record.error = str(e)

        return record

    async def run_audit(
        self,
        limit: int | None = None,
        resume: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> AuditSummary:
        """Audit every representative with a contact form.

        Args:
            limit: Only audit the first N pending forms
            resume: Continue from the last checkpoint and saved results
            on_progress: Called with (processed, pending, record) after each target

        Returns:
            AuditSummary over previously saved and newly audited records
        """
        all_reps = self.directory.find_with_forms()
        logger.info(f"Found {len(all_reps)} representatives with contact forms")

        records: list[AuditRecord] = []
        completed: set[str] = set()
        if resume:
            records = dedupe_records(self.store.load_results())
            saved_ids = {r.bioguide_id for r in records}
            completed = self.store.load_checkpoint() & saved_ids
            if completed:
                logger.info(f"Resuming from checkpoint: {len(completed)} already completed")

        pending = [r for r in all_reps if r.bioguide_id not in completed]
        if limit and limit > 0:
            pending = pending[:limit]
        logger.info(f"Will audit {len(pending)} forms")

        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

        for processed, rep in enumerate(pending, start=1):
            logger.info(f"[{processed}/{len(pending)}] Checking {rep.name} ({rep.bioguide_id})")
            record = await self.audit_one(rep)

            records = [r for r in records if r.bioguide_id != rep.bioguide_id]
            records.append(record)
            completed.add(rep.bioguide_id)
            self.store.save_checkpoint(completed)

            if processed % self.save_every == 0:
                self.store.save_results(records)
                logger.info(f"Checkpoint saved: {processed} forms processed")

            if on_progress is not None:
                on_progress(processed, len(pending), record)

            if self.delay_seconds and processed < len(pending):
                await asyncio.sleep(self.delay_seconds)

        summary = self.store.save_results(records)
        self.store.clear_checkpoint()

        logger.info(
            f"Audit complete: {summary.total} forms, {summary.with_captcha} with CAPTCHA, "
            f"{summary.without_captcha} without, {summary.failed_to_load} failed to load"
        )
        return summary


async def run_audit(
    limit: int | None = None,
    resume: bool = False,
    headless: bool | None = None,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
) -> AuditSummary:
    """Run a CAPTCHA audit with a browser owned for the duration of the call."""
    settings = settings or get_settings()
    options = BrowserOptions(
        headless=settings.playwright_headless if headless is None else headless,
        slow_mo=settings.playwright_slow_mo,
        timeout=settings.browser_timeout,
        max_contexts=1,
    )
    vision = VisionClient(
        AnalyzerConfig(
            api_key=settings.anthropic_api_key,
            model=settings.model_id,
            max_tokens=settings.anthropic_max_tokens,
            timeout=settings.anthropic_timeout,
        )
    )

    async with BrowserDriver(options) as driver:
        auditor = CaptchaAuditor(
            driver=driver,
            perception=FieldPerception(vision, driver),
            directory=LegislatorDirectory(settings.legislators_file),
            store=AuditStore(settings.audit_results_file, settings.audit_checkpoint_file),
            screenshot_dir=settings.audit_screenshot_dir,
            save_every=settings.audit_save_every,
            delay_seconds=settings.audit_delay_seconds,
        )
        return await auditor.run_audit(limit=limit, resume=resume, on_progress=on_progress)
