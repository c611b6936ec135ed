"""
Insurance application wizard.

Owns the current step, the application draft and the staged enrichment
candidate for one applicant session. Enrichment and CRM sync are injected as
async callables so the session can run in-process or against a remote service.
"""

import re
from datetime import datetime, timezone
from enum import IntEnum
from typing import Awaitable, Callable, Dict, Any, List, Optional
from loguru import logger
from wizard.draft import ApplicationDraft, new_draft, STATUS_SUBMITTED, STATUS_IN_PROGRESS
from wizard.selection import FieldSelection, Suggestion

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"^[\d\s\-\(\)]{10,}$")
PHONE_DIGITS = 10


class WizardStep(IntEnum):
    ADDRESS_INTAKE = 0
    PERSONAL = 1
    COMPANY = 2
    PROPERTY = 3
    SALES = 4
    COVERAGE = 5
    BUSINESS = 6
    REVIEW = 7


TOTAL_STEPS = int(WizardStep.REVIEW)

Enricher = Callable[[str], Awaitable[Dict[str, Any]]]
Syncer = Callable[[Dict[str, Any], str], Awaitable[Any]]


def validate_personal(draft: Dict[str, Any]) -> Dict[str, str]:
    errors = {}
    if not str(draft.get("contactName") or "").strip():
        errors["contactName"] = "Name is required"

    phone = str(draft.get("contactNumber") or "")
    if not phone.strip():
        errors["contactNumber"] = "Phone number is required"
    elif not PHONE_PATTERN.match(phone.strip()):
        errors["contactNumber"] = "Please enter a valid 10-digit US phone number"
    elif len(re.sub(r"\D", "", phone)) != PHONE_DIGITS:
        errors["contactNumber"] = "Phone number must be exactly 10 digits"

    email = str(draft.get("contactEmail") or "").strip()
    if not email:
        errors["contactEmail"] = "Email is required"
    elif not EMAIL_PATTERN.match(email):
        errors["contactEmail"] = "Please enter a valid email address"
    return errors


# Steps with mandatory fields; every other step may be left blank
STEP_VALIDATORS = {
    WizardStep.PERSONAL: validate_personal,
}


async def _default_enricher(address: str) -> Dict[str, Any]:
    from graph.enrichment import run_enrichment
    return await run_enrichment(address)


async def _default_syncer(draft: Dict[str, Any], status: str):
    from graph.crm_sync import run_sync
    return await run_sync(draft, status)


class WizardSession:
    """One applicant's pass through the application wizard."""

    def __init__(self, enricher: Optional[Enricher] = None, syncer: Optional[Syncer] = None):
        self.enricher = enricher or _default_enricher
        self.syncer = syncer or _default_syncer
        self.step = WizardStep.ADDRESS_INTAKE
        self.submitted = False
        self.draft: ApplicationDraft = new_draft()
        self.enrichment: Optional[Dict[str, Any]] = None
        self.selection: Optional[FieldSelection] = None
        self.errors: Dict[str, str] = {}

    @property
    def state(self) -> str:
        return STATUS_SUBMITTED if self.submitted else self.step.name

    @property
    def progress(self) -> float:
        if self.step < WizardStep.PERSONAL:
            return 0.0
        return (self.step - 1) / TOTAL_STEPS * 100

    def update(self, **fields: Any) -> None:
        """Direct user edits to the draft."""
        self.draft.update(fields)

    async def submit_address(self, address: str) -> bool:
        """
        Address intake: fetch enrichment, stage it, and move to step 1.

        Enrichment failures never block the move; the applicant just fills
        the form manually.
        """
        if self.step != WizardStep.ADDRESS_INTAKE:
            raise RuntimeError("Address already submitted for this session")

        address = (address or "").strip()
        if not address:
            self.errors = {"address": "Address is required"}
            return False

        self.errors = {}
        self.draft["address"] = address
        self.enrichment = None
        self.selection = None

        try:
            response = await self.enricher(address)
        except Exception as e:
            logger.error(f"Enrichment failed for '{address}', continuing with manual entry: {e}")
            response = None

        if response and response.get("success") and response.get("data"):
            self.enrichment = response
            self.selection = FieldSelection(response["data"])
            logger.info(f"Staged {response.get('fieldsCount', 0)} enrichment fields for '{address}'")
        else:
            logger.info(f"No enrichment staged for '{address}'")

        self.step = WizardStep.PERSONAL
        return True

    def validate_step(self, step: Optional[int] = None) -> Dict[str, str]:
        step = self.step if step is None else WizardStep(step)
        validator = STEP_VALIDATORS.get(step)
        return validator(self.draft) if validator else {}

    def next_step(self) -> bool:
        """Advance one step if the current step's mandatory fields are valid."""
        if self.submitted or not WizardStep.PERSONAL <= self.step < WizardStep.REVIEW:
            return False

        self.errors = self.validate_step()
        if self.errors:
            logger.info(f"Step {int(self.step)} blocked: {sorted(self.errors)}")
            return False

        self.step = WizardStep(self.step + 1)
        return True

    def previous_step(self) -> bool:
        if self.submitted or self.step <= WizardStep.PERSONAL:
            return False
        self.step = WizardStep(self.step - 1)
        return True

    def suggestions(self) -> List[Suggestion]:
        """Enrichment suggestions relevant to the current step."""
        if not self.selection:
            return []
        return self.selection.fields_for_step(self.step)

    def toggle_field(self, key: str) -> bool:
        if not self.selection:
            raise KeyError(f"No enrichment data staged, cannot toggle '{key}'")
        return self.selection.toggle(key)

    def apply_enrichment(self) -> List[str]:
        if not self.selection:
            return []
        return self.selection.apply(self.draft)

    async def submit(self):
        """
        Submit from the review step.

        The session is Submitted even when the CRM write fails.
        """
        if self.submitted:
            raise RuntimeError("Application already submitted")
        if self.step != WizardStep.REVIEW:
            raise RuntimeError(f"Cannot submit from step {int(self.step)}")

        self.submitted = True
        return await self._sync(dict(self.draft), STATUS_SUBMITTED)

    async def save_and_exit(self):
        """Snapshot the draft to the CRM without touching wizard state."""
        if self.step < WizardStep.PERSONAL:
            raise RuntimeError("Nothing to save before the address is submitted")

        snapshot = dict(self.draft)
        snapshot.update({
            "applicationStatus": STATUS_IN_PROGRESS,
            "lastSavedStep": int(self.step),
            "lastSavedDate": datetime.now(timezone.utc).isoformat(),
        })
        return await self._sync(snapshot, STATUS_IN_PROGRESS)

    async def _sync(self, payload: Dict[str, Any], status: str):
        try:
            result = await self.syncer(payload, status)
        except Exception as e:
            logger.error(f"CRM sync ({status}) failed: {e}")
            return None

        if getattr(result, "success", False):
            logger.info(f"Saved to CRM ({status}): {result.contact_id}")
        else:
            logger.warning(f"CRM save failed ({status}): {getattr(result, 'error', None)}")
        return result
