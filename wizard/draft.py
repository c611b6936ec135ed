import json
import re
from datetime import datetime, timezone
from typing import TypedDict, Dict, Any, Optional
from tools.hours import round_half_up

FORM_TYPE = "C-Store Insurance Application"
STATUS_SUBMITTED = "Submitted"
STATUS_IN_PROGRESS = "In Progress"
ESTIMATE_RATE = 0.01

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


class ApplicationDraft(TypedDict, total=False):
    """Flat application record, keyed by the field names the client submits."""
    # personal
    contactName: str
    contactNumber: str
    contactEmail: str
    corporationName: str
    # company
    address: str
    dba: str
    applicantType: str
    yearsInBusiness: str
    ownershipType: str
    operationDescription: str
    proposedEffectiveDate: str
    priorCarrier: str
    targetPremium: str
    # property
    hoursOfOperation: str
    noOfMPDs: str
    constructionType: str
    totalSqFootage: str
    yearBuilt: str
    yearsAtLocation: str
    anyLeasedOutSpace: str
    protectionClass: str
    additionalInsured: str
    burglarAlarmCentral: bool
    burglarAlarmLocal: bool
    fireAlarmCentral: bool
    fireAlarmLocal: bool
    acres: str
    # sales
    insideSalesMonthly: str
    insideSalesYearly: str
    liquorSalesMonthly: str
    liquorSalesYearly: str
    gasolineSalesMonthly: str
    gasolineSalesYearly: str
    propaneFillingExchangeMonthly: str
    propaneFillingExchangeYearly: str
    carwashMonthly: str
    carwashYearly: str
    cookingMonthly: str
    cookingYearly: str
    # coverage
    building: str
    bpp: str
    bi: str
    canopy: str
    pumps: str
    ms: str
    # business details
    fein: str
    noOfEmployees: str
    payroll: str
    officersInclExcl: str
    ownership: str
    primaryLender: str
    mortgageAmount: str
    # metadata
    applicationStatus: str
    lastSavedStep: int
    lastSavedDate: str


def new_draft() -> ApplicationDraft:
    """Empty draft with the form's defaults."""
    return {
        "address": "",
        "applicantType": "individual",
        "burglarAlarmCentral": False,
        "burglarAlarmLocal": False,
        "fireAlarmCentral": False,
        "fireAlarmLocal": False,
    }


def parse_amount(value: Any) -> float:
    """
    Parse a user-entered money amount such as "$100,000".

    Everything except digits and "." is stripped first; anything that still
    does not start with a number counts as 0.
    """
    if value is None:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(value))
    match = _LEADING_NUMBER.match(cleaned)
    return float(match.group(0)) if match else 0.0


def total_coverage(draft: Dict[str, Any]) -> float:
    return parse_amount(draft.get("building")) + parse_amount(draft.get("bpp")) + parse_amount(draft.get("bi"))


def estimate_deal_value(draft: Dict[str, Any]) -> int:
    """Opportunity value: 1% of building + contents + business income coverage."""
    return round_half_up(total_coverage(draft) * ESTIMATE_RATE)


def format_currency(value: Any) -> str:
    amount = parse_amount(value)
    return f"${int(amount):,}"


def _either(draft: Dict[str, Any], *keys: str) -> str:
    return "Yes" if any(draft.get(k) for k in keys) else "No"


def _sales(draft: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    return {"monthly": draft.get(f"{prefix}Monthly"), "yearly": draft.get(f"{prefix}Yearly")}


def build_snapshot(draft: Dict[str, Any], submitted_at: Optional[str] = None) -> Dict[str, Any]:
    """
    Group a flat draft into the sectioned snapshot stored on the CRM opportunity.

    Args:
        draft: Flat application draft
        submitted_at: ISO timestamp; defaults to now (UTC)

    Returns:
        JSON-serializable snapshot
    """
    return {
        "submissionDate": submitted_at or datetime.now(timezone.utc).isoformat(),
        "formType": FORM_TYPE,
        "personalInfo": {
            "contactName": draft.get("contactName"),
            "contactEmail": draft.get("contactEmail"),
            "contactNumber": draft.get("contactNumber"),
            "corporationName": draft.get("corporationName"),
        },
        "companyInfo": {
            "address": draft.get("address"),
            "dba": draft.get("dba"),
            "applicantType": draft.get("applicantType"),
            "yearsInBusiness": draft.get("yearsInBusiness"),
            "ownershipType": draft.get("ownershipType"),
            "operationDescription": draft.get("operationDescription"),
        },
        "propertyDetails": {
            "hoursOfOperation": draft.get("hoursOfOperation"),
            "numberOfMPDs": draft.get("noOfMPDs"),
            "constructionType": draft.get("constructionType"),
            "totalSqFootage": draft.get("totalSqFootage"),
            "yearBuilt": draft.get("yearBuilt"),
            "yearsInCurrentLocation": draft.get("yearsAtLocation"),
            "leasedSpace": draft.get("anyLeasedOutSpace"),
            "protectionClass": draft.get("protectionClass"),
            "additionalInsured": draft.get("additionalInsured"),
            "burglarAlarm": _either(draft, "burglarAlarmCentral", "burglarAlarmLocal"),
            "fireAlarm": _either(draft, "fireAlarmCentral", "fireAlarmLocal"),
            "acres": draft.get("acres"),
        },
        "salesData": {
            "inside": _sales(draft, "insideSales"),
            "liquor": _sales(draft, "liquorSales"),
            "gasoline": _sales(draft, "gasolineSales"),
            "propane": _sales(draft, "propaneFillingExchange"),
            "carwash": _sales(draft, "carwash"),
            "cooking": _sales(draft, "cooking"),
        },
        "coverage": {
            "building": draft.get("building"),
            "bpp": draft.get("bpp"),
            "bi": draft.get("bi"),
            "canopy": draft.get("canopy"),
            "pumps": draft.get("pumps"),
            "signsLighting": draft.get("ms"),
        },
        "businessDetails": {
            "fein": draft.get("fein"),
            "numberOfEmployees": draft.get("noOfEmployees"),
            "annualPayroll": draft.get("payroll"),
            "officers": draft.get("officersInclExcl"),
            "ownershipPercentage": draft.get("ownership"),
            "primaryLender": draft.get("primaryLender"),
            "mortgageAmount": draft.get("mortgageAmount"),
        },
        "metadata": {
            "applicationStatus": draft.get("applicationStatus") or STATUS_SUBMITTED,
            "lastSavedStep": draft.get("lastSavedStep"),
            "lastSavedDate": draft.get("lastSavedDate"),
        },
    }


def build_note_body(draft: Dict[str, Any], submitted_at: Optional[str] = None) -> str:
    """Markdown note: quick summary header followed by the full JSON snapshot."""
    snapshot = build_snapshot(draft, submitted_at)
    status = draft.get("applicationStatus") or STATUS_SUBMITTED
    coverage = total_coverage(draft)

    return "\n".join([
        "## Complete Insurance Application Data",
        "",
        f"**Submission Date:** {snapshot['submissionDate']}",
        f"**Status:** {status}",
        "",
        "### Quick Summary",
        f"- **Contact:** {draft.get('contactName')} - {draft.get('contactEmail')} - {draft.get('contactNumber')}",
        f"- **Business:** {draft.get('dba') or 'N/A'} ({draft.get('corporationName') or 'N/A'})",
        f"- **Property:** {draft.get('address')}",
        f"- **Hours:** {draft.get('hoursOfOperation') or 'N/A'} hours/day",
        f"- **Coverage Total:** ${coverage:,.0f}",
        "",
        "---",
        "",
        "### Complete Application JSON",
        "",
        "```json",
        json.dumps(snapshot, indent=2),
        "```",
    ])
