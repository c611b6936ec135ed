from types import MappingProxyType
from typing import Dict, Any, List, Mapping, NamedTuple
from loguru import logger
from wizard.draft import format_currency

# Candidate field -> draft field for plain copies
DRAFT_FIELD_MAP = {
    "buildingSquareFootage": "totalSqFootage",
    "constructionType": "constructionType",
    "yearBuilt": "yearBuilt",
    "acres": "acres",
    "dba": "dba",
    "hoursOfOperation": "hoursOfOperation",
    "operationDescription": "operationDescription",
    "phoneNumber": "contactNumber",
    "corporationName": "corporationName",
    "lenderName": "primaryLender",
    "mortgageAmount": "mortgageAmount",
}

OWNERSHIP_TO_APPLICANT_TYPE = {
    "company": "Corporation",
    "individual": "Individual",
    "partnership": "Partnership",
    "llc": "LLC",
    "joint_venture": "Joint Venture",
}
DEFAULT_APPLICANT_TYPE = "Corporation"

SELECTABLE_FIELDS = tuple(DRAFT_FIELD_MAP) + ("ownershipType",)

OWNER_SECTION = "Owner Information"
CONTACT_SECTION = "Contact Information"
BUSINESS_SECTION = "Business Information"
PROPERTY_SECTION = "Property Information"
FINANCIAL_SECTION = "Financial Information"

# Wizard step -> (candidate field, label, section). Steps not listed show nothing.
STEP_FIELDS = {
    1: [
        ("corporationName", "Corporation Name", OWNER_SECTION),
        ("phoneNumber", "Phone Number", CONTACT_SECTION),
    ],
    2: [
        ("dba", "Business Name (DBA)", BUSINESS_SECTION),
        ("ownershipType", "Applicant Type", OWNER_SECTION),
        ("operationDescription", "Operation Description", BUSINESS_SECTION),
    ],
    3: [
        ("hoursOfOperation", "Hours of Operation", BUSINESS_SECTION),
        ("constructionType", "Construction Type", PROPERTY_SECTION),
        ("buildingSquareFootage", "Total Sq. Footage", PROPERTY_SECTION),
        ("yearBuilt", "Year Built", PROPERTY_SECTION),
        ("lenderName", "Additional Insured (Lender)", FINANCIAL_SECTION),
        ("mortgageAmount", "Mortgage Amount", FINANCIAL_SECTION),
    ],
}


class Suggestion(NamedTuple):
    key: str
    label: str
    value: Any
    section: str
    selected: bool


def map_applicant_type(ownership_type: str) -> str:
    return OWNERSHIP_TO_APPLICANT_TYPE.get(str(ownership_type).lower(), DEFAULT_APPLICANT_TYPE)


def mortgagee_clause(lender: str, mortgage_amount: Any = None) -> str:
    if mortgage_amount:
        return f"{lender} - Mortgagee ({format_currency(mortgage_amount)})"
    return f"{lender} - Mortgagee"


class FieldSelection:
    """
    User's accept/reject choices over one candidate record.

    Every selectable field present in the record starts accepted; the record
    itself is frozen and never modified.
    """

    def __init__(self, candidate: Mapping[str, Any]):
        self.candidate = MappingProxyType(dict(candidate))
        self.selected: Dict[str, bool] = {
            key: True for key in SELECTABLE_FIELDS if self._present(key)
        }

    def _present(self, key: str) -> bool:
        return bool(self.candidate.get(key))

    def fields_for_step(self, step: int) -> List[Suggestion]:
        """Candidate fields offered on a wizard step, present values only."""
        return [
            Suggestion(key, label, self.candidate[key], section, self.selected.get(key, False))
            for key, label, section in STEP_FIELDS.get(step, [])
            if self._present(key)
        ]

    def toggle(self, key: str) -> bool:
        """
        Flip one field's selection.

        Raises:
            KeyError: the field is not a present, selectable candidate field
        """
        if key not in self.selected:
            raise KeyError(f"'{key}' is not a selectable enrichment field")
        self.selected[key] = not self.selected[key]
        return self.selected[key]

    def is_selected(self, key: str) -> bool:
        return self.selected.get(key, False)

    def apply(self, draft: Dict[str, Any]) -> List[str]:
        """
        Write every selected candidate value into the draft.

        Args:
            draft: Application draft, modified in place

        Returns:
            Draft keys written
        """
        written = []
        for key in SELECTABLE_FIELDS:
            if not self.is_selected(key) or not self._present(key):
                continue
            value = self.candidate[key]

            if key == "ownershipType":
                draft["applicantType"] = map_applicant_type(value)
                written.append("applicantType")
                continue

            target = DRAFT_FIELD_MAP[key]
            draft[target] = value
            written.append(target)

            if key == "lenderName":
                draft["additionalInsured"] = mortgagee_clause(value, self.candidate.get("mortgageAmount"))
                written.append("additionalInsured")

        logger.info(f"Applied {len(written)} enrichment values to draft")
        return written
