import pytest

from wizard.draft import new_draft
from wizard.selection import FieldSelection, map_applicant_type, mortgagee_clause

CANDIDATE = {
    "buildingSquareFootage": "2400",
    "yearBuilt": "1998",
    "constructionType": "Masonry",
    "acres": "0.75",
    "corporationName": "MAIN STREET FUEL INC",
    "ownershipType": "llc",
    "lenderName": "First National Bank",
    "mortgageAmount": "250000",
    "dba": "Main Street Mart",
    "phoneNumber": "(555) 123-4567",
    "hoursOfOperation": "24",
    "operationDescription": "C-Store with 24 hours operation",
    "latitude": 39.78,
    "website": "https://mainstreetmart.example.com",
}


class TestFieldSelection:
    """Opt-out selection over a candidate record."""

    def setup_method(self):
        self.selection = FieldSelection(CANDIDATE)
        self.draft = new_draft()

    def test_present_selectable_fields_start_selected(self):
        assert all(self.selection.selected.values())
        assert "latitude" not in self.selection.selected
        assert "website" not in self.selection.selected
        assert len(self.selection.selected) == 12

    def test_absent_fields_are_not_toggleable(self):
        selection = FieldSelection({"dba": "Mart"})
        assert selection.selected == {"dba": True}
        with pytest.raises(KeyError):
            selection.toggle("yearBuilt")

    def test_toggle_flips_one_field_only(self):
        assert self.selection.toggle("dba") is False
        assert self.selection.is_selected("dba") is False
        assert self.selection.is_selected("yearBuilt") is True
        assert self.selection.candidate["dba"] == "Main Street Mart"
        assert self.selection.toggle("dba") is True

    def test_candidate_is_read_only(self):
        with pytest.raises(TypeError):
            self.selection.candidate["dba"] = "Other"

    def test_step_suggestions(self):
        step1 = [s.key for s in self.selection.fields_for_step(1)]
        step2 = [s.key for s in self.selection.fields_for_step(2)]
        step3 = [s.key for s in self.selection.fields_for_step(3)]

        assert step1 == ["corporationName", "phoneNumber"]
        assert step2 == ["dba", "ownershipType", "operationDescription"]
        assert step3 == [
            "hoursOfOperation", "constructionType", "buildingSquareFootage",
            "yearBuilt", "lenderName", "mortgageAmount",
        ]
        for step in (0, 4, 5, 6, 7):
            assert self.selection.fields_for_step(step) == []

    def test_suggestions_skip_absent_values(self):
        selection = FieldSelection({"phoneNumber": "(555) 123-4567"})
        suggestions = selection.fields_for_step(1)
        assert len(suggestions) == 1
        assert suggestions[0].label == "Phone Number"
        assert suggestions[0].selected is True

    def test_apply_maps_fields_into_draft(self):
        self.selection.apply(self.draft)

        assert self.draft["totalSqFootage"] == "2400"
        assert self.draft["contactNumber"] == "(555) 123-4567"
        assert self.draft["primaryLender"] == "First National Bank"
        assert self.draft["applicantType"] == "LLC"
        assert self.draft["additionalInsured"] == "First National Bank - Mortgagee ($250,000)"
        assert self.draft["mortgageAmount"] == "250000"
        assert "latitude" not in self.draft

    def test_apply_skips_deselected_fields(self):
        self.selection.toggle("dba")
        self.selection.toggle("ownershipType")
        self.selection.apply(self.draft)

        assert "dba" not in self.draft
        assert self.draft["applicantType"] == "individual"

    def test_mortgage_amount_needs_its_own_selection(self):
        self.selection.toggle("mortgageAmount")
        self.selection.apply(self.draft)

        assert "mortgageAmount" not in self.draft
        assert self.draft["additionalInsured"] == "First National Bank - Mortgagee ($250,000)"

    def test_lender_without_mortgage(self):
        selection = FieldSelection({"lenderName": "Credit Union"})
        selection.apply(self.draft)
        assert self.draft["additionalInsured"] == "Credit Union - Mortgagee"

    def test_apply_is_idempotent(self):
        self.selection.apply(self.draft)
        once = dict(self.draft)
        self.selection.apply(self.draft)
        assert self.draft == once

    def test_apply_overwrites_user_values(self):
        self.draft["dba"] = "Typed By Hand"
        self.selection.apply(self.draft)
        assert self.draft["dba"] == "Main Street Mart"


@pytest.mark.parametrize("raw,expected", [
    ("llc", "LLC"),
    ("LLC", "LLC"),
    ("company", "Corporation"),
    ("individual", "Individual"),
    ("partnership", "Partnership"),
    ("joint_venture", "Joint Venture"),
    ("trust", "Corporation"),
])
def test_applicant_type_mapping(raw, expected):
    assert map_applicant_type(raw) == expected


def test_mortgagee_clause_drops_decimals():
    assert mortgagee_clause("Bank", "125000.75") == "Bank - Mortgagee ($125,000)"
