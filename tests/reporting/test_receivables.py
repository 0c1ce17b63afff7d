"""Receivables summary, student balance and parents overdue tests (sample data in conftest)."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.entities import (
    Grade,
    Invoice,
    InvoiceItem,
    ReceivablesContext,
    Student,
)
from ledger_kernel.exceptions import InvalidFilterError
from ledger_reporting.adapters import (
    adapt_student,
    build_receivables_context,
    resolve_student_stage,
)
from ledger_reporting.filters import ParentsOverdueFilter
from ledger_reporting.models import PaymentStatus, ReportType
from ledger_reporting.receivables import (
    build_ar_summary,
    build_parents_overdue,
    build_student_balances,
    select_invoices,
)


@pytest.fixture
def ar(receivables, config, deterministic_clock):
    return build_ar_summary(receivables, "Y24", config, clock=deterministic_clock)


class TestSelectInvoices:

    def test_approved_non_voided_of_year(self, receivables):
        assert [i.id for i in select_invoices(receivables, "Y24")] == ["INV-1", "INV-2", "INV-3"]

    def test_other_year(self, receivables):
        assert select_invoices(receivables, "Y23") == ()


class TestARSummary:

    def test_rows(self, ar):
        cells = [(r.grade_id, r.fee_name, r.student_count, r.total_item) for r in ar.rows]
        assert cells == [
            ("G1", "Tuition", 2, Decimal("2000.00")),
            ("G2", "Tuition", 1, Decimal("1200.00")),
            ("G2", "Bus", 1, Decimal("300.00")),
        ]

    def test_grade_discounts_shared_by_rows(self, ar):
        g1 = ar.rows[0]
        assert g1.item_amount == Decimal("1000.00")
        assert g1.exemptions == Decimal("200.00")
        assert g1.net == Decimal("1800.00")
        assert g1.stage_name == "Primary"
        assert g1.grade_name == "Grade 1"

    def test_totals(self, ar):
        assert ar.total_amount == Decimal("3500.00")
        assert ar.total_discounts == Decimal("200.00")
        assert ar.total_net == Decimal("3300.00")
        assert ar.total_students == 3
        assert ar.no_data is False

    def test_matrix(self, ar):
        assert ar.fee_names == ("Tuition", "Bus")
        g2 = ar.matrix[1]
        assert g2.grade_id == "G2"
        assert g2.values == {"Tuition": Decimal("1200.00"), "Bus": Decimal("300.00")}
        assert g2.total == Decimal("1500.00")
        assert g2.net == Decimal("1500.00")
        assert sum(m.net for m in ar.matrix) == ar.total_net

    def test_metadata(self, ar):
        assert ar.metadata.report_type is ReportType.AR_SUMMARY
        assert ar.metadata.filters == (("academic_year_id", "Y24"),)
        assert ar.academic_year_id == "Y24"

    def test_missing_year(self, receivables):
        report = build_ar_summary(receivables, None)
        assert report.no_data is True
        assert report.total_net == Decimal("0")

    def test_unknown_year(self, receivables):
        assert build_ar_summary(receivables, "Y99").no_data is True

    def test_invoice_without_grade_is_left_out(self):
        ctx = ReceivablesContext(
            invoices=(
                Invoice(
                    "I1", "S-lost", academic_year_id="Y24", is_approved=True,
                    items=(InvoiceItem("F", "Fee", Decimal("10")),),
                ),
            ),
        )
        assert build_ar_summary(ctx, "Y24").no_data is True

    def test_grade_with_discounts_but_no_items(self):
        ctx = ReceivablesContext(
            invoices=(
                Invoice(
                    "I1", "S1", academic_year_id="Y24", grade_id="G1",
                    is_approved=True, discount_total=Decimal("5"),
                ),
            ),
            grades={"G1": Grade("G1", "Grade 1")},
        )
        report = build_ar_summary(ctx, "Y24")
        assert report.rows == ()
        assert report.total_discounts == Decimal("0")

    def test_unnamed_grade_and_stage(self):
        ctx = ReceivablesContext(
            invoices=(
                Invoice(
                    "I1", "S1", academic_year_id="Y24", grade_id="G9", is_approved=True,
                    items=(InvoiceItem(None, None, Decimal("10")),),
                ),
            ),
        )
        row = build_ar_summary(ctx, "Y24").rows[0]
        assert row.grade_name == "G9"
        assert row.stage_name == "—"
        assert row.fee_name == "—"


class TestStudentBalances:

    @pytest.fixture
    def balances(self, receivables, config, deterministic_clock):
        return build_student_balances(receivables, None, config, clock=deterministic_clock)

    def test_debtors_and_creditors(self, balances):
        assert [(r.student_id, r.balance) for r in balances.debtors] == [
            ("S1", Decimal("1599.00")),
        ]
        assert [(r.student_id, r.balance) for r in balances.creditors] == [
            ("S3", Decimal("-100.00")),
        ]

    def test_unapproved_invoices_count_voided_do_not(self, balances):
        s1 = balances.debtors[0]
        assert s1.due == Decimal("1999.00")
        assert s1.paid == Decimal("400.00")

    def test_settled_students_are_excluded(self, balances):
        ids = {r.student_id for r in balances.debtors + balances.creditors}
        assert "S2" not in ids

    def test_names_and_placement(self, balances):
        s1 = balances.debtors[0]
        assert s1.student_name == "Ahmed"
        assert s1.grade_name == "Grade 1"
        s3 = balances.creditors[0]
        assert s3.class_name == "2-A"

    def test_totals(self, balances):
        assert balances.total_due == Decimal("4499.00")
        assert balances.total_paid == Decimal("3000.00")
        assert balances.total_debtors == Decimal("1599.00")
        assert balances.total_creditors == Decimal("-100.00")

    def test_year_filter(self, receivables):
        assert build_student_balances(receivables, "Y23").no_data is True
        assert build_student_balances(receivables, "Y24").debtors[0].student_id == "S1"

    def test_unknown_student_falls_back_to_id(self):
        ctx = ReceivablesContext(
            invoices=(Invoice("I1", "S-x", total=Decimal("10")),),
            students={"S1": Student("S1", "Someone")},
        )
        row = build_student_balances(ctx).debtors[0]
        assert row.student_name == "S-x"
        assert row.grade_name == ""


def _family_records() -> dict[str, list[dict]]:
    return {
        "stages": [
            {"Stage_ID": "ST1", "Stage_Name": "Primary"},
            {"Stage_ID": "ST2", "Stage_Name": "Secondary"},
        ],
        "grades": [
            {"Grade_ID": "G1", "Grade_Name": "Grade 1", "Stage_ID": "ST1"},
            {"Grade_ID": "G7", "Grade_Name": "Grade 7", "Stage_ID": "ST2"},
        ],
        "students": [
            {
                "Student_ID": "K1",
                "Student_Global_ID": "G-100",
                "Grade_ID": "G1",
                "Father": {"Parent_ID": "PA", "Name": "Khaled", "Mobile": "0500"},
            },
            {
                "Student_ID": "K2",
                "Grade_ID": "G7",
                "Parent_ID": "PA",
                "Guardian_Name": "Other",
                "Guardian_Phone": "0999",
            },
            {
                "Student_ID": "K3",
                "Grade_ID": "G1",
                "GuardianId": "PB",
                "Guardian": {"Name": "Mona", "Phone": "0511"},
            },
            {"Student_ID": "K4", "Stage_ID": "ST2", "Grade_ID": "G7"},
        ],
        "invoices": [
            {"id": "A1", "Student_ID": "K1", "Academic_Year_ID": "Y24",
             "Date": "2024-02-10", "Total": "500", "Paid": "100"},
            {"id": "A2", "Student_ID": "K2", "Academic_Year_ID": "Y24",
             "Date": "2024-01-05", "Total": "300", "Paid": "0"},
            {"id": "A3", "Student_ID": "K1", "Date": "2024-03-01",
             "Total": "200", "Paid": "200"},
            {"id": "A4", "Student_ID": "K1", "Academic_Year_ID": "Y24", "Status": "DRAFT",
             "Date": "2024-02-20", "Total": "100"},
            {"id": "B1", "Student_ID": "K3", "Academic_Year_ID": "Y24",
             "Date": "2024-02-01", "Total": "400", "Paid": "400"},
            {"id": "C1", "Student_ID": "K4", "Academic_Year_ID": "Y24",
             "Total": "250", "Paid": "50"},
            {"id": "X1", "Student_ID": "K1", "Academic_Year_ID": "Y23", "Total": "9999"},
            {"id": "X2", "Student_ID": "K3", "Academic_Year_ID": "Y24",
             "isVoided": True, "Total": "5000"},
        ],
    }


@pytest.fixture
def families():
    raw = _family_records()
    return build_receivables_context(
        raw["invoices"], raw["students"], grades=raw["grades"], stages=raw["stages"],
    )


class TestParentContact:

    def test_parent_record_wins_over_student_keys(self):
        student = adapt_student({
            "Student_ID": "K1",
            "Parent_ID": "flat",
            "Father_Name": "Flat Name",
            "Father": {"Parent_ID": "PA", "Name": "Khaled", "Mobile": " 0500 "},
        })
        assert student.parent_id == "PA"
        assert student.parent_name == "Khaled"
        assert student.parent_mobile == "0500"

    def test_student_keys_fill_what_the_record_lacks(self):
        student = adapt_student({
            "Student_ID": "K3",
            "GuardianId": "PB",
            "Guardian_Mobile": "0777",
            "Guardian": {"Name": "Mona"},
        })
        assert student.parent_id == "PB"
        assert student.parent_name == "Mona"
        assert student.parent_mobile == "0777"

    def test_no_parent_anywhere(self):
        student = adapt_student({"Student_ID": "K4"})
        assert student.parent_id is None
        assert student.parent_name is None
        assert student.parent_mobile is None

    def test_code_prefers_global_id(self):
        assert adapt_student({"Student_ID": "K1", "Student_Global_ID": "G-100"}).code == "G-100"
        assert adapt_student({"id": "K9"}).code is None

    def test_stage_from_student_then_grade(self, families):
        assert resolve_student_stage(families.students["K4"], families) == "ST2"
        assert resolve_student_stage(families.students["K1"], families) == "ST1"
        assert resolve_student_stage(None, families) is None


class TestParentsOverdueFilter:

    def test_from_dict(self):
        criteria = ParentsOverdueFilter.from_dict(
            {"from": "2024-01-01", "yearId": " Y24 ", "status": "LATE", "minDue": "250"},
        )
        assert criteria.date_from == date(2024, 1, 1)
        assert criteria.academic_year_id == "Y24"
        assert criteria.status is PaymentStatus.LATE
        assert criteria.min_due == Decimal("250")

    def test_all_status_means_no_filter(self):
        assert ParentsOverdueFilter(status="all").status is None

    @pytest.mark.parametrize("changes", [
        {"status": "overdue"},
        {"min_due": "abc"},
        {"date_from": "2024-02-01", "date_to": "2024-01-01"},
    ])
    def test_invalid_values_raise(self, changes):
        with pytest.raises(InvalidFilterError):
            ParentsOverdueFilter(**changes)

    def test_undated_invoices_are_inside_any_range(self):
        criteria = ParentsOverdueFilter(date_from="2024-01-01", date_to="2024-01-31")
        assert criteria.includes_date(None)
        assert criteria.includes_date(date(2024, 1, 31))
        assert not criteria.includes_date(date(2024, 2, 1))


class TestParentsOverdue:

    @pytest.fixture
    def overdue(self, families, config, deterministic_clock):
        return build_parents_overdue(
            families, ParentsOverdueFilter(academic_year_id="Y24"), config,
            clock=deterministic_clock,
        )

    def test_rows_sorted_by_balance(self, overdue):
        assert [(r.parent_id, r.balance) for r in overdue.rows] == [
            ("PA", Decimal("800.00")),
            ("P-K4", Decimal("200.00")),
            ("PB", Decimal("0.00")),
        ]

    def test_children_of_one_parent_are_summed(self, overdue):
        pa = overdue.rows[0]
        assert pa.children == ("G-100", "K2")
        assert pa.children_count == 2
        assert pa.total_due == Decimal("1100.00")
        assert pa.total_paid == Decimal("300.00")
        assert pa.oldest_invoice_date == date(2024, 1, 5)
        assert pa.status is PaymentStatus.LATE

    def test_contact_from_first_listed_child(self, overdue):
        pa, no_parent, pb = overdue.rows
        assert (pa.parent_name, pa.mobile) == ("Khaled", "0500")
        assert (pb.parent_name, pb.mobile) == ("Mona", "0511")
        assert pb.status is PaymentStatus.REGULAR
        assert (no_parent.parent_name, no_parent.mobile) == ("—", "")
        assert no_parent.oldest_invoice_date is None

    def test_totals_cover_listed_rows(self, overdue):
        assert overdue.total_due == Decimal("1750.00")
        assert overdue.total_paid == Decimal("750.00")
        assert overdue.total_balance == Decimal("1000.00")
        assert overdue.no_data is False

    def test_metadata(self, overdue):
        assert overdue.metadata.report_type is ReportType.PARENTS_OVERDUE
        assert overdue.metadata.filters == (("academic_year_id", "Y24"),)
        assert overdue.academic_year_id == "Y24"

    def test_other_year_tag_excluded_untagged_kept(self, families):
        everything = build_parents_overdue(families)
        assert everything.rows[0].balance == Decimal("10799.00")
        y23 = build_parents_overdue(families, ParentsOverdueFilter(academic_year_id="Y23"))
        # Only the untagged A3 and the Y23 invoice reach PA.
        assert y23.rows[0].parent_id == "PA"
        assert y23.rows[0].total_due == Decimal("10199.00")

    def test_voided_invoices_ignored(self, overdue):
        pb = overdue.rows[2]
        assert pb.total_due == Decimal("400.00")

    @pytest.mark.parametrize("status, expected", [
        ("late", ["PA", "P-K4"]),
        ("regular", ["PB"]),
        ("all", ["PA", "P-K4", "PB"]),
    ])
    def test_status_filter(self, families, status, expected):
        criteria = ParentsOverdueFilter(academic_year_id="Y24", status=status)
        assert [r.parent_id for r in build_parents_overdue(families, criteria).rows] == expected

    def test_min_due(self, families):
        criteria = ParentsOverdueFilter(academic_year_id="Y24", min_due="500")
        report = build_parents_overdue(families, criteria)
        assert [r.parent_id for r in report.rows] == ["PA"]
        assert report.total_balance == Decimal("800.00")

    def test_zero_min_due_keeps_everyone(self, families):
        criteria = ParentsOverdueFilter(academic_year_id="Y24", min_due="0")
        assert len(build_parents_overdue(families, criteria).rows) == 3

    def test_date_range(self, families):
        criteria = ParentsOverdueFilter(
            academic_year_id="Y24", date_from="2024-02-01", date_to="2024-02-28",
        )
        report = build_parents_overdue(families, criteria)
        pa = report.rows[0]
        assert pa.children == ("G-100",)
        assert pa.balance == Decimal("500.00")
        assert pa.oldest_invoice_date == date(2024, 2, 10)
        # C1 has no date and stays in.
        assert "P-K4" in [r.parent_id for r in report.rows]
        assert report.metadata.period_start == date(2024, 2, 1)

    def test_stage_filter_uses_resolved_stage(self, families):
        criteria = ParentsOverdueFilter(academic_year_id="Y24", stage_id="ST2")
        rows = build_parents_overdue(families, criteria).rows
        assert [(r.parent_id, r.balance) for r in rows] == [
            ("PA", Decimal("300.00")),
            ("P-K4", Decimal("200.00")),
        ]
        assert rows[0].children == ("K2",)
        assert rows[0].parent_name == "Other"

    def test_grade_filter(self, families):
        criteria = ParentsOverdueFilter(academic_year_id="Y24", grade_id="G1")
        rows = build_parents_overdue(families, criteria).rows
        assert [(r.parent_id, r.balance) for r in rows] == [
            ("PA", Decimal("500.00")),
            ("PB", Decimal("0.00")),
        ]

    def test_unknown_student_is_own_parent(self):
        ctx = ReceivablesContext(
            invoices=(Invoice("I1", "S-x", total=Decimal("10")),),
        )
        row = build_parents_overdue(ctx).rows[0]
        assert row.parent_id == "P-S-x"
        assert row.children == ("S-x",)
        assert build_parents_overdue(ctx, ParentsOverdueFilter(grade_id="G1")).no_data is True

    def test_empty_context(self):
        report = build_parents_overdue(ReceivablesContext())
        assert report.no_data is True
        assert report.total_balance == Decimal("0")
