"""
Receivables builders (``ledger_reporting.receivables``).

Responsibility
--------------
Aggregates student invoices into the receivables (AR) summary keyed by
grade x fee item, into per-student balances (debtors / creditors), and
into the parents overdue list that sums each parent's children.

Architecture position
---------------------
**Reporting layer** -- pure functions over a ``ReceivablesContext`` built
once by ``adapters.build_receivables_context``.  Every correlation rule
(invoice -> student -> class -> grade, fee head -> name) is resolved by the
adapter helpers; nothing here reads raw field names.

Invariants enforced
-------------------
* Only approved, non-voided invoices count toward the AR summary.
* An invoice belongs to the target year by its own year tag, or, only when
  it has none, by its student's year.
* Per-student averages with zero students are ``0``.
* Parents overdue rows are sorted by balance, largest first.
* ``Σ net == Σ total - Σ discounts`` over the grade matrix.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entities import Invoice, ReceivablesContext, Student
from ledger_kernel.domain.money import ZERO, round_money, safe_divide, sum_money
from ledger_reporting.adapters import (
    normalize_id,
    resolve_fee_name,
    resolve_invoice_grade,
    resolve_invoice_year,
    resolve_student_grade,
    resolve_student_stage,
)
from ledger_reporting.config import ReportingConfig
from ledger_reporting.filters import ParentsOverdueFilter, ReportFilter
from ledger_reporting.models import (
    ARMatrixRow,
    ARSummaryReport,
    ARSummaryRow,
    ParentOverdueRow,
    ParentsOverdueReport,
    PaymentStatus,
    ReportMetadata,
    ReportType,
    StudentBalanceRow,
    StudentBalancesReport,
)
from ledger_reporting.statements import build_metadata

_PLACEHOLDER = "—"


@dataclass
class _GradeTally:
    students: set[str] = field(default_factory=set)
    fees: dict[str, Decimal] = field(default_factory=dict)
    discounts: Decimal = ZERO


def select_invoices(
    ctx: ReceivablesContext,
    academic_year_id: str,
) -> tuple[Invoice, ...]:
    """Approved, non-voided invoices of ``academic_year_id``."""
    return tuple(
        invoice
        for invoice in ctx.invoices
        if invoice.is_approved
        and not invoice.is_voided
        and resolve_invoice_year(invoice, ctx) == academic_year_id
    )


def _metadata(
    report_type: ReportType,
    academic_year_id: str | None,
    config: ReportingConfig,
    metadata: ReportMetadata | None,
    clock: Clock | None,
) -> ReportMetadata:
    if metadata is not None:
        return metadata
    return build_metadata(
        report_type,
        config,
        ReportFilter(academic_year_id=academic_year_id),
        clock or SystemClock(),
    )


def build_ar_summary(
    ctx: ReceivablesContext,
    academic_year_id: str | None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> ARSummaryReport:
    """
    Receivables summary for one academic year.

    Rows are ``(grade, fee name)`` cells in first-seen order.  A grade's
    discounts and distinct-student count are shared by all of its rows;
    the matrix pivots the rows into one line per grade.  Invoices whose
    grade cannot be resolved are left out.
    """
    config = config or ReportingConfig()
    year = normalize_id(academic_year_id)
    metadata = _metadata(ReportType.AR_SUMMARY, year, config, metadata, clock)

    def money(value: Decimal) -> Decimal:
        return round_money(value, config.display_precision)

    if year is None:
        return ARSummaryReport(
            metadata=metadata,
            academic_year_id=None,
            rows=(),
            fee_names=(),
            matrix=(),
            total_amount=ZERO,
            total_discounts=ZERO,
            total_net=ZERO,
            total_students=0,
            no_data=True,
        )

    tallies: dict[str, _GradeTally] = {}
    for invoice in select_invoices(ctx, year):
        grade_id = resolve_invoice_grade(invoice, ctx)
        if not grade_id:
            continue
        tally = tallies.setdefault(grade_id, _GradeTally())
        tally.students.add(invoice.student_id)
        for item in invoice.items:
            fee_name = resolve_fee_name(item, ctx)
            tally.fees[fee_name] = tally.fees.get(fee_name, ZERO) + item.amount
        tally.discounts += invoice.discount_total

    rows: list[ARSummaryRow] = []
    matrix: list[ARMatrixRow] = []
    fee_names: dict[str, None] = {}
    for grade_id, tally in tallies.items():
        if not tally.fees:
            continue
        grade = ctx.grades.get(grade_id)
        stage = ctx.stages.get(grade.stage_id) if grade and grade.stage_id else None
        grade_name = grade.name if grade else grade_id
        stage_name = stage.name if stage else _PLACEHOLDER
        student_count = len(tally.students)
        discounts = money(tally.discounts)

        values: dict[str, Decimal] = {}
        for fee_name, total in tally.fees.items():
            total_item = money(total)
            item_amount = money(safe_divide(total_item, student_count))
            fee_names.setdefault(fee_name, None)
            values[fee_name] = item_amount
            rows.append(
                ARSummaryRow(
                    stage_name=stage_name,
                    grade_id=grade_id,
                    grade_name=grade_name,
                    fee_name=fee_name,
                    student_count=student_count,
                    item_amount=item_amount,
                    total_item=total_item,
                    exemptions=discounts,
                    net=total_item - discounts,
                )
            )
        matrix.append(
            ARMatrixRow(
                grade_id=grade_id,
                grade_name=grade_name,
                stage_name=stage_name,
                values=values,
                total=sum_money(money(t) for t in tally.fees.values()),
                discounts=discounts,
                student_count=student_count,
            )
        )

    total_amount = sum_money(m.total for m in matrix)
    total_discounts = sum_money(m.discounts for m in matrix)
    return ARSummaryReport(
        metadata=metadata,
        academic_year_id=year,
        rows=tuple(rows),
        fee_names=tuple(fee_names),
        matrix=tuple(matrix),
        total_amount=total_amount,
        total_discounts=total_discounts,
        total_net=total_amount - total_discounts,
        total_students=sum(m.student_count for m in matrix),
        no_data=not rows,
    )


def build_student_balances(
    ctx: ReceivablesContext,
    academic_year_id: str | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> StudentBalancesReport:
    """
    Due, paid and outstanding balance per invoiced student.

    Every non-voided invoice counts regardless of approval; with
    ``academic_year_id`` only that year's invoices do.  Students owing
    money are debtors, students in credit are creditors, settled students
    appear in neither list.
    """
    config = config or ReportingConfig()
    year = normalize_id(academic_year_id)
    metadata = _metadata(ReportType.STUDENT_BALANCES, year, config, metadata, clock)

    def money(value: Decimal) -> Decimal:
        return round_money(value, config.display_precision)

    sums: dict[str, list[Decimal]] = {}
    for invoice in ctx.invoices:
        if invoice.is_voided:
            continue
        if year is not None and resolve_invoice_year(invoice, ctx) != year:
            continue
        bucket = sums.setdefault(invoice.student_id, [ZERO, ZERO])
        bucket[0] += invoice.total
        bucket[1] += invoice.paid

    debtors: list[StudentBalanceRow] = []
    creditors: list[StudentBalanceRow] = []
    for student_id, (due, paid) in sums.items():
        balance = money(due - paid)
        if balance == ZERO:
            continue
        student = ctx.students.get(student_id)
        grade = ctx.grades.get(student.grade_id) if student and student.grade_id else None
        klass = ctx.classes.get(student.class_id) if student and student.class_id else None
        row = StudentBalanceRow(
            student_id=student_id,
            student_name=student.name if student else student_id,
            grade_name=grade.name if grade else "",
            class_name=klass.name if klass else "",
            due=money(due),
            paid=money(paid),
            balance=balance,
        )
        (debtors if balance > 0 else creditors).append(row)

    return StudentBalancesReport(
        metadata=metadata,
        academic_year_id=year,
        debtors=tuple(debtors),
        creditors=tuple(creditors),
        total_due=money(sum_money(due for due, _ in sums.values())),
        total_paid=money(sum_money(paid for _, paid in sums.values())),
        total_debtors=sum_money(r.balance for r in debtors),
        total_creditors=sum_money(r.balance for r in creditors),
        no_data=not sums,
    )


@dataclass
class _ParentTally:
    name: str
    mobile: str
    children: dict[str, None] = field(default_factory=dict)
    due: Decimal = ZERO
    paid: Decimal = ZERO
    oldest: date | None = None


def _student_passes(
    student: Student | None,
    criteria: ParentsOverdueFilter,
    ctx: ReceivablesContext,
) -> bool:
    if criteria.stage_id and resolve_student_stage(student, ctx) != criteria.stage_id:
        return False
    if criteria.grade_id and resolve_student_grade(student, ctx) != criteria.grade_id:
        return False
    return True


def build_parents_overdue(
    ctx: ReceivablesContext,
    criteria: ParentsOverdueFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> ParentsOverdueReport:
    """
    Outstanding balance per parent, summed over all their children.

    Every non-voided invoice counts regardless of approval.  Undated
    invoices pass the date range and untagged invoices pass the year
    filter.  A student without a parent id is their own parent
    (``P-<student id>``).  The status and ``min_due`` filters apply to the
    parent totals, and the report totals cover the listed parents only.
    """
    config = config or ReportingConfig()
    criteria = criteria or ParentsOverdueFilter()
    if metadata is None:
        metadata = ReportMetadata(
            report_type=ReportType.PARENTS_OVERDUE,
            entity_name=config.entity_name,
            currency=config.default_currency,
            generated_at=(clock or SystemClock()).now().isoformat(),
            period_start=criteria.date_from,
            period_end=criteria.date_to,
            filters=criteria.echo(),
        )

    def money(value: Decimal) -> Decimal:
        return round_money(value, config.display_precision)

    tallies: dict[str, _ParentTally] = {}
    for invoice in ctx.invoices:
        if invoice.is_voided or not criteria.includes_date(invoice.invoice_date):
            continue
        if (
            criteria.academic_year_id
            and invoice.academic_year_id
            and invoice.academic_year_id != criteria.academic_year_id
        ):
            continue
        student = ctx.students.get(invoice.student_id)
        if not _student_passes(student, criteria, ctx):
            continue

        parent_id = (student.parent_id if student else None) or f"P-{invoice.student_id}"
        tally = tallies.get(parent_id)
        if tally is None:
            tally = tallies[parent_id] = _ParentTally(
                name=(student.parent_name if student else None) or _PLACEHOLDER,
                mobile=(student.parent_mobile if student else None) or "",
            )
        child = (student.code if student else None) or invoice.student_id
        tally.children.setdefault(child)
        tally.due += invoice.total
        tally.paid += invoice.paid
        dated = invoice.invoice_date
        if dated and (tally.oldest is None or dated < tally.oldest):
            tally.oldest = dated

    rows: list[ParentOverdueRow] = []
    for parent_id, tally in tallies.items():
        balance = money(tally.due - tally.paid)
        status = PaymentStatus.LATE if balance > 0 else PaymentStatus.REGULAR
        if criteria.status is not None and status is not criteria.status:
            continue
        if criteria.min_due and criteria.min_due > 0 and balance < criteria.min_due:
            continue
        rows.append(
            ParentOverdueRow(
                parent_id=parent_id,
                parent_name=tally.name,
                mobile=tally.mobile,
                children=tuple(tally.children),
                total_due=money(tally.due),
                total_paid=money(tally.paid),
                balance=balance,
                oldest_invoice_date=tally.oldest,
                status=status,
            )
        )
    rows.sort(key=lambda row: row.balance, reverse=True)

    return ParentsOverdueReport(
        metadata=metadata,
        academic_year_id=criteria.academic_year_id,
        rows=tuple(rows),
        total_due=sum_money(r.total_due for r in rows),
        total_paid=sum_money(r.total_paid for r in rows),
        total_balance=sum_money(r.balance for r in rows),
        no_data=not rows,
    )
