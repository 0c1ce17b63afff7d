"""
Canonical Entity Adapter (``ledger_reporting.adapters``).

Responsibility
--------------
Turns loosely typed source records (dicts from the school application,
JSON exports, spreadsheets) into the canonical entities of
``ledger_kernel.domain.entities``.  Every field-name ambiguity is resolved
here, once, so statement builders only ever see typed values.

Resolution rules
----------------
Each canonical field has a fixed, ordered tuple of equivalent source keys
(the ``*_KEYS`` constants below).  The first key whose value is defined and
non-empty wins.  The orderings are part of the public contract: changing
one changes report output.

Normalization
-------------
* Ids are ``str(value).strip()``.
* Correlation text (grade names, class names) is stripped and case-folded.
* Amounts become ``Decimal`` via their string form, never rounded.
* Dates are parsed from ISO strings; an unparsable value becomes ``None``
  and is handled later by the period filter's date policy.

Failure modes
-------------
* A record without minimum identity returns ``None`` and is counted as
  rejected (logged, never raised).
* A ``None`` collection where one is required raises ``ReportInputError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from ledger_kernel.domain.entities import (
    Account,
    AccountType,
    EntryStatus,
    FeeHead,
    Grade,
    Invoice,
    InvoiceItem,
    JournalEntry,
    JournalLine,
    LedgerSnapshot,
    ReceivablesContext,
    SchoolClass,
    Stage,
    Student,
)
from ledger_kernel.domain.money import sum_money, to_decimal
from ledger_kernel.exceptions import ReportInputError
from ledger_kernel.logging_config import get_logger

logger = get_logger("reporting.adapters")

# =========================================================================
# Resolution rules (ordered; first defined, non-empty value wins)
# =========================================================================

ACCOUNT_ID_KEYS = ("id", "accountId", "Account_ID", "account_id")
ACCOUNT_CODE_KEYS = ("code", "accountCode", "Account_Code")
ACCOUNT_NAME_KEYS = ("name", "accountName", "Account_Name")
ACCOUNT_TYPE_KEYS = ("type", "accountType", "Account_Type", "account_type")
ACCOUNT_PARENT_KEYS = ("parentId", "parent_id", "Parent_ID")
ACCOUNT_SYSTEM_TAG_KEYS = ("systemTag", "system_tag", "System_Tag")
ACCOUNT_IS_CASH_KEYS = ("isCash", "is_cash", "Is_Cash")
ACCOUNT_SUB_TYPE_KEYS = ("subType", "sub_type", "Sub_Type")
ACCOUNT_BALANCE_KEYS = ("balance", "Balance", "openingBalance")

ENTRY_ID_KEYS = ("id", "entryId", "Entry_ID")
ENTRY_NUMBER_KEYS = ("number", "journalNo", "entryNumber", "Entry_No")
ENTRY_DATE_KEYS = ("date", "Date", "entryDate", "valueDate")
ENTRY_CREATED_AT_KEYS = ("createdAt", "created_at", "Created_At")
ENTRY_SOURCE_KEYS = ("source", "entryType", "Entry_Type")
ENTRY_DESCRIPTION_KEYS = ("description", "note", "Description")
ENTRY_STATUS_KEYS = ("status", "Status")
ENTRY_LINES_KEYS = ("lines", "Lines", "details")
ENTRY_YEAR_KEYS = ("academicYearId", "Academic_Year_ID", "yearId", "Year_ID", "year")
ENTRY_IS_BALANCED_KEYS = ("isBalanced", "is_balanced")

LINE_ACCOUNT_KEYS = ("accountId", "Account_ID", "account_id")
LINE_DEBIT_KEYS = ("debit", "Debit")
LINE_CREDIT_KEYS = ("credit", "Credit")
LINE_NOTE_KEYS = ("note", "memo", "Note")

INVOICE_ID_KEYS = ("id", "Invoice_ID", "invoiceId", "serial")
STUDENT_REF_KEYS = ("Student_ID", "studentId", "StudentId")
INVOICE_YEAR_KEYS = (
    "academicYearId",
    "Academic_Year_ID",
    "AcademicYearId",
    "Year_ID",
    "yearId",
)
INVOICE_STATUS_KEYS = ("Status", "status", "Approval_Status", "approvalStatus")
INVOICE_APPROVED_FLAG_KEYS = ("isPosted", "Is_Approved", "isApproved")
INVOICE_VOIDED_FLAG_KEYS = ("isVoided", "Is_Voided")
INVOICE_GRADE_KEYS = ("gradeId", "Grade_ID")
INVOICE_ITEMS_KEYS = ("items", "Items", "InvoiceItems", "invoiceItems", "details", "lines")
INVOICE_DISCOUNTS_KEYS = ("discounts", "Discounts")
INVOICE_HEADER_DISCOUNT_KEYS = ("discountTotal", "Discount_Total", "discount")
INVOICE_TOTAL_KEYS = ("Total", "total", "totalAmount", "amount")
INVOICE_PAID_KEYS = ("Paid", "paid", "paidAmount", "collected")
INVOICE_DATE_KEYS = ("Date", "date", "Invoice_Date", "createdAt")
DISCOUNT_AMOUNT_KEYS = ("amount", "Amount", "value")

ITEM_FEE_HEAD_KEYS = ("feeHeadId", "Fee_ID", "feeId", "FeeHeadId")
ITEM_NAME_KEYS = ("feeName", "Fee_Name", "name", "Item_Name", "itemName")
ITEM_AMOUNT_KEYS = ("amount", "Amount", "value", "Price")

STUDENT_ID_KEYS = ("Student_ID", "Student_Global_ID", "Enroll_ID", "id")
STUDENT_NAME_KEYS = ("Name_Ar", "Name_En", "name")
STUDENT_YEAR_KEYS = ("Academic_Year_ID", "Year_ID")
STUDENT_GRADE_KEYS = ("Grade_ID", "GradeId", "gradeId")
STUDENT_CLASS_KEYS = ("Class_ID", "ClassId", "classId")
STUDENT_CLASS_NAME_KEYS = ("Class_Name", "className", "Class")
STUDENT_GRADE_NAME_KEYS = ("Grade_Name", "gradeName", "Level", "grade")
STUDENT_STAGE_KEYS = ("Stage_ID", "StageId", "stageId")
STUDENT_CODE_KEYS = ("Student_Global_ID", "Student_ID")

# Parent contact: the nested parent record wins, then the flat student keys.
PARENT_RECORD_KEYS = ("Father", "Guardian", "Parent")
PARENT_RECORD_ID_KEYS = ("Parent_ID",)
PARENT_RECORD_NAME_KEYS = ("Name",)
PARENT_RECORD_MOBILE_KEYS = ("Mobile", "Phone")
STUDENT_PARENT_ID_KEYS = ("Parent_ID", "Guardian_ID", "GuardianId", "Father_ID")
STUDENT_PARENT_NAME_KEYS = ("Guardian_Name", "Father_Name")
STUDENT_PARENT_MOBILE_KEYS = (
    "Guardian_Phone",
    "Guardian_Mobile",
    "Father_Mobile",
)

GRADE_ID_KEYS = ("Grade_ID", "id")
GRADE_NAME_KEYS = ("Grade_Name", "name")
GRADE_STAGE_KEYS = ("Stage_ID", "stageId")
STAGE_ID_KEYS = ("Stage_ID", "id")
STAGE_NAME_KEYS = ("Stage_Name", "name")
CLASS_ID_KEYS = ("Class_ID", "id")
CLASS_NAME_KEYS = ("Class_Name", "name")
CLASS_GRADE_KEYS = ("Grade_ID", "gradeId")
FEE_HEAD_ID_KEYS = ("id", "Fee_ID", "feeHeadId")
FEE_HEAD_NAME_KEYS = ("name", "Item_Name", "Fee_Name")
FEE_ITEM_ID_KEYS = ("Fee_ID", "id", "feeHeadId")
FEE_ITEM_NAME_KEYS = ("Item_Name", "name", "Fee_Name")

DEFAULT_APPROVED_STATUSES = ("APPROVED", "POSTED", "FINAL")
_VOID_STATUSES = frozenset({"VOID", "VOIDED"})

# =========================================================================
# Primitive resolution helpers
# =========================================================================


def first_value(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the first defined, non-empty value among ``keys``."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def normalize_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()


def parse_date(value: Any) -> date | None:
    """Parse an ISO date/datetime; ``None`` when missing or malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes"):
        return True
    if text in ("false", "0", "no"):
        return False
    return None


def _text(raw: Mapping[str, Any], keys: tuple[str, ...], default: str = "") -> str:
    value = first_value(raw, keys)
    return default if value is None else str(value).strip()


def _records(value: Any) -> list[Mapping[str, Any]]:
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, Mapping)]
    return []


def _require(name: str, records: Iterable[Any] | None) -> list[Any]:
    if records is None:
        raise ReportInputError(name, "must be a list, got None")
    if isinstance(records, (str, bytes, Mapping)):
        raise ReportInputError(name, f"must be a list, got {type(records).__name__}")
    return list(records)


def _log_rejected(kind: str, total: int, kept: int) -> None:
    if kept < total:
        logger.warning(
            "records_rejected",
            extra={"record_kind": kind, "total": total, "rejected": total - kept},
        )


# =========================================================================
# Ledger records
# =========================================================================


def adapt_account(raw: Any) -> Account | None:
    """Resolve one account record; ``None`` without an id."""
    if not isinstance(raw, Mapping):
        return None
    account_id = normalize_id(first_value(raw, ACCOUNT_ID_KEYS))
    if account_id is None:
        return None
    system_tag = _text(raw, ACCOUNT_SYSTEM_TAG_KEYS).upper() or None
    sub_type = _text(raw, ACCOUNT_SUB_TYPE_KEYS).upper() or None
    return Account(
        id=account_id,
        code=_text(raw, ACCOUNT_CODE_KEYS, account_id),
        name=_text(raw, ACCOUNT_NAME_KEYS, account_id),
        account_type=AccountType.parse(first_value(raw, ACCOUNT_TYPE_KEYS)),
        parent_id=normalize_id(first_value(raw, ACCOUNT_PARENT_KEYS)),
        system_tag=system_tag,
        is_cash=bool(parse_bool(first_value(raw, ACCOUNT_IS_CASH_KEYS))),
        sub_type=sub_type,
        balance=to_decimal(first_value(raw, ACCOUNT_BALANCE_KEYS)),
    )


def adapt_journal_line(raw: Any) -> JournalLine | None:
    """Resolve one journal line; ``None`` without an account id."""
    if not isinstance(raw, Mapping):
        return None
    account_id = normalize_id(first_value(raw, LINE_ACCOUNT_KEYS))
    if account_id is None:
        return None
    return JournalLine(
        account_id=account_id,
        debit=to_decimal(first_value(raw, LINE_DEBIT_KEYS)),
        credit=to_decimal(first_value(raw, LINE_CREDIT_KEYS)),
        note=_text(raw, LINE_NOTE_KEYS),
    )


def adapt_journal_entry(raw: Any) -> JournalEntry | None:
    """
    Resolve one journal entry; ``None`` without an id or number.

    An entry missing one of id/number borrows the other, so every
    canonical entry has both.  Lines without an account id are dropped.
    """
    if not isinstance(raw, Mapping):
        return None
    entry_id = normalize_id(first_value(raw, ENTRY_ID_KEYS))
    number = normalize_id(first_value(raw, ENTRY_NUMBER_KEYS))
    if entry_id is None and number is None:
        return None
    lines = tuple(
        line
        for line in (
            adapt_journal_line(r)
            for r in _records(first_value(raw, ENTRY_LINES_KEYS))
        )
        if line is not None
    )
    return JournalEntry(
        id=entry_id or number,
        number=number or entry_id,
        entry_date=parse_date(first_value(raw, ENTRY_DATE_KEYS)),
        created_at=parse_date(first_value(raw, ENTRY_CREATED_AT_KEYS)),
        source=_text(raw, ENTRY_SOURCE_KEYS),
        description=_text(raw, ENTRY_DESCRIPTION_KEYS),
        status=EntryStatus.parse(first_value(raw, ENTRY_STATUS_KEYS)),
        lines=lines,
        academic_year_id=normalize_id(first_value(raw, ENTRY_YEAR_KEYS)),
        is_balanced=parse_bool(first_value(raw, ENTRY_IS_BALANCED_KEYS)),
    )


def adapt_accounts(records: Iterable[Any] | None) -> tuple[Account, ...]:
    raw = _require("accounts", records)
    accounts = tuple(a for a in (adapt_account(r) for r in raw) if a is not None)
    _log_rejected("account", len(raw), len(accounts))
    return accounts


def adapt_journal_entries(records: Iterable[Any] | None) -> tuple[JournalEntry, ...]:
    raw = _require("entries", records)
    entries = tuple(
        e for e in (adapt_journal_entry(r) for r in raw) if e is not None
    )
    _log_rejected("journal_entry", len(raw), len(entries))
    return entries


def build_snapshot(
    accounts: Iterable[Any] | None,
    entries: Iterable[Any] | None,
) -> LedgerSnapshot:
    """
    Adapt raw accounts and entries into a ``LedgerSnapshot``.

    Already-canonical ``Account`` / ``JournalEntry`` instances pass
    through unchanged.
    """
    acct_list = _require("accounts", accounts)
    entry_list = _require("entries", entries)
    if all(isinstance(a, Account) for a in acct_list):
        canonical_accounts = tuple(acct_list)
    else:
        canonical_accounts = adapt_accounts(
            [a for a in acct_list if not isinstance(a, Account)]
        )
        canonical_accounts = tuple(
            a for a in acct_list if isinstance(a, Account)
        ) + canonical_accounts
    if all(isinstance(e, JournalEntry) for e in entry_list):
        canonical_entries = tuple(entry_list)
    else:
        canonical_entries = tuple(
            e
            for e in (
                raw if isinstance(raw, JournalEntry) else adapt_journal_entry(raw)
                for raw in entry_list
            )
            if e is not None
        )
        _log_rejected("journal_entry", len(entry_list), len(canonical_entries))
    return LedgerSnapshot(accounts=canonical_accounts, entries=canonical_entries)


# =========================================================================
# Receivable records
# =========================================================================


def adapt_invoice_item(raw: Any) -> InvoiceItem | None:
    if not isinstance(raw, Mapping):
        return None
    return InvoiceItem(
        fee_head_id=normalize_id(first_value(raw, ITEM_FEE_HEAD_KEYS)),
        name=_text(raw, ITEM_NAME_KEYS) or None,
        amount=to_decimal(first_value(raw, ITEM_AMOUNT_KEYS)),
    )


def adapt_invoice(
    raw: Any,
    approved_statuses: tuple[str, ...] = DEFAULT_APPROVED_STATUSES,
) -> Invoice | None:
    """
    Resolve one invoice; ``None`` without a student id.

    Approval: the status text is one of ``approved_statuses`` or any of
    the approval flags is true.  Voided: a voided flag is true or the
    status text is VOID/VOIDED.
    """
    if not isinstance(raw, Mapping):
        return None
    student_id = normalize_id(first_value(raw, STUDENT_REF_KEYS))
    if student_id is None:
        return None
    status = _text(raw, INVOICE_STATUS_KEYS).upper()
    approved = status in approved_statuses or any(
        parse_bool(raw.get(key)) is True for key in INVOICE_APPROVED_FLAG_KEYS
    )
    voided = status in _VOID_STATUSES or any(
        parse_bool(raw.get(key)) is True for key in INVOICE_VOIDED_FLAG_KEYS
    )
    items = tuple(
        item
        for item in (
            adapt_invoice_item(r)
            for r in _records(first_value(raw, INVOICE_ITEMS_KEYS))
        )
        if item is not None
    )
    listed_discounts = sum_money(
        to_decimal(first_value(d, DISCOUNT_AMOUNT_KEYS))
        for d in _records(first_value(raw, INVOICE_DISCOUNTS_KEYS))
    )
    header_discount = to_decimal(first_value(raw, INVOICE_HEADER_DISCOUNT_KEYS))
    invoice_id = normalize_id(first_value(raw, INVOICE_ID_KEYS)) or student_id
    return Invoice(
        id=invoice_id,
        student_id=student_id,
        academic_year_id=normalize_id(first_value(raw, INVOICE_YEAR_KEYS)),
        grade_id=normalize_id(first_value(raw, INVOICE_GRADE_KEYS)),
        is_approved=approved,
        is_voided=voided,
        items=items,
        discount_total=listed_discounts + header_discount,
        total=to_decimal(first_value(raw, INVOICE_TOTAL_KEYS)),
        paid=to_decimal(first_value(raw, INVOICE_PAID_KEYS)),
        invoice_date=parse_date(first_value(raw, INVOICE_DATE_KEYS)),
    )


def _parent_value(
    raw: Mapping[str, Any],
    parent: Mapping[str, Any] | None,
    record_keys: tuple[str, ...],
    student_keys: tuple[str, ...],
) -> Any:
    if parent is not None:
        value = first_value(parent, record_keys)
        if value is not None:
            return value
    return first_value(raw, student_keys)


def adapt_student(raw: Any) -> Student | None:
    if not isinstance(raw, Mapping):
        return None
    student_id = normalize_id(first_value(raw, STUDENT_ID_KEYS))
    if student_id is None:
        return None
    parent = next(
        (
            raw[key] for key in PARENT_RECORD_KEYS
            if isinstance(raw.get(key), Mapping) and raw[key]
        ),
        None,
    )
    parent_name = _parent_value(raw, parent, PARENT_RECORD_NAME_KEYS, STUDENT_PARENT_NAME_KEYS)
    parent_mobile = _parent_value(
        raw, parent, PARENT_RECORD_MOBILE_KEYS, STUDENT_PARENT_MOBILE_KEYS,
    )
    return Student(
        id=student_id,
        name=_text(raw, STUDENT_NAME_KEYS, student_id),
        academic_year_id=normalize_id(first_value(raw, STUDENT_YEAR_KEYS)),
        grade_id=normalize_id(first_value(raw, STUDENT_GRADE_KEYS)),
        class_id=normalize_id(first_value(raw, STUDENT_CLASS_KEYS)),
        class_name=normalize_text(first_value(raw, STUDENT_CLASS_NAME_KEYS)) or None,
        grade_name=normalize_text(first_value(raw, STUDENT_GRADE_NAME_KEYS)) or None,
        stage_id=normalize_id(first_value(raw, STUDENT_STAGE_KEYS)),
        code=normalize_id(first_value(raw, STUDENT_CODE_KEYS)),
        parent_id=normalize_id(
            _parent_value(raw, parent, PARENT_RECORD_ID_KEYS, STUDENT_PARENT_ID_KEYS)
        ),
        parent_name=None if parent_name is None else str(parent_name).strip(),
        parent_mobile=None if parent_mobile is None else str(parent_mobile).strip(),
    )


def adapt_grade(raw: Any) -> Grade | None:
    if not isinstance(raw, Mapping):
        return None
    grade_id = normalize_id(first_value(raw, GRADE_ID_KEYS))
    if grade_id is None:
        return None
    return Grade(
        id=grade_id,
        name=_text(raw, GRADE_NAME_KEYS, grade_id),
        stage_id=normalize_id(first_value(raw, GRADE_STAGE_KEYS)),
    )


def adapt_stage(raw: Any) -> Stage | None:
    if not isinstance(raw, Mapping):
        return None
    stage_id = normalize_id(first_value(raw, STAGE_ID_KEYS))
    if stage_id is None:
        return None
    return Stage(id=stage_id, name=_text(raw, STAGE_NAME_KEYS, stage_id))


def adapt_class(raw: Any) -> SchoolClass | None:
    if not isinstance(raw, Mapping):
        return None
    class_id = normalize_id(first_value(raw, CLASS_ID_KEYS))
    if class_id is None:
        return None
    return SchoolClass(
        id=class_id,
        name=_text(raw, CLASS_NAME_KEYS, class_id),
        grade_id=normalize_id(first_value(raw, CLASS_GRADE_KEYS)),
    )


def adapt_fee_head(raw: Any, catalogue_item: bool = False) -> FeeHead | None:
    """Resolve a fee head, or a fee catalogue item when ``catalogue_item``."""
    if not isinstance(raw, Mapping):
        return None
    id_keys = FEE_ITEM_ID_KEYS if catalogue_item else FEE_HEAD_ID_KEYS
    name_keys = FEE_ITEM_NAME_KEYS if catalogue_item else FEE_HEAD_NAME_KEYS
    fee_id = normalize_id(first_value(raw, id_keys))
    if fee_id is None:
        return None
    name = _text(raw, name_keys)
    if not name:
        return None
    return FeeHead(id=fee_id, name=name)


def build_receivables_context(
    invoices: Iterable[Any] | None,
    students: Iterable[Any] | None,
    grades: Iterable[Any] | None = (),
    stages: Iterable[Any] | None = (),
    classes: Iterable[Any] | None = (),
    fee_heads: Iterable[Any] | None = (),
    fee_items: Iterable[Any] | None = (),
    approved_statuses: tuple[str, ...] = DEFAULT_APPROVED_STATUSES,
) -> ReceivablesContext:
    """
    Adapt every receivables source into one ``ReceivablesContext``.

    ``invoices`` and ``students`` are required; the lookup sources may be
    ``None`` or empty.  Fee head names take priority over fee catalogue
    item names for the same id.
    """
    raw_invoices = _require("invoices", invoices)
    raw_students = _require("students", students)

    adapted_invoices = tuple(
        inv
        for inv in (adapt_invoice(r, approved_statuses) for r in raw_invoices)
        if inv is not None
    )
    _log_rejected("invoice", len(raw_invoices), len(adapted_invoices))

    student_map: dict[str, Student] = {}
    for student in (adapt_student(r) for r in raw_students):
        if student is not None:
            student_map.setdefault(student.id, student)

    grade_map: dict[str, Grade] = {}
    grade_by_name: dict[str, str] = {}
    for grade in (adapt_grade(r) for r in (grades or ())):
        if grade is not None:
            grade_map.setdefault(grade.id, grade)
            grade_by_name.setdefault(normalize_text(grade.name), grade.id)

    stage_map = {
        s.id: s for s in (adapt_stage(r) for r in (stages or ())) if s is not None
    }

    class_map: dict[str, SchoolClass] = {}
    grade_by_class_name: dict[str, str] = {}
    for klass in (adapt_class(r) for r in (classes or ())):
        if klass is not None:
            class_map.setdefault(klass.id, klass)
            if klass.grade_id:
                grade_by_class_name.setdefault(normalize_text(klass.name), klass.grade_id)

    fee_names: dict[str, str] = {}
    for item in (adapt_fee_head(r, catalogue_item=True) for r in (fee_items or ())):
        if item is not None:
            fee_names.setdefault(item.id, item.name)
    head_names: dict[str, str] = {}
    for head in (adapt_fee_head(r) for r in (fee_heads or ())):
        if head is not None:
            head_names.setdefault(head.id, head.name)
    fee_names.update(head_names)

    return ReceivablesContext(
        invoices=adapted_invoices,
        students=student_map,
        grades=grade_map,
        stages=stage_map,
        classes=class_map,
        fee_names=fee_names,
        grade_id_by_name=grade_by_name,
        grade_id_by_class_name=grade_by_class_name,
    )


# =========================================================================
# Correlation rules
# =========================================================================


def resolve_student_grade(student: Student | None, ctx: ReceivablesContext) -> str | None:
    """
    Grade of a student, in priority order: the student's own grade id,
    the grade of their class (by id, then by class name), then the grade
    whose name matches the student's grade name.
    """
    if student is None:
        return None
    if student.grade_id:
        return student.grade_id
    if student.class_id:
        klass = ctx.classes.get(student.class_id)
        if klass is not None and klass.grade_id:
            return klass.grade_id
    if student.class_name:
        grade_id = ctx.grade_id_by_class_name.get(student.class_name)
        if grade_id:
            return grade_id
    if student.grade_name:
        return ctx.grade_id_by_name.get(student.grade_name)
    return None


def resolve_student_stage(student: Student | None, ctx: ReceivablesContext) -> str | None:
    """The student's own stage id, else the stage of their resolved grade."""
    if student is None:
        return None
    if student.stage_id:
        return student.stage_id
    grade = ctx.grades.get(resolve_student_grade(student, ctx) or "")
    return grade.stage_id if grade is not None else None


def resolve_invoice_grade(invoice: Invoice, ctx: ReceivablesContext) -> str | None:
    """The invoice's own grade tag, else the invoiced student's grade."""
    if invoice.grade_id:
        return invoice.grade_id
    return resolve_student_grade(ctx.students.get(invoice.student_id), ctx)


def resolve_invoice_year(invoice: Invoice, ctx: ReceivablesContext) -> str | None:
    """The invoice's own year tag, else the invoiced student's year."""
    if invoice.academic_year_id:
        return invoice.academic_year_id
    student = ctx.students.get(invoice.student_id)
    return student.academic_year_id if student is not None else None


def resolve_fee_name(item: InvoiceItem, ctx: ReceivablesContext) -> str:
    """Catalogue name for the item's fee head, else its own name, else the id."""
    if item.fee_head_id and item.fee_head_id in ctx.fee_names:
        return ctx.fee_names[item.fee_head_id]
    return item.name or item.fee_head_id or "—"
