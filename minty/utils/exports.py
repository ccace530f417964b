# minty/utils/exports.py
import csv
import io
from datetime import datetime
from typing import Any, Iterable, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from minty.utils.aggregation import category_names, resolve_category_name, type_of

CATEGORY_COLUMNS = ["id", "name", "type", "color", "monthly_limit", "alert_enabled", "alert_threshold"]
BUDGET_COLUMNS = ["id", "name", "type", "total_amount", "spent_amount", "start_date", "end_date"]
TRANSACTION_COLUMNS = [
    "id", "transaction_date", "description", "type", "amount",
    "category", "budget_id", "notes", "tags",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def category_rows(categories: Iterable[Any]) -> List[List[str]]:
    return [[_cell(getattr(c, col, None)) for col in CATEGORY_COLUMNS] for c in categories]


def budget_rows(budgets: Iterable[Any]) -> List[List[str]]:
    return [[_cell(getattr(b, col, None)) for col in BUDGET_COLUMNS] for b in budgets]


def transaction_rows(transactions: Iterable[Any], categories: Optional[Iterable[Any]] = None) -> List[List[str]]:
    names_by_id = category_names(categories)
    rows = []
    for tx in transactions:
        row = []
        for col in TRANSACTION_COLUMNS:
            if col == "category":
                row.append(resolve_category_name(tx, names_by_id))
            elif col == "type":
                row.append(type_of(tx))
            else:
                row.append(_cell(getattr(tx, col, None)))
        rows.append(row)
    return rows


def build_csv(categories: Iterable[Any], budgets: Iterable[Any], transactions: Iterable[Any]) -> str:
    """One section per collection: a "# Name" marker, a header row, the data, then a blank line."""
    categories = list(categories or [])
    sections = [
        ("Categories", CATEGORY_COLUMNS, category_rows(categories)),
        ("Budgets", BUDGET_COLUMNS, budget_rows(budgets or [])),
        ("Transactions", TRANSACTION_COLUMNS, transaction_rows(transactions or [], categories)),
    ]

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for index, (title, columns, rows) in enumerate(sections):
        if index:
            writer.writerow([])
        writer.writerow([f"# {title}"])
        writer.writerow(columns)
        writer.writerows(rows)
    return buffer.getvalue()


def build_pdf(
    categories: Iterable[Any],
    budgets: Iterable[Any],
    transactions: Iterable[Any],
    generated_at: Optional[datetime] = None,
    title: str = "Minty Financial Report",
) -> bytes:
    """Paginated report with one table per collection; header rows repeat on every page."""
    generated_at = generated_at or datetime.utcnow()
    categories = list(categories or [])
    styles = getSampleStyleSheet()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), title=title)
    table_style = TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#16a34a")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f3f4f6")]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ])

    story = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated {generated_at.strftime('%Y-%m-%d %H:%M UTC')}", styles["Normal"]),
        Spacer(1, 12),
    ]
    sections = [
        ("Categories", CATEGORY_COLUMNS[1:], [row[1:] for row in category_rows(categories)]),
        ("Budgets", BUDGET_COLUMNS[1:], [row[1:] for row in budget_rows(budgets or [])]),
        ("Transactions", TRANSACTION_COLUMNS[1:], [row[1:] for row in transaction_rows(transactions or [], categories)]),
    ]
    for heading, columns, rows in sections:
        story.append(Paragraph(heading, styles["Heading2"]))
        if rows:
            table = Table([columns] + rows, repeatRows=1)
            table.setStyle(table_style)
            story.append(table)
        else:
            story.append(Paragraph(f"No {heading.lower()} recorded.", styles["Normal"]))
        story.append(Spacer(1, 12))

    doc.build(story)
    return buffer.getvalue()
