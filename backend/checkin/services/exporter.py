from datetime import date
from io import BytesIO

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Cm, Pt

from checkin.services.presenter import format_date_display


def set_run_font(run, font_size: float, bold: bool = False):
    run.font.size = Pt(font_size)
    run.font.bold = bold


def fill_row(row, values, bold: bool = False):
    for cell, text in zip(row.cells, values):
        cell.text = ""
        para = cell.paragraphs[0]
        para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        set_run_font(para.add_run(str(text)), 10.5, bold=bold)


def export_results_docx(form_name: str, day: date, table: dict) -> bytes:
    """把某一天的结果表格导出为 Word 文档"""
    doc = Document()

    # ========== 页面：A4 ==========
    section = doc.sections[0]
    section.page_width = Cm(21.0)
    section.page_height = Cm(29.7)
    section.left_margin = Cm(2.0)
    section.right_margin = Cm(2.0)

    # ========== 标题 ==========
    title_para = doc.add_paragraph()
    title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    set_run_font(title_para.add_run(form_name), 18, bold=True)

    sub_para = doc.add_paragraph()
    sub_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    set_run_font(sub_para.add_run(f"{format_date_display(day)} · {len(table['rows'])} responded"), 11)

    # ========== 结果表格 ==========
    row_count = 1 + len(table["rows"]) + (1 if table["total"] else 0)
    doc_table = doc.add_table(rows=row_count, cols=len(table["header"]))
    doc_table.style = "Table Grid"
    doc_table.alignment = WD_TABLE_ALIGNMENT.CENTER

    fill_row(doc_table.rows[0], table["header"], bold=True)
    for i, row in enumerate(table["rows"], start=1):
        fill_row(doc_table.rows[i], row)
    if table["total"]:
        fill_row(doc_table.rows[-1], table["total"], bold=True)

    buffer = BytesIO()
    doc.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()
