"""
PDF summary of an evaluation report.

Averages per question and per area, strengths/weaknesses and the latest
comments. When the filtered sample is below the anonymity threshold the
document only states the sample size.
"""

from datetime import datetime, timezone
from io import BytesIO
from typing import Dict, List, Optional, Union

from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

from teacher_eval.services.aggregation import InsufficientSample, StatsResult
from teacher_eval.services.trends import classify_trends

PDF_COMMENTS = 100
ACCENT = HexColor("#178d63")


def _fmt(value: Optional[float]) -> str:
    return f"{value:.2f}" if value is not None else "-"


class ReportPDF:
    """Builds the evaluation summary with reportlab platypus flowables"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name="ReportTitle",
            parent=self.styles["Title"],
            fontSize=16,
            alignment=TA_CENTER,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name="Section",
            parent=self.styles["Heading2"],
            fontSize=12,
            textColor=ACCENT,
            spaceBefore=10,
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name="Small",
            parent=self.styles["Normal"],
            fontSize=9,
            leading=11,
        ))

    def _p(self, text: str, style: str = "Small") -> Paragraph:
        return Paragraph(escape(text), self.styles[style])

    def _table(self, rows: List[list], col_widths: List[float]) -> Table:
        table = Table(rows, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), ACCENT),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        return table

    def build(self, result: Union[StatsResult, InsufficientSample], labels: Dict[str, str]) -> bytes:
        buf = BytesIO()
        doc = SimpleDocTemplate(
            buf, pagesize=A4,
            leftMargin=1.5 * cm, rightMargin=1.5 * cm, topMargin=1.5 * cm, bottomMargin=1.5 * cm,
            title="Relatório de Avaliação Docente",
        )
        story = [Paragraph("ISPT – Relatório de Avaliação Docente", self.styles["ReportTitle"])]
        story.append(self._p(f"Gerado em: {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC"))
        for label, value in labels.items():
            story.append(self._p(f"{label}: {value}"))
        story.append(Spacer(1, 8))

        if isinstance(result, InsufficientSample):
            story.append(Paragraph("Amostra insuficiente", self.styles["Section"]))
            story.append(self._p(
                f"Foram encontradas {result.count} respostas; são necessárias pelo menos "
                f"{result.threshold} para divulgar resultados e preservar o anonimato."
            ))
            doc.build(story)
            return buf.getvalue()

        story.append(self._p(f"Respostas: {result.count} · Média global: {_fmt(result.overall)}"))

        story.append(Paragraph("Médias por questão (0–2)", self.styles["Section"]))
        rows = [["Código", "Área", "Média", "N", "Questão"]]
        for q in result.questions:
            rows.append([q.code, q.area, _fmt(q.mean), str(q.n), self._p(q.text)])
        story.append(self._table(rows, [1.5 * cm, 3 * cm, 1.5 * cm, 1.2 * cm, 10.8 * cm]))

        story.append(Paragraph("Médias por área", self.styles["Section"]))
        rows = [["Área", "Questões", "Média"]]
        for a in result.areas:
            rows.append([a.area, str(a.n_questions), _fmt(a.mean)])
        story.append(self._table(rows, [6 * cm, 3 * cm, 3 * cm]))

        trends = classify_trends(result.questions)
        story.append(Paragraph("Tendências", self.styles["Section"]))
        if trends.fallback:
            story.append(self._p("Nenhuma questão acima de 1.5 ou abaixo de 1.0; mostram-se as 3 melhores e as 3 piores."))
        story.append(self._p("Pontos fortes:" if not trends.fallback else "Melhores:", "Normal"))
        for q in trends.strengths:
            story.append(self._p(f"• {q.code} ({_fmt(q.mean)}) – {q.text}"))
        if not trends.strengths:
            story.append(self._p("—"))
        story.append(self._p("Pontos a melhorar:" if not trends.fallback else "Piores:", "Normal"))
        for q in trends.weaknesses:
            story.append(self._p(f"• {q.code} ({_fmt(q.mean)}) – {q.text}"))
        if not trends.weaknesses:
            story.append(self._p("—"))

        story.append(Paragraph("Comentários (qualitativo)", self.styles["Section"]))
        if not result.comments:
            story.append(self._p("Sem comentários."))
        for c in result.comments[:PDF_COMMENTS]:
            story.append(self._p(f"• {c.comment}"))

        doc.build(story)
        return buf.getvalue()


def build_pdf(result: Union[StatsResult, InsufficientSample], labels: Dict[str, str]) -> bytes:
    return ReportPDF().build(result, labels)
