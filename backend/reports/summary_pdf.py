"""
One-page PDF restock summary: KPI header, recent restocks and alerts.
Rendered from the overview payload built by dashboard.overview.
"""
import io
from typing import Any, Dict, List

from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas


PAGE_WIDTH, PAGE_HEIGHT = letter
LEFT_RIGHT_MARGIN = 0.55 * 72
TOP_BOTTOM_MARGIN = 0.45 * 72
COLUMN_GAP = 0.25 * 72
COLUMN_WIDTH = (PAGE_WIDTH - (2 * LEFT_RIGHT_MARGIN) - COLUMN_GAP) / 2
CARD_GAP = 8
CARD_HEIGHT = 44

TITLE = "RestocKING"
SUBTITLE_SIZE = 8.5
TITLE_SIZE = 18
HEADER_SIZE = 11
BODY_SIZE = 8.5
BULLET_SIZE = 8.25
BULLET_LINE_HEIGHT = BULLET_SIZE * 1.18


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
    words = text.split()
    if not words:
        return [""]

    lines: list[str] = []
    current = words[0]
    for word in words[1:]:
        trial = f"{current} {word}"
        if stringWidth(trial, font_name, font_size) <= max_width:
            current = trial
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def draw_section_header(pdf: canvas.Canvas, x: float, y: float, title: str) -> float:
    pdf.setFont("Helvetica-Bold", HEADER_SIZE)
    pdf.setFillColorRGB(0.08, 0.13, 0.25)
    pdf.drawString(x, y, title)
    pdf.setLineWidth(0.75)
    pdf.setStrokeColorRGB(0.73, 0.79, 0.9)
    pdf.line(x, y - 3, x + COLUMN_WIDTH, y - 3)
    return y - 12


def draw_bullet_list(pdf: canvas.Canvas, x: float, y: float, items: list[str], min_y: float) -> float:
    """Draws bullets until the column runs out; the rest are summarised in one line."""
    bullet_indent = 10
    text_width = COLUMN_WIDTH - bullet_indent - 4
    pdf.setFont("Helvetica", BULLET_SIZE)
    pdf.setFillColorRGB(0.13, 0.16, 0.22)

    for index, item in enumerate(items):
        wrapped = wrap_text(item, "Helvetica", BULLET_SIZE, text_width)
        needed = len(wrapped) * BULLET_LINE_HEIGHT + 1
        if y - needed < min_y + BULLET_LINE_HEIGHT:
            pdf.drawString(x, y, f"... and {len(items) - index} more")
            return y - BULLET_LINE_HEIGHT
        pdf.drawString(x, y, "-")
        line_y = y
        for line in wrapped:
            pdf.drawString(x + bullet_indent, line_y, line)
            line_y -= BULLET_LINE_HEIGHT
        y = line_y - 1
    return y


def draw_stat_cards(pdf: canvas.Canvas, y: float, cards: List[Dict[str, Any]]) -> float:
    width = (PAGE_WIDTH - 2 * LEFT_RIGHT_MARGIN - CARD_GAP * (len(cards) - 1)) / max(len(cards), 1)
    x = LEFT_RIGHT_MARGIN
    for card in cards:
        pdf.setFillColorRGB(0.97, 0.98, 1.0)
        pdf.roundRect(x, y - CARD_HEIGHT, width, CARD_HEIGHT, 6, fill=1, stroke=0)

        pdf.setFillColorRGB(0.26, 0.34, 0.49)
        pdf.setFont("Helvetica", BODY_SIZE)
        pdf.drawString(x + 8, y - 12, card['label'])

        pdf.setFillColorRGB(0.08, 0.13, 0.25)
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(x + 8, y - 28, str(card['value']))

        sub = card.get('sub') or ''
        if card.get('delta_text'):
            sub = f"{sub} {card['delta_text']}".strip()
            if card.get('direction') == 'up':
                pdf.setFillColorRGB(0.02, 0.47, 0.34)
            else:
                pdf.setFillColorRGB(0.73, 0.11, 0.11)
        pdf.setFont("Helvetica", BODY_SIZE)
        pdf.drawString(x + 8, y - 39, sub)
        x += width + CARD_GAP
    return y - CARD_HEIGHT - 14


def restock_lines(overview: Dict[str, Any]) -> list[str]:
    return [
        f"{item['title']} ({item['marketplace_label']}, {item['supplier']}) "
        f"{item['price_text']} - {item['detected_at_text']}"
        for item in overview['recent_restocks']['items']
    ]


def alert_lines(overview: Dict[str, Any]) -> list[str]:
    return [
        f"[{item['status_pill']}] {item['title']} - {item['supplier']}, {item['when']}"
        for item in overview['alerts_snapshot']
    ]


def render_summary_pdf(overview: Dict[str, Any]) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setTitle(f"{TITLE} restock summary")

    top_y = PAGE_HEIGHT - TOP_BOTTOM_MARGIN
    left_x = LEFT_RIGHT_MARGIN
    right_x = LEFT_RIGHT_MARGIN + COLUMN_WIDTH + COLUMN_GAP

    pdf.setFillColorRGB(0.94, 0.97, 1.0)
    pdf.roundRect(
        LEFT_RIGHT_MARGIN,
        PAGE_HEIGHT - TOP_BOTTOM_MARGIN - 48,
        PAGE_WIDTH - (2 * LEFT_RIGHT_MARGIN),
        42,
        8,
        fill=1,
        stroke=0,
    )

    pdf.setFillColorRGB(0.08, 0.13, 0.25)
    pdf.setFont("Helvetica-Bold", TITLE_SIZE)
    pdf.drawString(left_x + 10, top_y - 18, TITLE)
    pdf.setFont("Helvetica", SUBTITLE_SIZE)
    pdf.setFillColorRGB(0.26, 0.34, 0.49)
    pdf.drawString(left_x + 10, top_y - 31, f"Restock Radar summary generated {overview['generated_at']}")

    y = draw_stat_cards(pdf, PAGE_HEIGHT - TOP_BOTTOM_MARGIN - 60, overview['cards'])

    restocks = restock_lines(overview) or ["No restocks found."]
    alerts = alert_lines(overview) or ["No alerts."]

    left_y = draw_section_header(
        pdf, left_x, y, f"Recent Restocks ({overview['recent_restocks']['count']} events)"
    )
    draw_bullet_list(pdf, left_x, left_y, restocks, TOP_BOTTOM_MARGIN)

    right_y = draw_section_header(pdf, right_x, y, "Alerts Snapshot")
    draw_bullet_list(pdf, right_x, right_y, alerts, TOP_BOTTOM_MARGIN)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
