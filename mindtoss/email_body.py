"""Render the branded HTML and plain-text bodies of a toss email."""

from __future__ import annotations

import html
from datetime import datetime

from .models import TossType

_CARD = "background: white; padding: 16px; border-radius: 8px; border-left: 4px solid #FF6B35;"

_HEADER = """\
<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: linear-gradient(135deg, #FF6B35 0%, #FF8C42 100%); padding: 20px; border-radius: 12px 12px 0 0;">
    <h2 style="color: white; margin: 0; font-size: 24px;">MindToss</h2>
    <p style="color: rgba(255,255,255,0.9); margin: 8px 0 0 0; font-size: 14px;">Your thought has arrived!</p>
  </div>
  <div style="background: #f9f9f9; padding: 24px; border-radius: 0 0 12px 12px;">
"""

_FOOTER = """\
    <p style="margin: 24px 0 0 0; font-size: 12px; color: #999; text-align: center;">
      Sent from MindToss &bull; {sent_at}
    </p>
  </div>
</div>
"""


def subject_for(now: datetime) -> str:
    return f"MindToss: {now.strftime('%x')}"


def _content_block(toss_type: TossType, content: str, has_attachment: bool) -> str:
    safe = html.escape(content)
    if toss_type is TossType.TEXT:
        body = safe.replace("\n", "<br>")
        return (
            f'<div style="{_CARD}">'
            f'<p style="margin: 0; font-size: 16px; line-height: 1.6; color: #333;">{body}</p>'
            "</div>"
        )
    if toss_type is TossType.VOICE:
        return (
            f'<div style="{_CARD}">'
            '<p style="margin: 0; font-size: 14px; color: #666;">&#127897; Voice memo attached</p>'
            f'<p style="margin: 8px 0 0 0; font-size: 16px; color: #333;">{safe}</p>'
            "</div>"
        )
    image = (
        '<img src="cid:photo" style="max-width: 100%; border-radius: 8px; margin-top: 12px;" />'
        if has_attachment
        else ""
    )
    caption = f'<p style="margin: 12px 0 0 0; font-size: 16px; color: #333;">{safe}</p>' if content else ""
    return (
        f'<div style="{_CARD}">'
        '<p style="margin: 0; font-size: 14px; color: #666;">&#128247; Photo attached</p>'
        f"{image}{caption}"
        "</div>"
    )


def render_html(
    toss_type: TossType,
    content: str,
    *,
    has_attachment: bool = False,
    sent_at: datetime | None = None,
) -> str:
    sent_at = sent_at or datetime.now()
    return (
        _HEADER
        + "    "
        + _content_block(toss_type, content, has_attachment)
        + "\n"
        + _FOOTER.format(sent_at=html.escape(sent_at.strftime("%c")))
    )


def render_text(
    toss_type: TossType,
    content: str,
    *,
    sent_at: datetime | None = None,
) -> str:
    sent_at = sent_at or datetime.now()
    lead = {
        TossType.TEXT: "",
        TossType.VOICE: "Voice memo attached\n",
        TossType.PHOTO: "Photo attached\n",
    }[toss_type]
    return f"{lead}{content}\n\n-- Sent from MindToss - {sent_at.strftime('%c')}\n"
