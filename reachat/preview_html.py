"""
LivePreview HTML generation for action cards and containers.

Message text is untrusted: every field is cleaned with bleach before it is
interpolated, so a preview can never carry markup from the conversation.
"""

import logging
from typing import Dict

import bleach

logger = logging.getLogger(__name__)

FONT_STACK = "-apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif"

ACTION_VARIANT_COLORS: Dict[str, Dict[str, str]] = {
    'default': {'bg': '#f8fafc', 'border': '#cbd5e1', 'button': '#3b82f6', 'button_hover': '#2563eb'},
    'primary': {'bg': '#eff6ff', 'border': '#93c5fd', 'button': '#3b82f6', 'button_hover': '#2563eb'},
    'success': {'bg': '#f0fdf4', 'border': '#86efac', 'button': '#10b981', 'button_hover': '#059669'},
    'warning': {'bg': '#fffbeb', 'border': '#fcd34d', 'button': '#f59e0b', 'button_hover': '#d97706'},
    'danger': {'bg': '#fef2f2', 'border': '#fca5a5', 'button': '#ef4444', 'button_hover': '#dc2626'},
}

CONTAINER_VARIANT_STYLES: Dict[str, Dict[str, str]] = {
    'info': {'bg': '#eff6ff', 'border': '#3b82f6', 'icon': 'ℹ️', 'title_color': '#1e40af'},
    'success': {'bg': '#f0fdf4', 'border': '#10b981', 'icon': '✅', 'title_color': '#065f46'},
    'warning': {'bg': '#fffbeb', 'border': '#f59e0b', 'icon': '⚠️', 'title_color': '#92400e'},
    'error': {'bg': '#fef2f2', 'border': '#ef4444', 'icon': '❌', 'title_color': '#991b1b'},
    'neutral': {'bg': '#f8fafc', 'border': '#94a3b8', 'icon': '📝', 'title_color': '#334155'},
}


def clean_text(value: str) -> str:
    """Strip tags and escape what is left so the value is safe inside HTML."""
    if not value:
        return ''
    cleaned = bleach.clean(value, tags=set(), attributes={}, strip=True, strip_comments=True)
    if cleaned != value:
        logger.debug("🛡️ PREVIEW: Sanitized field before interpolation")
    return cleaned


def generate_action_card_html(title: str, description: str = '', variant: str = 'default') -> str:
    """HTML for an ActionCard preview, unknown variants use the default colours."""
    colors = ACTION_VARIANT_COLORS.get(variant, ACTION_VARIANT_COLORS['default'])
    title = clean_text(title)
    description = clean_text(description)

    description_html = (
        f'<p style="margin: 0 0 16px 0; font-size: 14px; color: #6b7280; line-height: 1.5;">{description}</p>'
        if description else ''
    )

    return (
        f'<div style="background: {colors["bg"]}; border: 2px solid {colors["border"]}; border-radius: 12px; '
        f'padding: 20px; max-width: 400px; font-family: {FONT_STACK};">\n'
        f'  <h3 style="margin: 0 0 8px 0; font-size: 18px; font-weight: 600; color: #1f2937;">{title}</h3>\n'
        f'  {description_html}\n'
        f'  <button style="padding: 10px 20px; background: {colors["button"]}; color: white; border: none; '
        f'border-radius: 6px; font-size: 14px; font-weight: 600; cursor: pointer; transition: background 0.2s;" '
        f'onmouseover="this.style.background=\'{colors["button_hover"]}\'" '
        f'onmouseout="this.style.background=\'{colors["button"]}\'">\n'
        f'    Action\n'
        f'  </button>\n'
        f'</div>'
    )


def generate_container_html(variant: str, title: str = '', content: str = '') -> str:
    """HTML for a CustomContainer preview, unknown variants fall back to neutral."""
    styles = CONTAINER_VARIANT_STYLES.get(variant, CONTAINER_VARIANT_STYLES['neutral'])
    title = clean_text(title)
    content = clean_text(content)

    title_html = ''
    if title:
        title_html = (
            f'<div style="display: flex; align-items: center; gap: 8px; margin-bottom: 8px;">\n'
            f'    <span style="font-size: 18px;">{styles["icon"]}</span>\n'
            f'    <h4 style="margin: 0; font-size: 16px; font-weight: 600; color: {styles["title_color"]};">{title}</h4>\n'
            f'  </div>'
        )

    return (
        f'<div style="background: {styles["bg"]}; border-left: 4px solid {styles["border"]}; border-radius: 6px; '
        f'padding: 16px; max-width: 500px; font-family: {FONT_STACK};">\n'
        f'  {title_html}\n'
        f'  <p style="margin: 0; font-size: 14px; color: #374151; line-height: 1.5;">{content}</p>\n'
        f'</div>'
    )
