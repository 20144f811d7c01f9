# chaussettes/utils/sanitize.py - Nettoyage des saisies utilisateur (anti-XSS)
import re
from typing import Optional

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
_PHONE_RE = re.compile(r"[^\d+\s-]")
_PHONE_FORMAT_RE = re.compile(r"^[+\d][\d\s-]{6,20}$")


def strip_html(value: str) -> str:
    value = _SCRIPT_RE.sub("", value)
    value = _STYLE_RE.sub("", value)
    value = _TAG_RE.sub("", value)
    value = _JS_PROTOCOL_RE.sub("", value)
    value = _EVENT_HANDLER_RE.sub("", value)
    return value.strip()


def sanitize_text(value: Optional[str]) -> str:
    """Supprime le HTML et normalise les espaces"""
    if not value:
        return ""
    return re.sub(r"\s+", " ", strip_html(value)).strip()


def sanitize_email(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.strip().lower()


def sanitize_phone(value: Optional[str]) -> str:
    """Garde uniquement les chiffres, +, espaces et tirets"""
    if not value:
        return ""
    return _PHONE_RE.sub("", value).strip()


def is_valid_phone(value: str) -> bool:
    return not value or bool(_PHONE_FORMAT_RE.match(value))

