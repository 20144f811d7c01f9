import logging
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Optional

import aiosmtplib

from chaussettes.config import settings

logger = logging.getLogger(__name__)

MOIS_FR = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]


async def send_email_async(subject: str, email_to: str, html: str):
    """Envoi best-effort : les erreurs sont journalisées, jamais propagées."""
    if not settings.MAIL_SERVER:
        logger.warning(f"[EMAIL] MAIL_SERVER non configuré, email ignoré pour {email_to}")
        return

    message = EmailMessage()
    message["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM}>"
    message["To"] = email_to
    message["Subject"] = subject
    message.set_content("Ce message nécessite un client email compatible HTML.")
    message.add_alternative(html, subtype="html")

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.MAIL_SERVER,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            start_tls=True,
        )
        logger.info(f"[EMAIL] '{subject}' envoyé à {email_to}")
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(f"[EMAIL] Échec d'envoi à {email_to}: {e}")


def format_date_fr(value: datetime) -> str:
    return f"{value.day} {MOIS_FR[value.month - 1]} {value.year} à {value:%H:%M}"


def _base_layout(title: str, content: str) -> str:
    return (
        '<!DOCTYPE html><html lang="fr"><head><meta charset="UTF-8"></head>'
        '<body style="margin:0;padding:0;background-color:#f4f4f5;font-family:sans-serif;">'
        '<div style="max-width:600px;margin:32px auto;background:#ffffff;border-radius:8px;">'
        '<div style="background:#f97316;padding:24px 32px;">'
        '<h1 style="color:#ffffff;margin:0;font-size:20px;">Concert Chaussettes</h1></div>'
        f'<div style="padding:32px;"><h2 style="color:#18181b;font-size:18px;">{title}</h2>{content}</div>'
        '<div style="padding:16px 32px;background:#f4f4f5;text-align:center;">'
        f'<p style="color:#71717a;font-size:12px;margin:0;">'
        f'<a href="{settings.APP_URL}">{settings.APP_URL}</a></p></div>'
        '</div></body></html>'
    )


def _row(label: str, value: str) -> str:
    return f"<p style=\"margin:4px 0;\"><strong>{escape(label)} :</strong> {escape(value)}</p>"


def _stars(note: int) -> str:
    return "★" * note + "☆" * (5 - note)


async def notify_inscription(
    *,
    guest_nom: str,
    guest_prenom: Optional[str],
    guest_email: str,
    nombre_personnes: int,
    status: str,
    concert_titre: str,
    concert_date: datetime,
    concert_ville: Optional[str],
    concert_url: str,
    organisateur_email: Optional[str],
):
    """Confirmation à l'invité + notification à l'organisateur"""
    full_name = " ".join(filter(None, [guest_prenom, guest_nom]))
    confirmed = status == "CONFIRMED"
    status_text = (
        "Votre inscription est confirmée !" if confirmed
        else "Le concert est complet : vous êtes sur liste d'attente."
    )
    details = (
        _row("Concert", concert_titre)
        + _row("Date", format_date_fr(concert_date))
        + (_row("Ville", concert_ville) if concert_ville else "")
        + _row("Nombre de personnes", str(nombre_personnes))
    )

    guest_html = _base_layout(
        escape(concert_titre),
        f"<p>{status_text}</p>{details}"
        f'<p><a href="{concert_url}">Voir le concert</a></p>'
        "<p style=\"color:#71717a;font-size:12px;\">Pour modifier ou annuler votre inscription, "
        "retrouvez-la depuis la page du concert avec votre email.</p>",
    )
    label = "Confirmation" if confirmed else "Liste d'attente"
    await send_email_async(f"{label} - {concert_titre}", guest_email, guest_html)

    if organisateur_email:
        org_html = _base_layout(
            "Nouvelle inscription",
            f"<p><strong>{escape(full_name)}</strong> s'est inscrit à votre concert "
            f"<strong>{escape(concert_titre)}</strong>.</p>"
            + _row("Email", guest_email)
            + _row("Nombre de personnes", str(nombre_personnes))
            + _row("Statut", label),
        )
        await send_email_async(f"Nouvelle inscription - {concert_titre}", organisateur_email, org_html)


async def notify_avis_received(
    *,
    groupe_contact_email: str,
    groupe_nom: str,
    auteur_nom: Optional[str],
    auteur_type: str,
    note: int,
    commentaire: Optional[str],
    concert_titre: Optional[str],
):
    auteur_label = "organisateur" if auteur_type == "ORGANIZER" else "invité"
    content = (
        f"<p>Vous avez reçu un nouvel avis de <strong>{escape(auteur_nom or 'Anonyme')}</strong> "
        f"({auteur_label}) pour <strong>{escape(groupe_nom)}</strong>.</p>"
        f"<p style=\"font-size:20px;color:#f59e0b;\">{_stars(note)} {note}/5</p>"
    )
    if commentaire:
        content += f"<p><em>&laquo; {escape(commentaire)} &raquo;</em></p>"
    if concert_titre:
        content += _row("Concert", concert_titre)
    await send_email_async(f"Nouvel avis pour {groupe_nom}", groupe_contact_email, _base_layout("Nouvel avis", content))


async def notify_review_invitation(*, guest_email: str, guest_nom: str, concert_titre: str,
                                   groupe_nom: str, review_url: str):
    content = (
        f"<p>Bonjour {escape(guest_nom)},</p>"
        f"<p>Merci d'être venu(e) au concert <strong>{escape(concert_titre)}</strong> ! "
        f"Qu'avez-vous pensé de <strong>{escape(groupe_nom)}</strong> ?</p>"
        f'<p><a href="{review_url}">Laisser un avis</a></p>'
        "<p style=\"color:#71717a;font-size:12px;\">Ce lien est personnel. Ne le partagez pas.</p>"
    )
    await send_email_async(f"Votre avis sur {groupe_nom}", guest_email, _base_layout("Votre avis compte", content))


async def notify_devis_received(*, groupe_contact_email: str, groupe_nom: str, requester_nom: str,
                                requester_email: str, requester_telephone: Optional[str],
                                date_souhaitee: datetime, nombre_invites: Optional[str], lieu: str,
                                type_evenement: Optional[str], message: Optional[str]):
    content = (
        f"<p>Vous avez reçu une nouvelle demande de devis pour <strong>{escape(groupe_nom)}</strong>.</p>"
        + _row("Nom", requester_nom)
        + _row("Email", requester_email)
        + (_row("Téléphone", requester_telephone) if requester_telephone else "")
        + _row("Date souhaitée", format_date_fr(date_souhaitee))
        + _row("Lieu", lieu)
        + (_row("Nombre d'invités", nombre_invites) if nombre_invites else "")
        + (_row("Type d'événement", type_evenement) if type_evenement else "")
    )
    if message:
        content += f"<p><em>{escape(message)}</em></p>"
    content += f'<p><a href="mailto:{escape(requester_email)}">Répondre à {escape(requester_nom)}</a></p>'
    await send_email_async(f"Nouvelle demande de devis pour {groupe_nom}", groupe_contact_email,
                           _base_layout("Demande de devis", content))
