# utils/mail.py
import smtplib
import ssl
import socket
from email.message import EmailMessage
from typing import Optional

from flask import current_app

__all__ = ["send_email", "mask_email"]

# Tried in order after the configured port fails
_FALLBACK_PLAN = [("STARTTLS", 587), ("STARTTLS", 2525), ("SSL", 465)]


def mask_email(addr: Optional[str]) -> str:
    if not addr:
        return ""
    try:
        local, domain = addr.split("@", 1)
    except ValueError:
        return (addr[:6] + "…") if len(addr) > 6 else addr
    local_mask = local[0] + "***" if len(local) > 1 else "*"
    # keep domain TLD visible
    dot = domain.rfind(".")
    if dot > 0:
        dom_mask = domain[0] + "***" + domain[dot:]
    else:
        dom_mask = (domain[:1] or "") + "***"
    return f"{local_mask}@{dom_mask}"


def _port_plan(port: int) -> list[tuple[str, int]]:
    first = ("SSL", port) if port == 465 else ("STARTTLS", port)
    return [first] + [p for p in _FALLBACK_PLAN if p != first]


def send_email(
    *,
    to: str,
    subject: str,
    text: str = "",
    html: str = "",
    host: str,
    port: int = 587,
    login: Optional[str] = None,
    password: Optional[str] = None,
    mail_from: str,
    timeout: int = 20,
) -> None:
    """
    Send a message over SMTP, walking the port plan until one attempt works.
    Raises RuntimeError when every attempt fails.
    """
    msg = EmailMessage()
    msg["From"] = mail_from
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text or "")
    if html:
        msg.add_alternative(html, subtype="html")

    log = current_app.logger
    last_err: Optional[Exception] = None

    for mode, p in _port_plan(port):
        try:
            ctx = ssl.create_default_context()
            if mode == "SSL":
                with smtplib.SMTP_SSL(host, p, context=ctx, timeout=timeout) as s:
                    if login and password:
                        s.login(login, password)
                    s.send_message(msg)
            else:
                with smtplib.SMTP(host, p, timeout=timeout) as s:
                    s.ehlo()
                    s.starttls(context=ctx)
                    s.ehlo()
                    if login and password:
                        s.login(login, password)
                    s.send_message(msg)

            log.info("[mail] sent via %s:%s as %s to %s", host, p, mask_email(login), mask_email(to))
            return
        except (smtplib.SMTPException, OSError, socket.error) as e:
            last_err = e
            log.warning("[mail] attempt %s %s:%s failed: %r", mode, host, p, e)

    raise RuntimeError(f"All SMTP attempts failed; last error: {last_err!r}")
