import smtplib
import ssl
from email.message import EmailMessage

import client_settings as cs
import config
from backend import ReceiptStamper
from errors import NotificationError
from pricing import format_eur


def send_secure_email(pdf_bytes, filename, subject, body, recipient_email, sender_email, sender_pass,
                      host="smtp.gmail.com", port=465):
    msg = EmailMessage()
    msg['Subject'] = subject
    msg['From'] = sender_email
    msg['To'] = recipient_email
    msg.set_content(body)
    msg.add_attachment(pdf_bytes, maintype='application', subtype='pdf', filename=filename)

    try:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(host, port, context=context) as server:
            server.login(sender_email, sender_pass)
            server.send_message(msg)
        return True, "Sent"
    except (smtplib.SMTPException, OSError) as e:
        return False, str(e)


class SmtpNotifier:
    """Emails the guardian a PDF summary of the order."""

    def __init__(self, sender_email, sender_pass, host="smtp.gmail.com", port=465, stamper=None):
        self.sender_email = sender_email
        self.sender_pass = sender_pass
        self.host = host
        self.port = port
        self.stamper = stamper or ReceiptStamper()

    def notify(self, order):
        pdf = self.stamper.render(order)
        body = (
            f"Olá {order.guardian_name},\n\n"
            f"Recebemos a encomenda de {order.student_name} ({order.class_name}).\n"
            f"Total: {format_eur(order.total_cents)}\n\n"
            f"Em anexo segue o resumo.\n\n{cs.CLIENT_NAME}"
        )
        ok, detail = send_secure_email(
            pdf,
            "encomenda.pdf",
            config.EMAIL_SUBJECT,
            body,
            order.email,
            self.sender_email,
            self.sender_pass,
            host=self.host,
            port=self.port,
        )
        if not ok:
            raise NotificationError(detail)
