import smtplib
from unittest.mock import MagicMock, patch

import pytest

from backend import ReceiptStamper
from dispatcher import SmtpNotifier, send_secure_email
from errors import NotificationError
from models import Order
from pricing import OrderLine


@pytest.fixture
def order():
    return Order(
        guardian_name="Maria Silva",
        email="maria@example.com",
        student_name="João Silva",
        school="EB Lisboa",
        class_name="5ºA",
        packs=(OrderLine("Pack A", "Pack A", 2, 10000),),
        extras=(
            OrderLine("E1", "Íman", 1, 1000, free_units=1),
            OrderLine("E2", "Porta-chaves", 1, 2000),
            OrderLine("E3", "Caneca", 1, 3000),
        ),
        observation="Entregar ao pai",
        total_cents=25000,
        offered_item_id="E1",
    )


class TestReceipt:

    def test_render_returns_pdf_bytes(self, order):
        pdf = ReceiptStamper().render(order)

        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 500


class TestSendSecureEmail:

    @patch("dispatcher.smtplib.SMTP_SSL")
    def test_sends_message_with_attachment(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value

        ok, detail = send_secure_email(b"%PDF-1.4", "encomenda.pdf", "Assunto", "Olá", "to@example.com",
                                       "from@example.com", "pw")

        assert (ok, detail) == (True, "Sent")
        server.login.assert_called_once_with("from@example.com", "pw")
        msg = server.send_message.call_args.args[0]
        assert msg["To"] == "to@example.com"
        assert msg["Subject"] == "Assunto"
        attachments = list(msg.iter_attachments())
        assert attachments[0].get_filename() == "encomenda.pdf"

    @patch("dispatcher.smtplib.SMTP_SSL")
    def test_login_failure_is_reported_not_raised(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        ok, detail = send_secure_email(b"%PDF", "a.pdf", "s", "b", "to@example.com", "from@example.com", "pw")

        assert ok is False
        assert "bad credentials" in detail


class TestSmtpNotifier:

    def test_notify_emails_the_guardian(self, order):
        stamper = MagicMock()
        stamper.render.return_value = b"%PDF-fake"

        with patch("dispatcher.send_secure_email", return_value=(True, "Sent")) as mock_send:
            SmtpNotifier("studio@example.com", "pw", stamper=stamper).notify(order)

        args = mock_send.call_args.args
        assert args[0] == b"%PDF-fake"
        assert args[4] == "maria@example.com"
        assert "250,00 €" in args[3]

    def test_notify_raises_on_failure(self, order):
        with patch("dispatcher.send_secure_email", return_value=(False, "timeout")):
            with pytest.raises(NotificationError):
                SmtpNotifier("studio@example.com", "pw").notify(order)
