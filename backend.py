import io
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Protocol

import requests
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

import client_settings as cs
from errors import (
    ApiError,
    CatalogError,
    SubmissionError,
    SubmissionInProgress,
    WizardStateError,
)
from models import Catalog, Order, Selection
from pricing import SelectionRules, format_eur, price_selection, validate_selection

logger = logging.getLogger(__name__)


# --- PORTS ---

class CatalogLookup(Protocol):
    def list_packs(self): ...

    def list_extras(self): ...


class OrderSubmitter(Protocol):
    def submit_order(self, order): ...


class Notifier(Protocol):
    def notify(self, order): ...


def resolve_school(query_params):
    """School name comes from the link the guardian opened (?school=...)."""
    school = query_params.get("school")
    if isinstance(school, list):
        school = school[0] if school else None
    return (school or "").strip() or None


def load_catalog(lookup):
    try:
        packs = lookup.list_packs()
        extras = lookup.list_extras()
    except (ApiError, CatalogError, requests.RequestException) as e:
        logger.error("Catalog fetch failed: %s", e)
        raise CatalogError("Não foi possível carregar os produtos.") from e
    return Catalog(packs=tuple(packs), extras=tuple(extras))


# --- WIZARD ---

class Step(Enum):
    CONTACT = "contact"
    STUDENT = "student"
    ORDER = "order"


class OrderWizard:
    """
    Contact -> Student -> Order, forward only.

    A successful order submission resets the wizard to Contact with every
    fragment cleared. A failed one leaves everything where it was so the
    guardian can press submit again.
    """

    def __init__(self, submitter, notifier=None, school_name=None, rules=None, policy=None):
        self.submitter = submitter
        self.notifier = notifier
        self.school_name = school_name
        self.rules = rules or SelectionRules()
        self.policy = policy
        self._in_flight = threading.Lock()
        self.confirmation_sent = False
        self._clear()

    def _clear(self):
        self.step = Step.CONTACT
        self.contact = None
        self.student = None
        self.selection = Selection(exclusive_pack_id=self.rules.extras_only_pack_id)

    def _expect(self, step):
        if self.step is not step:
            raise WizardStateError(f"Expected step {step.value}, wizard is at {self.step.value}")

    @property
    def submitting(self):
        return self._in_flight.locked()

    def submit_contact(self, info):
        self._expect(Step.CONTACT)
        info.validate()
        self.contact = info.cleaned()
        self.step = Step.STUDENT

    def submit_student(self, info):
        self._expect(Step.STUDENT)
        info.validate()
        self.student = info.cleaned()
        self.step = Step.ORDER

    def preview(self, catalog):
        return price_selection(self.selection, catalog, self.policy)

    def build_order(self, catalog, observation=""):
        pricing = self.preview(catalog)
        return Order(
            guardian_name=self.contact.name,
            email=self.contact.email,
            student_name=self.student.name,
            school=self.school_name or "",
            class_name=self.student.class_name,
            packs=pricing.pack_lines,
            extras=pricing.extra_lines,
            observation=(observation or "").strip(),
            total_cents=pricing.total,
            offered_item_id=pricing.offered_item_id,
        )

    def submit_order(self, catalog, observation=""):
        self._expect(Step.ORDER)
        if not self._in_flight.acquire(blocking=False):
            raise SubmissionInProgress("An order submission is already running")
        try:
            validate_selection(self.selection, self.rules)
            order = self.build_order(catalog, observation)
            try:
                self.submitter.submit_order(order)
            except (ApiError, requests.RequestException) as e:
                logger.error("Order submission failed for %s: %s", order.email, e)
                raise SubmissionError(str(e)) from e

            self.confirmation_sent = self._send_confirmation(order)
            self._clear()
            return order
        finally:
            self._in_flight.release()

    def _send_confirmation(self, order):
        if self.notifier is None:
            return False
        # the order is already stored; a failed email must not undo it
        try:
            self.notifier.notify(order)
        except Exception:
            logger.exception("Confirmation email failed for %s", order.email)
            return False
        return True

    def reset(self):
        if self.submitting:
            raise SubmissionInProgress("Cannot reset while an order is being submitted")
        self._clear()


# --- RECEIPT PDF ---

class ReceiptStamper:
    def __init__(self, studio_name=cs.CLIENT_NAME, footer=cs.RECEIPT_FOOTER):
        self.studio_name = studio_name
        self.footer = footer

    def _draw_lines(self, c, y, title, lines, offered_item_id):
        c.setFont("Helvetica-Bold", 11)
        c.drawString(50, y, title)
        y -= 18
        c.setFont("Helvetica", 10)
        for line in lines:
            label = line.label()
            if line.item_id == offered_item_id and line.free_units:
                label += "  (1 oferta)"
            c.drawString(60, y, label)
            c.drawRightString(540, y, format_eur(line.line_total_cents))
            y -= 15
        return y - 10

    def render(self, order, created_at=None):
        """Return the receipt for `order` as PDF bytes."""
        created_at = created_at or datetime.now()
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=A4)
        c.setTitle(f"Encomenda {order.student_name}")

        c.setFont("Helvetica-Bold", 16)
        c.drawString(50, 790, f"{self.studio_name} - Resumo da Encomenda")
        c.setFont("Helvetica", 10)
        c.drawString(50, 770, f"Data: {created_at.strftime('%d/%m/%Y %H:%M')}")

        y = 740
        for label, value in [
            ("Encarregado de educação", order.guardian_name),
            ("Email", order.email),
            ("Aluno", order.student_name),
            ("Escola", order.school or "-"),
            ("Turma", order.class_name),
        ]:
            c.drawString(50, y, f"{label}: {value}")
            y -= 15

        y -= 15
        if order.packs:
            y = self._draw_lines(c, y, "Packs", order.packs, order.offered_item_id)
        if order.extras:
            y = self._draw_lines(c, y, "Extras", order.extras, order.offered_item_id)

        c.setFont("Helvetica-Bold", 12)
        c.drawString(50, y, "Total")
        c.drawRightString(540, y, format_eur(order.total_cents))
        y -= 25

        if order.observation:
            c.setFont("Helvetica", 10)
            c.drawString(50, y, f"Observações: {order.observation}")

        c.setFont("Helvetica-Oblique", 9)
        c.drawString(50, 40, self.footer)
        c.save()
        return buf.getvalue()
