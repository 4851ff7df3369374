import logging

import streamlit as st

from backend import OrderWizard, Step, load_catalog, resolve_school
from directus import DirectusClient
from dispatcher import SmtpNotifier
from errors import CatalogError, SubmissionError, SubmissionInProgress, ValidationError
from logger import log_submission, load_logs
from models import ContactInfo, StudentInfo
from pricing import format_eur

# --- 🔗 IMPORT CLIENT SETTINGS ---
import client_settings as cs

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title=cs.APP_TITLE, page_icon=cs.PAGE_ICON)

SELECTION_KEY_PREFIXES = ("pack_", "extra_", "qty_pack_", "qty_extra_")


# --- BACKEND WIRING ---
def build_wizard():
    cms = DirectusClient(st.secrets.get("DIRECTUS_URL", cs.DIRECTUS_URL), st.secrets.get("DIRECTUS_TOKEN"))

    notifier_name = st.secrets.get("NOTIFIER", "directus")
    if notifier_name == "smtp":
        notifier = SmtpNotifier(st.secrets["EMAIL_USER"], st.secrets["EMAIL_PASS"])
    elif notifier_name == "directus":
        notifier = cms
    else:
        notifier = None

    return cms, OrderWizard(cms, notifier=notifier, school_name=resolve_school(st.query_params))


def fetch_catalog():
    try:
        st.session_state.catalog = load_catalog(st.session_state.cms)
        st.session_state.catalog_error = None
        st.session_state.wizard.selection.prune(st.session_state.catalog)
    except CatalogError as e:
        st.session_state.catalog = None
        st.session_state.catalog_error = str(e)


def clear_selection_widgets():
    for key in list(st.session_state.keys()):
        if key.startswith(SELECTION_KEY_PREFIXES):
            del st.session_state[key]


# --- STATE INITIALIZATION ---
if "wizard" not in st.session_state:
    st.session_state.cms, st.session_state.wizard = build_wizard()
if "catalog" not in st.session_state: st.session_state.catalog = None
if "catalog_error" not in st.session_state: st.session_state.catalog_error = None
if "last_order" not in st.session_state: st.session_state.last_order = None

wizard = st.session_state.wizard
STEPS = [Step.CONTACT, Step.STUDENT, Step.ORDER]

# --- SIDEBAR ---
with st.sidebar:
    st.header(cs.CLIENT_NAME)
    st.caption(cs.TAGLINE)
    if wizard.school_name:
        st.write(f"🏫 {wizard.school_name}")

    # Progress Bar
    progress_value = STEPS.index(wizard.step) / len(STEPS)
    st.progress(progress_value, text=f"Passo {STEPS.index(wizard.step) + 1} de {len(STEPS)}")

    with st.expander("💼 Admin Dashboard"):
        if st.text_input("Admin Pass", type="password") == st.secrets.get("ADMIN_PASS", "admin"):
            st.dataframe(load_logs())

# ==========================================
# SUCCESS SCREEN
# ==========================================
if st.session_state.last_order is not None:
    order = st.session_state.last_order
    st.title(f"📸 {cs.CLIENT_NAME}")
    st.success(cs.SUCCESS_TEXT)
    st.balloons()
    st.write(f"Aluno: **{order.student_name}** ({order.class_name})")
    st.write(f"Total: **{format_eur(order.total_cents)}**")
    if wizard.confirmation_sent:
        st.caption(f"Enviámos a confirmação para {order.email}.")
    elif wizard.notifier is not None:
        st.caption("A encomenda foi registada, mas não foi possível enviar o email de confirmação.")
    if st.button("➕ Nova encomenda"):
        st.session_state.last_order = None
        wizard.reset()
        st.rerun()
    st.stop()

# ==========================================
# STEP 1: CONTACT
# ==========================================
if wizard.step is Step.CONTACT:
    st.title("👤 Dados do Encarregado de Educação")

    with st.form(key="contact_form"):
        name = st.text_input("Nome do Encarregado de Educação")
        email = st.text_input("Email")
        with st.expander(cs.TERMS_TITLE):
            st.markdown(cs.TERMS_TEXT)
        terms = st.checkbox(cs.CONSENT_TEXT)
        submitted = st.form_submit_button("Seguinte ➡️")

    if submitted:
        if not terms:
            st.warning("Tem de aceitar os termos e condições para continuar.")
        else:
            try:
                wizard.submit_contact(ContactInfo(name, email))
                st.rerun()
            except ValidationError as e:
                st.warning(e.message)

# ==========================================
# STEP 2: STUDENT
# ==========================================
elif wizard.step is Step.STUDENT:
    st.title("🎒 Dados do Aluno")

    with st.form(key="student_form"):
        student_name = st.text_input("Nome do Aluno")
        c1, c2 = st.columns(2)
        year = c1.selectbox("Ano", cs.SCHOOL_YEARS, index=None, placeholder="Selecione o ano",
                            format_func=lambda y: f"{y}º ano")
        room = c2.selectbox("Turma", cs.CLASS_ROOMS, index=None, placeholder="Selecione a turma")
        submitted = st.form_submit_button("Seguinte ➡️")

    if submitted:
        try:
            wizard.submit_student(StudentInfo.from_selectors(student_name, year, room))
            st.rerun()
        except ValidationError as e:
            st.warning(e.message)

# ==========================================
# STEP 3: ORDER
# ==========================================
elif wizard.step is Step.ORDER:
    st.title("🛒 Encomenda")

    if st.session_state.catalog is None and st.session_state.catalog_error is None:
        with st.spinner("A carregar produtos..."):
            fetch_catalog()

    if st.session_state.catalog_error:
        st.error(st.session_state.catalog_error)
        if st.button("🔄 Tentar novamente"):
            fetch_catalog()
            st.rerun()
        st.stop()

    catalog = st.session_state.catalog
    selection = wizard.selection

    def _sync_pack_boxes():
        for pack in catalog.packs:
            st.session_state[f"pack_{pack.id}"] = pack.id in selection.packs
        if selection.exclusive_pack_id:
            st.session_state[f"pack_{selection.exclusive_pack_id}"] = selection.exclusive_pack_id in selection.packs

    def _on_pack(pack_id):
        selection.toggle_pack(pack_id)
        _sync_pack_boxes()

    def _on_pack_qty(pack_id):
        selection.set_pack_quantity(pack_id, st.session_state[f"qty_pack_{pack_id}"])

    def _on_extra(extra_id):
        selection.toggle_extra(extra_id)

    def _on_extra_qty(extra_id):
        selection.set_extra_quantity(extra_id, st.session_state[f"qty_extra_{extra_id}"])

    # --- PACKS ---
    st.subheader("Packs")
    pack_options = [(p.id, p.name, p.description, format_eur(p.price_cents)) for p in catalog.packs]
    if selection.exclusive_pack_id and catalog.pack(selection.exclusive_pack_id) is None:
        pack_options.append((selection.exclusive_pack_id, "Apenas extras", "Escolher só extras, sem pack.", None))

    for pack_id, label, description, price in pack_options:
        key = f"pack_{pack_id}"
        st.session_state.setdefault(key, pack_id in selection.packs)
        c1, c2 = st.columns([4, 1])
        with c1:
            st.checkbox(f"**{label}**" + (f" - {price}" if price else ""), key=key,
                        on_change=_on_pack, args=(pack_id,), help=description or None)
        if pack_id in selection.packs and pack_id != selection.exclusive_pack_id:
            qty_key = f"qty_pack_{pack_id}"
            st.session_state.setdefault(qty_key, selection.packs[pack_id])
            c2.number_input("Qtd.", min_value=1, max_value=99, step=1, key=qty_key,
                            on_change=_on_pack_qty, args=(pack_id,), label_visibility="collapsed")

    if selection.exclusive_pack_id in selection.packs and wizard.rules.extras_only_min_extras:
        st.info(f"Com \"Apenas extras\" tem de escolher pelo menos {wizard.rules.extras_only_min_extras} extras.")

    # --- EXTRAS ---
    st.subheader("Extras")
    st.caption(cs.EXTRAS_PROMO_TEXT)
    for extra in catalog.extras:
        key = f"extra_{extra.id}"
        st.session_state.setdefault(key, extra.id in selection.extras)
        c1, c2 = st.columns([4, 1])
        with c1:
            st.checkbox(f"**{extra.name}** - {format_eur(extra.price_cents)}", key=key,
                        on_change=_on_extra, args=(extra.id,), help=extra.description or None)
        if extra.id in selection.extras:
            qty_key = f"qty_extra_{extra.id}"
            st.session_state.setdefault(qty_key, selection.extras[extra.id])
            c2.number_input("Qtd.", min_value=1, max_value=99, step=1, key=qty_key,
                            on_change=_on_extra_qty, args=(extra.id,), label_visibility="collapsed")

    observation = st.text_area("Observações", key="observation")

    # --- LIVE TOTALS ---
    pricing = wizard.preview(catalog)
    st.divider()
    st.markdown(f"**Packs:** {format_eur(pricing.pack_subtotal)}")
    st.markdown(f"**Extras:** {format_eur(pricing.extras_subtotal)}")
    if pricing.offered_item_id:
        st.caption(f"🎁 Oferta: 1x {pricing.offered_item_id} (-{format_eur(pricing.discount_cents)})")
    st.markdown(f"### Total: {format_eur(pricing.total)}")

    if st.button("✅ Confirmar Encomenda", disabled=wizard.submitting):
        with st.spinner("A enviar encomenda..."):
            try:
                order = wizard.submit_order(catalog, observation)
            except ValidationError as e:
                st.warning(e.message)
            except SubmissionInProgress:
                st.info("A encomenda já está a ser enviada.")
            except SubmissionError:
                log_submission(wizard.build_order(catalog, observation), "Failed")
                st.error(SubmissionError.user_message)
            else:
                log_submission(order, "Success")
                clear_selection_widgets()
                st.session_state.pop("observation", None)
                st.session_state.last_order = order
                st.rerun()
