# ==========================================
# ⚙️ CLIENT CONFIGURATION FILE
# ==========================================
# Edit this file to re-brand the app for a new photography studio.

# --- BRANDING ---
APP_TITLE = "FC Pro School | Encomendas"   # Shows in browser tab
PAGE_ICON = "📸"                           # Browser tab icon
CLIENT_NAME = "FC Pro School"              # Shows on every step header
TAGLINE = "Fotografia escolar"

# --- BACKEND ---
# Token goes in .streamlit/secrets.toml as DIRECTUS_TOKEN
DIRECTUS_URL = "https://directus.fcpro-school.com"

# --- CONTACT INFO ---
STUDIO_EMAIL = "encomendas@fcpro-school.com"
RECEIPT_FOOTER = "FC Pro School - obrigado pela sua encomenda!"

# --- STUDENT FORM ---
SCHOOL_YEARS = list(range(1, 13))
CLASS_ROOMS = [
    "Sala Amarela",
    "Sala Azul",
    "Sala Verde",
    "Sala Vermelha",
    "A",
    "B",
    "C",
    "D",
    "E",
]

# --- LEGAL ---
TERMS_TITLE = "Termos e condições"
TERMS_TEXT = """
**1. Termos Gerais**

As fotografias são produzidas exclusivamente para uso pessoal e familiar.

**2. Proteção de Dados**

Os dados recolhidos são usados apenas para processar e entregar a encomenda.

**3. Pagamento e Entrega**

O pagamento é feito no momento da entrega das fotografias na escola.
"""
CONSENT_TEXT = "Li e aceito os termos e condições"

# --- MESSAGES ---
SUCCESS_TEXT = "✅ Encomenda enviada! Obrigado."
EXTRAS_PROMO_TEXT = "Na compra de 3 ou mais extras, o extra mais barato é oferta!"
