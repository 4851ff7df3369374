# config.py
# Business rules for the order step. Branding lives in client_settings.py.

# -------------------------------------------------
# 🎁 PROMOTION
# -------------------------------------------------
# "cheapest_free_over_units": more than PROMOTION_THRESHOLD extra units -> cheapest one is free
# "cheapest_free_on_distinct": exactly PROMOTION_DISTINCT_EXTRAS different extras -> cheapest one is free
# "none": no promotion
PROMOTION_POLICY = "cheapest_free_over_units"
PROMOTION_THRESHOLD = 2
PROMOTION_DISTINCT_EXTRAS = 3

# -------------------------------------------------
# 📦 SELECTION RULES
# -------------------------------------------------
QUANTITY_MIN = 1
QUANTITY_MAX = 99

# Pseudo-pack for orders made only of extras. Set the minimum to None to drop the rule.
EXTRAS_ONLY_PACK_ID = "Only extras"
EXTRAS_ONLY_MIN_EXTRAS = 3

# -------------------------------------------------
# 🌐 CMS
# -------------------------------------------------
PACKS_COLLECTION = "Products"
EXTRAS_COLLECTION = "Extras"
ORDERS_COLLECTION = "encomendas"
EMAIL_TEMPLATE = "order-confirmation"
EMAIL_SUBJECT = "Confirmação de Encomenda"
REQUEST_TIMEOUT = 30
