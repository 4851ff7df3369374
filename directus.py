import logging
from datetime import datetime

import requests

import config
from errors import ApiError, CatalogError, NotificationError
from models import Extra, Pack

logger = logging.getLogger(__name__)


class DirectusClient:
    """
    Talks to the Directus CMS: catalog reads, order writes and the templated
    confirmation email. One attempt per call, no retries.
    """

    def __init__(self, base_url, token, timeout=config.REQUEST_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        if not token:
            logger.warning("Directus token not configured")

    def _get_headers(self):
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _make_request(self, method, endpoint, data=None):
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                json=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Directus request failed: %s %s - %s", method, url, e)
            raise ApiError(f"Network request failed: {e}") from e

        if response.status_code == 204 or not response.content:
            body = {}
        else:
            try:
                body = response.json()
            except ValueError:
                body = {}

        if not response.ok:
            errors = body.get("errors") if isinstance(body, dict) else None
            message = "API request failed"
            if errors and isinstance(errors[0], dict):
                message = errors[0].get("message") or message
            logger.error("Directus API error: %s %s -> %s %s", method, url, response.status_code, errors)
            raise ApiError(message, status_code=response.status_code, details=errors)

        return body

    # --- catalog lookup ---

    def _list_rows(self, collection):
        body = self._make_request("GET", f"/items/{collection}")
        if not isinstance(body, dict):
            raise CatalogError(f"Unexpected response for {collection}: {body!r}")
        rows = body.get("data") or []
        if not isinstance(rows, list):
            raise CatalogError(f"Unexpected data for {collection}: {rows!r}")
        return rows

    def list_packs(self):
        return [Pack.from_cms(row) for row in self._list_rows(config.PACKS_COLLECTION)]

    def list_extras(self):
        return [Extra.from_cms(row) for row in self._list_rows(config.EXTRAS_COLLECTION)]

    # --- order submission ---

    def submit_order(self, order):
        payload = order.to_cms_payload()
        logger.info("Submitting order for %s (%s)", payload["name_stu"], payload["escola"])
        body = self._make_request("POST", f"/items/{config.ORDERS_COLLECTION}", payload)
        return body.get("data") if isinstance(body, dict) else None

    # --- confirmation email ---

    def notify(self, order, now=None):
        now = now or datetime.now()
        try:
            self._make_request(
                "POST",
                "/email/send",
                {
                    "to": order.email,
                    "subject": config.EMAIL_SUBJECT,
                    "template": config.EMAIL_TEMPLATE,
                    "data": {
                        "orderData": order.to_cms_payload(),
                        "date": now.strftime("%d/%m/%Y"),
                        "time": now.strftime("%H:%M:%S"),
                    },
                },
            )
        except ApiError as e:
            raise NotificationError(str(e)) from e
