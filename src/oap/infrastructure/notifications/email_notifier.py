from __future__ import annotations

import logging
import os
from html import escape

import httpx

from oap.domain.order.entities import Order

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_FROM_EMAIL = "onboarding@resend.dev"
DEFAULT_CAFE_NAME = "Muze Office"


def format_pickup_number(number: int | None) -> str:
    return f"{number or 0:03d}"


def confirmation_subject(order: Order, cafe_name: str) -> str:
    return f"Order #{format_pickup_number(order.pickup_number)} Confirmed | {cafe_name}"


def ready_subject(order: Order, cafe_name: str) -> str:
    return f"Your Order #{format_pickup_number(order.pickup_number)} is Ready! | {cafe_name}"


def _render_items(order: Order) -> str:
    rows = []
    for item in order.items:
        details = ""
        if item.modifiers_display:
            details += f"<br><small>{escape(item.modifiers_display)}</small>"
        if item.special_instructions:
            details += f"<br><small><em>Note: {escape(item.special_instructions)}</em></small>"
        rows.append(
            f"<tr><td>{item.quantity}x {escape(item.item_name)}{details}</td>"
            f"<td align=\"right\">{item.total_price.format()}</td></tr>"
        )
    return "".join(rows)


def render_confirmation_html(order: Order, cafe_name: str) -> str:
    return (
        f"<h1>{escape(cafe_name)}</h1>"
        f"<p>Your pickup number</p><h2>#{format_pickup_number(order.pickup_number)}</h2>"
        f"<p>Hi <strong>{escape(order.customer_name)}</strong>, thank you for your order!"
        " We're preparing it with care.</p>"
        f"<table width=\"100%\">{_render_items(order)}"
        f"<tr><td>Subtotal</td><td align=\"right\">{order.subtotal.format()}</td></tr>"
        f"<tr><td>Tax</td><td align=\"right\">{order.tax.format()}</td></tr>"
        f"<tr><td><strong>Total</strong></td>"
        f"<td align=\"right\"><strong>{order.total.format()}</strong></td></tr></table>"
        "<p>We'll let you know when your order is ready.</p>"
    )


def render_ready_html(order: Order, cafe_name: str) -> str:
    return (
        f"<h1>{escape(cafe_name)}</h1>"
        f"<h2>#{format_pickup_number(order.pickup_number)}</h2>"
        f"<p>Hi {escape(order.customer_name)}! Your order is ready and waiting for you"
        " at the counter.</p>"
        "<p>Please show your pickup number when collecting your order.</p>"
    )


class EmailOrderNotifier:
    """Sends customer e-mails through the Resend HTTP API.

    Without ``RESEND_API_KEY`` every send is skipped and logged. Delivery
    errors are raised so the scheduler can log and count them.
    """

    def __init__(
        self,
        api_key: str | None = None,
        from_email: str | None = None,
        cafe_name: str | None = None,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv("RESEND_API_KEY")
        self._from_email = from_email or os.getenv("FROM_EMAIL", DEFAULT_FROM_EMAIL)
        self._cafe_name = cafe_name or os.getenv("CAFE_NAME", DEFAULT_CAFE_NAME)
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def order_confirmed(self, order: Order) -> None:
        self._send(
            order,
            kind="order_confirmed",
            subject=confirmation_subject(order, self._cafe_name),
            html=render_confirmation_html(order, self._cafe_name),
        )

    def order_ready(self, order: Order) -> None:
        self._send(
            order,
            kind="order_ready",
            subject=ready_subject(order, self._cafe_name),
            html=render_ready_html(order, self._cafe_name),
        )

    def _send(self, order: Order, kind: str, subject: str, html: str) -> None:
        if not order.email:
            return
        if not self.configured:
            logger.info(
                "email_not_configured",
                extra={"order_id": str(order.order_id), "kind": kind},
            )
            return

        payload = {"from": self._from_email, "to": [order.email], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._http_client is not None:
            response = self._http_client.post(RESEND_API_URL, json=payload, headers=headers)
        else:
            with httpx.Client(timeout=self._timeout_seconds) as client:
                response = client.post(RESEND_API_URL, json=payload, headers=headers)
        response.raise_for_status()
        logger.info(
            "email_sent",
            extra={
                "order_id": str(order.order_id),
                "pickup_number": order.pickup_number,
                "kind": kind,
            },
        )
