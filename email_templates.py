"""
Transactional email content.

Template functions are pure: they map order/contact data to an EmailTemplate
and never touch a transport. `render_html` turns the model into markup.
"""
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional, Tuple

from config import Settings


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    heading: str
    greeting: str
    paragraphs: Tuple[str, ...] = ()
    # (label, value) pairs shown in a details box
    details: Tuple[Tuple[str, str], ...] = ()
    # line items: (description, amount)
    lines: Tuple[Tuple[str, str], ...] = ()
    totals: Tuple[Tuple[str, str], ...] = ()
    quote: Optional[str] = None
    action: Optional[Tuple[str, str]] = None
    footer: Tuple[str, ...] = field(default_factory=tuple)


STATUS_MESSAGES: Dict[str, Tuple[str, str]] = {
    "processing": ("Order Processing", "Your order is now being processed and will be shipped soon."),
    "shipped": ("Order Shipped", "Great news! Your order has been shipped and is on its way to you."),
    "delivered": ("Order Delivered", "Your order has been successfully delivered. Thank you for shopping with us!"),
    "cancelled": ("Order Cancelled", "Your order has been cancelled. If you have any questions, please contact us."),
}


def money(amount: float, symbol: str) -> str:
    if float(amount).is_integer():
        return f"{symbol} {int(amount):,}"
    return f"{symbol} {amount:,.2f}"


def _item_description(item: Dict[str, Any]) -> str:
    variants = []
    if item.get("color"):
        variants.append(f"Color: {item['color']}")
    if item.get("size"):
        variants.append(f"Size: {item['size']}")
    text = f"{item['name']} x {item['quantity']}"
    if variants:
        text += f" ({' | '.join(variants)})"
    return text


def _order_lines(order: Dict[str, Any], symbol: str) -> Tuple[Tuple[str, str], ...]:
    return tuple(
        (_item_description(item), money(item["price"] * item["quantity"], symbol))
        for item in order["items"]
    )


def _order_totals(order: Dict[str, Any], symbol: str) -> Tuple[Tuple[str, str], ...]:
    pricing = order["pricing"]
    delivery = pricing["delivery_charge"]
    return (
        ("Subtotal", money(pricing["subtotal"], symbol)),
        ("Delivery Charge", "FREE" if delivery == 0 else money(delivery, symbol)),
        ("Total", money(pricing["total"], symbol)),
    )


def _order_date(order: Dict[str, Any]) -> str:
    created = order.get("created_at")
    if isinstance(created, datetime):
        return created.strftime("%B %d, %Y")
    return ""


def _copyright(settings: Settings) -> Tuple[str, ...]:
    return (
        "This is an automated email. Please do not reply to this message.",
        f"© {datetime.now().year} {settings.store_name}. All rights reserved.",
    )


def order_confirmation(order: Dict[str, Any], settings: Settings) -> EmailTemplate:
    customer = order["customer"]
    symbol = settings.currency_symbol
    address = ", ".join(
        part for part in (customer["address"], customer["city"], customer["province"], customer.get("postal_code")) if part
    )
    return EmailTemplate(
        subject=f"Order Confirmation - {order['order_number']} | {settings.store_name}",
        heading="Thank You for Your Order!",
        greeting=f"Dear {customer['first_name']} {customer['last_name']},",
        paragraphs=(
            "Your order has been successfully placed and is being processed. Here are your order details:",
            "We'll review and prepare your order in 1-2 business days; delivery takes 3-5 business days after shipping.",
        ),
        details=(
            ("Order Number", order["order_number"]),
            ("Order Date", _order_date(order)),
            ("Delivery Address", address),
            ("Phone", customer["phone"]),
        ),
        lines=_order_lines(order, symbol),
        totals=_order_totals(order, symbol),
        footer=_copyright(settings),
    )


def owner_order_alert(order: Dict[str, Any], settings: Settings) -> EmailTemplate:
    customer = order["customer"]
    symbol = settings.currency_symbol
    details = [
        ("Order Number", order["order_number"]),
        ("Customer", f"{customer['first_name']} {customer['last_name']}"),
        ("Email", customer["email"]),
        ("Phone", customer["phone"]),
        ("Address", f"{customer['address']}, {customer['city']}, {customer['province']}"),
    ]
    if customer.get("postal_code"):
        details.append(("Postal Code", customer["postal_code"]))
    if customer.get("delivery_notes"):
        details.append(("Delivery Notes", customer["delivery_notes"]))
    item_count = sum(item["quantity"] for item in order["items"])
    return EmailTemplate(
        subject=f"New Order Received - {order['order_number']}",
        heading="New Order Received",
        greeting="Hello,",
        paragraphs=(f"A new order with {item_count} item(s) has been placed on {settings.store_name}.",),
        details=tuple(details),
        lines=_order_lines(order, symbol),
        totals=_order_totals(order, symbol),
        action=("Open Admin Panel", f"{settings.frontend_url}/admin/orders"),
    )


def order_status_update(order: Dict[str, Any], status: str, settings: Settings) -> Optional[EmailTemplate]:
    """Return the customer email for a new status, or None when the status has no message."""
    info = STATUS_MESSAGES.get(status)
    if info is None:
        return None
    title, message = info
    return EmailTemplate(
        subject=f"{title} - Order #{order['order_number']} | {settings.store_name}",
        heading=title,
        greeting=f"Hello {order['customer']['first_name']},",
        paragraphs=(message,),
        details=(
            ("Order Number", order["order_number"]),
            ("Status", status.upper()),
            ("Total Amount", money(order["pricing"]["total"], settings.currency_symbol)),
        ),
        action=("View Order Details", f"{settings.frontend_url}/profile"),
        footer=(f"If you have any questions, contact us at {settings.email_from}",),
    )


def contact_acknowledgement(contact: Dict[str, Any], settings: Settings) -> EmailTemplate:
    return EmailTemplate(
        subject=f"Thank you for contacting {settings.store_name}",
        heading="Thank you for reaching out!",
        greeting=f"Hi {contact['name']},",
        paragraphs=("We've received your message and our team will get back to you as soon as possible.",),
        details=(("Subject", contact["subject"]),),
        quote=contact["message"],
        footer=_copyright(settings),
    )


def contact_reply(contact: Dict[str, Any], reply_message: str, settings: Settings) -> EmailTemplate:
    return EmailTemplate(
        subject=f"Re: {contact['subject']}",
        heading="Response to your inquiry",
        greeting=f"Hi {contact['name']},",
        paragraphs=(reply_message, f"Best regards, {settings.store_name} Team"),
        quote=contact["message"],
        footer=_copyright(settings),
    )


def _rows(pairs: Tuple[Tuple[str, str], ...], bold_last: bool = False) -> List[str]:
    rows = []
    for i, (label, value) in enumerate(pairs):
        weight = "bold" if bold_last and i == len(pairs) - 1 else "normal"
        rows.append(
            f'<tr style="font-weight: {weight};"><td style="padding: 8px;">{escape(label)}</td>'
            f'<td style="padding: 8px; text-align: right;">{escape(value)}</td></tr>'
        )
    return rows


def render_html(template: EmailTemplate, store_name: str) -> str:
    parts = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">',
        '<div style="background: #8B7355; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">',
        f'<h1 style="color: white; margin: 0;">{escape(store_name)}</h1></div>',
        '<div style="background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px;">',
        f"<h2>{escape(template.heading)}</h2>",
        f"<p>{escape(template.greeting)}</p>",
    ]
    parts.extend(f"<p>{escape(p)}</p>" for p in template.paragraphs)
    if template.details:
        parts.append('<table style="width: 100%; background: white; border-radius: 8px;">')
        parts.extend(
            f"<tr><td><strong>{escape(label)}:</strong></td><td>{escape(value)}</td></tr>"
            for label, value in template.details
        )
        parts.append("</table>")
    if template.lines or template.totals:
        parts.append('<table style="width: 100%; border-collapse: collapse; margin-top: 20px;">')
        parts.extend(_rows(template.lines))
        parts.extend(_rows(template.totals, bold_last=True))
        parts.append("</table>")
    if template.quote:
        parts.append(
            '<blockquote style="background: white; padding: 15px; border-left: 4px solid #8B7355;">'
            f"{escape(template.quote)}</blockquote>"
        )
    if template.action:
        label, url = template.action
        parts.append(
            f'<p style="text-align: center;"><a href="{escape(url, quote=True)}" '
            'style="background: #8B7355; color: white; padding: 12px 30px; text-decoration: none; '
            f'border-radius: 8px;">{escape(label)}</a></p>'
        )
    parts.extend(f'<p style="color: #999; font-size: 12px;">{escape(line)}</p>' for line in template.footer)
    parts.append("</div></div>")
    return "\n".join(parts)
