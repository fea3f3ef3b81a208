"""
Notification service for low-stock alerts.
Uses Flask-Mail for SMTP email; SMS delivery is simulated and only logged.
"""
import logging
from typing import Dict, List

from flask import current_app
from flask_mail import Mail, Message

from retail_pos.models import Product

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Prevents errors in dev or misconfigured environments.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def send_low_stock_alert(to_email: str, products: List[Product], shop_name: str = '') -> bool:
    """
    Email a low-stock alert listing each product and its remaining stock.

    Returns:
        True if sent (or mail is disabled), False if sending failed
    """
    try:
        if not _mail_enabled():
            logger.info(f"[MAIL DISABLED] Low stock alert skipped for {to_email}")
            return True

        title = f"Low stock alert - {shop_name}" if shop_name else "Low stock alert"
        rows = "".join(
            f"""
            <tr>
                <td>{p.name}</td>
                <td align="center">{p.stock}</td>
            </tr>
            """
            for p in products
        )
        html_body = f"""
        <h2>⚠️ {title}</h2>
        <table border="1" cellpadding="8" cellspacing="0" width="100%">
            <tr>
                <th>Product</th>
                <th>Current Stock</th>
            </tr>
            {rows}
        </table>
        """
        text_body = "\n".join(f"{p.name}: {p.stock} left" for p in products)

        msg = Message(
            subject=f"⚠️ {title}",
            recipients=[to_email],
            body=text_body,
            html=html_body,
        )
        mail.send(msg)
        logger.info(f"[EMAIL] ✓ Low stock alert sent to {to_email}")
        return True

    except Exception as e:
        logger.exception(f"[EMAIL] ✗ Failed to send low stock alert to {to_email}: {e}")
        return False


def send_low_stock_sms(products: List[Product]) -> None:
    """SMS gateway is not integrated; the message is logged."""
    for product in products:
        logger.info(f"[SMS] Low stock alert for {product.name} ({product.stock} left)")


def notify_low_stock(external_services: Dict, products: List[Product], shop_name: str = '') -> Dict[str, bool]:
    """
    Send low-stock notifications through the enabled channels.

    Never raises: a failed send is logged and reported as False.
    """
    sent = {'email': False, 'sms': False}
    if not products:
        return sent

    address = (external_services.get('emailAddress') or '').strip()
    if external_services.get('emailEnabled') and address:
        sent['email'] = send_low_stock_alert(address, products, shop_name)

    if external_services.get('smsEnabled'):
        send_low_stock_sms(products)
        sent['sms'] = True

    return sent
