import html
import logging
from typing import Optional

import resend
from resend.exceptions import ResendError

from core.environment import get_receipt_from_address, get_resend_api_key
from core.prometheus_metrics import receipts_sent_total
from services.exceptions import ReceiptDeliveryError

logger = logging.getLogger(__name__)

RECEIPT_SUBJECT = "Thank You for Your Carbon Offset Purchase!"


def render_receipt_html(email: str, metric_tons: float, total_cost: float, payment_type: str) -> str:
    is_subscription = payment_type == "subscription"

    monthly_row = ""
    if is_subscription:
        monthly_row = f"""
          <tr>
            <td style="padding: 8px 0; color: #34495e;"><strong>Monthly Amount:</strong></td>
            <td style="padding: 8px 0; color: #34495e; text-align: right;">${total_cost / 12:.2f}</td>
          </tr>"""

    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #2c3e50; border-bottom: 3px solid #27ae60; padding-bottom: 10px;">
        Thank You for Offsetting Your Carbon Footprint!
      </h1>
      <p style="font-size: 16px; color: #34495e; line-height: 1.6;">Dear {html.escape(email)},</p>
      <p style="font-size: 16px; color: #34495e; line-height: 1.6;">
        Thank you for taking action on climate change! Your purchase helps support verified carbon offset projects around the world.
      </p>
      <div style="background-color: #f8f9fa; border-left: 4px solid #27ae60; padding: 20px; margin: 20px 0;">
        <h2 style="color: #27ae60; margin-top: 0;">Purchase Summary</h2>
        <table style="width: 100%; border-collapse: collapse;">
          <tr>
            <td style="padding: 8px 0; color: #34495e;"><strong>CO₂ Offset:</strong></td>
            <td style="padding: 8px 0; color: #34495e; text-align: right;">{metric_tons:.2f} metric tons</td>
          </tr>
          <tr>
            <td style="padding: 8px 0; color: #34495e;"><strong>Payment Type:</strong></td>
            <td style="padding: 8px 0; color: #34495e; text-align: right;">{"Monthly Subscription" if is_subscription else "One-Time Payment"}</td>
          </tr>{monthly_row}
          <tr style="border-top: 2px solid #27ae60;">
            <td style="padding: 8px 0; color: #27ae60;"><strong>Total Annual Cost:</strong></td>
            <td style="padding: 8px 0; color: #27ae60; text-align: right; font-size: 18px;"><strong>${total_cost:.2f}</strong></td>
          </tr>
        </table>
      </div>
      <p style="font-size: 14px; color: #7f8c8d; margin-top: 30px;">Questions? Contact us at support@carbonoffset.com</p>
    </div>
    """


class ReceiptService:
    """Sends the post-checkout receipt through Resend."""

    def __init__(self, api_key: Optional[str] = None, from_address: Optional[str] = None):
        self.api_key = api_key if api_key is not None else get_resend_api_key()
        self.from_address = from_address or get_receipt_from_address()

    def send_receipt_email(self, email: str, metric_tons: float, total_cost: float, payment_type: str) -> dict:
        resend.api_key = self.api_key
        params = {
            "from": self.from_address,
            "to": [email],
            "subject": RECEIPT_SUBJECT,
            "html": render_receipt_html(email, metric_tons, total_cost, payment_type),
        }

        try:
            response = resend.Emails.send(params)
        except ResendError as e:
            receipts_sent_total.labels(status="error").inc()
            logger.error(f"Receipt email to {email} failed: {e}")
            raise ReceiptDeliveryError(str(e)) from e

        receipts_sent_total.labels(status="sent").inc()
        logger.info(f"Receipt email sent: {response}")
        return {"success": True}
