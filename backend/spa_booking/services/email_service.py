import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException
from spa_booking.config import settings
import logging

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html_content: str, from_email: str = None):
    """Send email using Brevo (SendInBlue)"""
    
    if not settings.BREVO_API_KEY:
        logger.warning("Email not sent to %s: BREVO_API_KEY is not configured", to_email)
        return {
            "success": False,
            "error": "Email provider not configured"
        }
    
    # Configure Brevo API
    configuration = sib_api_v3_sdk.Configuration()
    configuration.api_key['api-key'] = settings.BREVO_API_KEY
    
    api_instance = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(configuration))
    
    try:
        send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
            to=[{"email": to_email}],
            sender={"name": settings.EMAIL_FROM_NAME, "email": from_email or settings.EMAIL_FROM_ADDRESS},
            subject=subject,
            html_content=html_content
        )
        
        response = api_instance.send_transac_email(send_smtp_email)
        
        logger.info("Email sent via Brevo to %s", to_email)
        
        return {
            "success": True,
            "message": "Email sent successfully",
            "message_id": response.message_id
        }
    except ApiException as e:
        logger.error("Failed to send email to %s: %s", to_email, e)
        return {
            "success": False,
            "error": str(e)
        }
