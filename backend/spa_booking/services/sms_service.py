from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from spa_booking.config import settings
import logging

logger = logging.getLogger(__name__)


def sms_configured() -> bool:
    return bool(settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_PHONE_NUMBER)


def send_sms(to_phone: str, message: str):
    """Send SMS through the business' Twilio number"""
    
    if not sms_configured():
        return {
            "success": False,
            "error": "SMS provider not configured"
        }
    
    try:
        client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        
        sms = client.messages.create(
            body=message,
            from_=settings.TWILIO_PHONE_NUMBER,
            to=to_phone
        )
        
        logger.info("SMS %s sent to %s", sms.sid, to_phone)
        return {
            "success": True,
            "sid": sms.sid,
            "message": "SMS sent successfully"
        }
    except TwilioRestException as e:
        logger.error("Failed to send SMS to %s: %s", to_phone, e)
        return {
            "success": False,
            "error": str(e)
        }
