"""SMTP connectivity check used by the platform settings page."""
import logging
import smtplib
from typing import Optional, Tuple

from portal.config import settings
from portal.modules.platform.schemas import SmtpConfig

logger = logging.getLogger(__name__)


def check_smtp_connection(config: SmtpConfig, timeout: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Connect, authenticate and close. Returns (ok, error message)."""
    timeout = timeout or settings.smtp_test_timeout_sec
    try:
        if config.secure:
            client = smtplib.SMTP_SSL(config.host, config.port, timeout=timeout)
        else:
            client = smtplib.SMTP(config.host, config.port, timeout=timeout)
        with client as smtp:
            smtp.ehlo()
            if not config.secure and smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            if config.auth.user:
                smtp.login(config.auth.user, config.auth.pass_)
        return True, None
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"SMTP connection to {config.host}:{config.port} failed: {e}")
        return False, str(e) or e.__class__.__name__
