from typing import Optional

import httpx

from regionchat.core.config import settings
from regionchat.core.log_config import logger


class SmsNotificationService:
    """Sends SMS through the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: Optional[str] = settings.twilio_account_sid,
        auth_token: Optional[str] = settings.twilio_auth_token,
        from_number: Optional[str] = settings.twilio_phone_number,
        api_base: str = settings.twilio_api_base,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def messages_url(self) -> str:
        return f"{self.api_base}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=10.0)
        return self._client

    async def notify(self, phone_number: str, message: str) -> bool:
        """
        Send one SMS.

        Returns:
            True if the provider accepted the message, False otherwise. Never raises.
        """
        if not self.configured:
            logger.warning("SMS notification skipped: Twilio credentials are not configured.")
            return False
        if not phone_number:
            return False

        try:
            response = await self._get_client().post(
                self.messages_url,
                auth=(self.account_sid, self.auth_token),
                data={"To": phone_number, "From": self.from_number, "Body": message},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send SMS to {phone_number}: {e}")
            return False

        logger.info(f"SMS sent to {phone_number}.")
        return True

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
