"""
AWS IoT device shadow access.

Only the dashboard pump relay writes shadows from this service; devices and
the IoT bridge functions own everything else in the shadow document.
"""
import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from plantpal.config import settings

logger = logging.getLogger(__name__)


class ShadowUpdateError(Exception):
    pass


class ShadowClient:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        """Lazy initialization of IoT Data client."""
        if self._client is None:
            kwargs = {"region_name": settings.AWS_REGION}
            if settings.AWS_IOT_ENDPOINT:
                kwargs["endpoint_url"] = f"https://{settings.AWS_IOT_ENDPOINT}"
            self._client = boto3.client("iot-data", **kwargs)
        return self._client

    def update_shadow(self, thing_name: str, desired: dict, reported: dict | None = None) -> dict:
        state = {"desired": desired}
        if reported is not None:
            state["reported"] = reported

        try:
            response = self.client.update_thing_shadow(
                thingName=thing_name,
                payload=json.dumps({"state": state})
            )
            return json.loads(response["payload"].read())
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Shadow update for {thing_name} failed: {e}")
            raise ShadowUpdateError("Failed to update device shadow.") from e
