"""CampaignSimulator — simulated mass-send progress.

A sending campaign gets one background task that bumps `sent` by one per
tick until it reaches the contact count, then marks the campaign completed.
No message is dispatched anywhere.
"""

import asyncio
import logging
import uuid

from config.settings import settings
from src.crm_common.enums import CampaignStatus
from src.crm_common.errors import (
    CampaignNotFoundError,
    InvalidCampaignError,
    InvalidCampaignStateError,
)
from src.crm_messaging.domain.models import Campaign

logger = logging.getLogger(__name__)

_STARTABLE = {CampaignStatus.DRAFT.value, CampaignStatus.PAUSED.value}
_FINAL = {CampaignStatus.COMPLETED.value, CampaignStatus.FAILED.value}


class CampaignSimulator:
    def __init__(self, tick_seconds: float | None = None) -> None:
        self._tick = settings.CAMPAIGN_TICK_SECONDS if tick_seconds is None else tick_seconds
        self._campaigns: dict[str, Campaign] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def list_campaigns(self) -> list[Campaign]:
        return list(self._campaigns.values())

    def get(self, campaign_id: str) -> Campaign:
        campaign = self._campaigns.get(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(campaign_id)
        return campaign

    def create(
        self,
        name: str,
        message: str,
        contacts: list[str],
        interval_min: int = 5,
        interval_max: int = 15,
    ) -> Campaign:
        if not name.strip():
            raise InvalidCampaignError("name is required")
        if not message.strip():
            raise InvalidCampaignError("message is required")
        targets = [c.strip() for c in contacts if c.strip()]
        if not targets:
            raise InvalidCampaignError("at least one contact is required")
        if interval_min < 0 or interval_min > interval_max:
            raise InvalidCampaignError("interval_min must be between 0 and interval_max")

        campaign = Campaign(
            id=uuid.uuid4().hex,
            name=name.strip(),
            message=message,
            contacts=targets,
            status=CampaignStatus.DRAFT.value,
            interval_min=interval_min,
            interval_max=interval_max,
        )
        self._campaigns[campaign.id] = campaign
        logger.info("Campaign %s created with %d contacts", campaign.id, campaign.total)
        return campaign

    def start(self, campaign_id: str) -> Campaign:
        """draft/paused -> sending. Must be called from inside a running event loop."""
        campaign = self.get(campaign_id)
        if campaign.status not in _STARTABLE:
            raise InvalidCampaignStateError(campaign_id, campaign.status, "start")
        campaign.status = CampaignStatus.SENDING.value
        self._tasks[campaign_id] = asyncio.get_running_loop().create_task(
            self._run(campaign), name=f"campaign-{campaign_id}"
        )
        logger.info("Campaign %s started at %d/%d", campaign_id, campaign.sent, campaign.total)
        return campaign

    def pause(self, campaign_id: str) -> Campaign:
        campaign = self.get(campaign_id)
        if campaign.status != CampaignStatus.SENDING.value:
            raise InvalidCampaignStateError(campaign_id, campaign.status, "pause")
        campaign.status = CampaignStatus.PAUSED.value
        self._cancel_task(campaign_id)
        logger.info("Campaign %s paused at %d/%d", campaign_id, campaign.sent, campaign.total)
        return campaign

    def stop(self, campaign_id: str) -> Campaign:
        campaign = self.get(campaign_id)
        if campaign.status in _FINAL:
            raise InvalidCampaignStateError(campaign_id, campaign.status, "stop")
        campaign.status = CampaignStatus.COMPLETED.value
        self._cancel_task(campaign_id)
        logger.info("Campaign %s stopped at %d/%d", campaign_id, campaign.sent, campaign.total)
        return campaign

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, campaign: Campaign) -> None:
        while campaign.status == CampaignStatus.SENDING.value and campaign.sent < campaign.total:
            await asyncio.sleep(self._tick)
            if campaign.status != CampaignStatus.SENDING.value:
                return
            campaign.sent = min(campaign.sent + 1, campaign.total)
        if campaign.status == CampaignStatus.SENDING.value:
            campaign.status = CampaignStatus.COMPLETED.value
            logger.info("Campaign %s completed (%d sent)", campaign.id, campaign.sent)
        self._tasks.pop(campaign.id, None)

    def _cancel_task(self, campaign_id: str) -> None:
        task = self._tasks.pop(campaign_id, None)
        if task is not None:
            task.cancel()
