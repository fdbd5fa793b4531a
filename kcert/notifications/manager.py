"""Notification dispatcher for renewal results.

NotificationChannel    -- ABC every channel must implement.
NotificationDispatcher -- Delivers a RenewalResult to every registered
                          channel and reports failure to the caller.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import structlog

from kcert.errors import NotificationError
from kcert.models.renewal import RenewalResult
from kcert.observability.metrics import notifications_total

_log = structlog.get_logger(component="notifications.manager")


class NotificationChannel(ABC):
    """Abstract base class for all notification channels.

    Every concrete channel must implement ``send``, which should not raise
    for delivery problems — return ``False`` instead.
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Human-readable channel identifier used in metrics and logs."""

    @abstractmethod
    async def send(self, result: RenewalResult) -> bool:
        """Deliver *result* via this channel.

        Returns:
            True  -- message accepted by the remote endpoint.
            False -- delivery failed (already logged inside implementation).
        """


class NotificationDispatcher:
    """Sends a renewal result to every registered channel.

    Unlike a fire-and-forget alert fan-out, ``notify`` is awaited by the
    renewal evaluator: channels are delivered concurrently and, once all
    have finished, a NotificationError is raised if any of them failed.

    Args:
        channels:          Channels to deliver to.
        notify_on_success: When False, only failed renewals are reported.
    """

    def __init__(self, channels: list[NotificationChannel], notify_on_success: bool = True) -> None:
        self._channels = channels
        self._notify_on_success = notify_on_success

    @property
    def channel_names(self) -> list[str]:
        return [channel.channel_name for channel in self._channels]

    async def notify(self, result: RenewalResult) -> None:
        """Deliver *result* to all channels.

        Raises:
            NotificationError: one or more channels did not deliver.
        """
        if not self._channels:
            _log.debug(
                "notification_skipped_no_channels",
                namespace=result.namespace,
                ingress=result.ingress_name,
            )
            return
        if result.success and not self._notify_on_success:
            _log.debug(
                "notification_skipped_success",
                namespace=result.namespace,
                ingress=result.ingress_name,
            )
            return

        outcomes = await asyncio.gather(*(self._send_one(channel, result) for channel in self._channels))
        failed = [channel.channel_name for channel, ok in zip(self._channels, outcomes, strict=True) if not ok]
        if failed:
            raise NotificationError(failed)

    async def _send_one(self, channel: NotificationChannel, result: RenewalResult) -> bool:
        """Deliver to a single channel, recording metrics regardless of outcome."""
        try:
            success = await channel.send(result)
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "notification_channel_unexpected_error",
                channel=channel.channel_name,
                namespace=result.namespace,
                ingress=result.ingress_name,
                error=str(exc),
            )
            success = False

        label = "true" if success else "false"
        notifications_total.labels(channel=channel.channel_name, success=label).inc()

        if success:
            _log.info(
                "notification_sent",
                channel=channel.channel_name,
                namespace=result.namespace,
                ingress=result.ingress_name,
                renewal_success=result.success,
            )
        else:
            _log.warning(
                "notification_failed",
                channel=channel.channel_name,
                namespace=result.namespace,
                ingress=result.ingress_name,
            )
        return success
