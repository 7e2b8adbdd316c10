"""Status publisher module for pub/sub event publishing."""

import logging
from typing import Callable
from pubsub import pub
from ..models.ui import PracticeStatus

logger = logging.getLogger(__name__)

PRACTICE_STATUS_TOPIC = "practice.status"


class StatusPublisher:
    """Publishes practice status snapshots using pubsub.pub."""

    def __init__(self, topic: str = PRACTICE_STATUS_TOPIC):
        """Initialize status publisher.

        Args:
            topic: Pub/sub topic name for status snapshots
        """
        self.topic = topic
        logger.info(f"StatusPublisher initialized with topic: {topic}")

    def publish_status(self, status: PracticeStatus) -> None:
        """Publish a status snapshot to the pub/sub topic.

        Args:
            status: PracticeStatus to publish
        """
        pub.sendMessage(self.topic, status=status)
        logger.debug(f"Published status: {status.state.value} ({status.status_message})")

    def get_callback(self) -> Callable[[PracticeStatus], None]:
        """Get callback function for PracticeSession to use."""
        return self.publish_status
