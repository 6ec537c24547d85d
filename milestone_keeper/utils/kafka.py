"""Kafka event publishing for milestone runs."""

import os
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from kafka import KafkaProducer

from milestone_keeper.processing.models import ProcessResult

logger = logging.getLogger(__name__)

EVENT_TOPIC = "milestone-events"


class KafkaEventLogger:
    """
    Event logger for real-time visibility into milestone runs.
    Connects lazily and never fails the caller if Kafka is unavailable.
    """

    def __init__(self):
        self.producer = None
        self._lock = threading.Lock()
        self.topic = os.getenv("KAFKA_EVENT_TOPIC", EVENT_TOPIC)
        self.server_name = os.getenv("SERVER_NAME", "MILESTONE_KEEPER")

    def _initialize_producer(self) -> bool:
        """Initialize KafkaProducer for event logging."""
        bootstrap_servers = os.getenv("KAFKA_BOOTSTRAP_SERVERS")
        if not bootstrap_servers:
            logger.debug("KAFKA_BOOTSTRAP_SERVERS not set. Event logging disabled.")
            return False

        try:
            logger.info(f"Initializing Event Logger for topic '{self.topic}'...")
            producer_config = {
                "bootstrap_servers": bootstrap_servers.split(","),
                "value_serializer": lambda v: json.dumps(v, default=str).encode(
                    "utf-8"
                ),
                "retries": 3,
                "request_timeout_ms": 15000,
                "acks": 1,
                "linger_ms": 10,
            }
            if os.getenv("KAFKA_USE_SSL", "true").lower() == "true":
                producer_config["security_protocol"] = "SSL"

            self.producer = KafkaProducer(**producer_config)
            logger.info(f"Event Logger connected successfully. Topic: '{self.topic}'")
            return True
        except Exception as e:
            logger.error(f"Could not initialize Event Logger: {e}", exc_info=True)
            self.producer = None
            return False

    def _create_base_event(self, message: str, event_type: str) -> dict:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": message,
            "server_name": self.server_name,
            "type": event_type,
        }

    def _send_event(self, event: dict):
        if not self.producer:
            with self._lock:
                if not self.producer:
                    self._initialize_producer()

        if not self.producer:
            return

        try:
            self.producer.send(self.topic, value=event)
        except Exception as e:
            logger.error(f"Error sending event to Kafka: {e}")

    def log_event(self, message: str):
        """Log a general event."""
        self._send_event(self._create_base_event(message, "milestone-event"))

    def log_warning(self, message: str):
        self._send_event(self._create_base_event(message, "milestone-warning"))

    def log_error(self, message: str, error_details: Optional[str] = None):
        """Log an error event."""
        if error_details:
            message = f"{message}: {error_details}"
        self._send_event(self._create_base_event(message, "milestone-error"))

    def log_run_result(self, repository: str, result: ProcessResult, debug_only: bool = False):
        """Publish one event per closed/created milestone plus a summary."""
        verb = "Would" if debug_only else "Did"
        for milestone in result.closed_milestones:
            self.log_event(f"{verb} close milestone #{milestone.number} - {milestone.title} in {repository}")
        for milestone in result.milestones_to_add:
            self.log_event(f"{verb} create milestone {milestone.title} due {milestone.due_on} in {repository}")

        if result.budget_exhausted:
            self.log_warning(f"Operation budget exhausted while processing {repository}")
        self.log_event(
            f"Processed {repository}: {len(result.closed_milestones)} closed, "
            f"{len(result.milestones_to_add)} to add, {result.operations_left} operations left"
        )

    def close(self):
        """Close the event logger producer."""
        if self.producer:
            logger.info("Closing Event Logger Kafka producer...")
            self.producer.flush(timeout=5)
            self.producer.close()
            logger.info("Event Logger closed.")


def create_event_logger() -> KafkaEventLogger:
    """Create a new event logger instance."""
    return KafkaEventLogger()
