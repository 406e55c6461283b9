"""
sink.py — Record Sinks for Alerts, Recommendations and Predictions
===================================================================

The decision pipeline hands every record it produces to a sink. Sinks
are insert-only and fire-and-forget: a failing sink logs the problem and
never blocks or fails the decision cycle.

Record kinds:
    alert, feeding_recommendation, aerator_recommendation, prediction

MqttSink publishes each record as JSON on  <prefix>/<kind>  (QoS 1),
where the persistence/display services subscribe.
"""

import json
import logging

import paho.mqtt.client as mqtt

from . import config

logger = logging.getLogger("analytics.sink")

RECORD_KINDS = (
    "alert",
    "feeding_recommendation",
    "aerator_recommendation",
    "prediction",
)


class RecordSink:
    """Base sink: validates the kind and forwards to _insert()."""

    def publish(self, kind: str, record) -> None:
        """
        Insert one record.

        Raises:
            ValueError: If kind is not one of RECORD_KINDS.
        """
        if kind not in RECORD_KINDS:
            raise ValueError(f"Unknown record kind '{kind}'")
        self._insert(kind, record.to_dict())

    def _insert(self, kind: str, payload: dict) -> None:
        raise NotImplementedError


class MemorySink(RecordSink):
    """Keeps records in process, grouped by kind."""

    def __init__(self):
        self.records = {kind: [] for kind in RECORD_KINDS}

    def _insert(self, kind: str, payload: dict) -> None:
        self.records[kind].append(payload)

    def count(self, kind: str = None) -> int:
        if kind is not None:
            return len(self.records[kind])
        return sum(len(items) for items in self.records.values())


class MqttSink(RecordSink):
    """
    Publishes records to an MQTT broker.

    The client connects lazily on the first publish; if the broker is
    unreachable the record is dropped with an error log and the next
    publish retries the connection.
    """

    def __init__(self, host: str = None, port: int = None,
                 topic_prefix: str = None, client_id: str = None):
        self.host = host or config.MQTT_BROKER_HOST
        self.port = port or config.MQTT_BROKER_PORT
        self.topic_prefix = topic_prefix or config.MQTT_TOPIC_PREFIX
        self.client_id = client_id or config.MQTT_CLIENT_ID
        self._client = None

    def _get_client(self):
        if self._client is not None:
            return self._client

        try:
            client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=self.client_id)
            client.connect(self.host, self.port, 60)
            client.loop_start()
        except Exception as e:
            logger.error(f"MQTT connection to {self.host}:{self.port} failed: {e}")
            return None

        self._client = client
        logger.info(f"MQTT client connected to {self.host}:{self.port}")
        return client

    def topic(self, kind: str) -> str:
        return f"{self.topic_prefix}/{kind}"

    def _insert(self, kind: str, payload: dict) -> None:
        client = self._get_client()
        if client is None:
            logger.warning(f"Dropping {kind} record, no MQTT client")
            return

        try:
            client.publish(self.topic(kind), json.dumps(payload), qos=1)
            logger.debug(f"Published {kind} to {self.topic(kind)}")
        except Exception as e:
            logger.error(f"Failed to publish {kind} record: {e}")

    def close(self) -> None:
        if self._client is not None:
            self._client.loop_stop()
            self._client.disconnect()
            self._client = None
