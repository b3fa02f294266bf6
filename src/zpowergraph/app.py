"""Application wiring: store, tracker, MQTT runtime, ingestion loop."""

from __future__ import annotations

import asyncio
import logging
import time

from zpowergraph._mqtt import MqttRuntime, MqttSettings, QueueItem
from zpowergraph.config import ZPowerGraphConfig
from zpowergraph.ingestion.loop import IngestionLoop
from zpowergraph.state.liveness import LivenessTracker
from zpowergraph.storage import ReadingStore

_logger = logging.getLogger(__name__)


async def run(config: ZPowerGraphConfig) -> None:
    """Run the ingestion loop for *config* until cancelled.

    Raises
    ------
    StorageError
        When the database cannot be opened or written.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[QueueItem] = asyncio.Queue()

    with ReadingStore(config.db_path) as store:
        store.ensure_schema()

        tracker = LivenessTracker()
        tracker.initialize(config.friendly_names, int(time.time()))

        runtime = MqttRuntime(loop=loop, queue=queue, logger=logging.getLogger("zpowergraph.mqtt"))
        settings = MqttSettings.from_config(config)
        await loop.run_in_executor(None, runtime.start, settings)
        _logger.info(
            "Listening on %s:%s for %d device(s) under %s/",
            settings.host,
            settings.port,
            len(settings.topics),
            config.topic,
        )
        try:
            ingestion = IngestionLoop(
                tracker,
                store,
                queue,
                staleness_threshold=config.staleness_threshold,
                poll_interval=config.poll_interval,
            )
            await ingestion.run_forever()
        finally:
            await loop.run_in_executor(None, runtime.stop)
