# src/jetworker/connection/streams.py
"""JetStream stream helpers."""

from typing import Any, Dict, Optional, Sequence

import nats
from loguru import logger
from nats.js import JetStreamContext

from ..exceptions import JetworkerConnectionError


async def ensure_stream(
    js: JetStreamContext,
    stream_name: str,
    subjects: Optional[Sequence[str]] = None,
    **stream_options: Any,
) -> None:
    """
    Ensures a JetStream stream exists, creating it when missing.

    Streams default to file storage with work-queue retention; any
    ``stream_options`` (e.g. ``max_age``, ``max_msgs``, ``retention``) are
    passed through to the StreamConfig.
    """
    if not subjects:
        subjects = [f"{stream_name}.*"]

    try:
        await js.stream_info(stream_name)
        logger.debug(f"Stream '{stream_name}' already exists.")
    except nats.js.errors.NotFoundError:
        logger.info(f"Stream '{stream_name}' not found, creating...")
        config: Dict[str, Any] = {
            "storage": nats.js.api.StorageType.FILE,
            "retention": nats.js.api.RetentionPolicy.WORK_QUEUE,
        }
        config.update(stream_options)
        try:
            await js.add_stream(name=stream_name, subjects=list(subjects), **config)
        except Exception as e:
            raise JetworkerConnectionError(f"Failed to create stream '{stream_name}': {e}") from e
        logger.info(f"Stream '{stream_name}' created with subjects {list(subjects)}.")
    except Exception as e:
        raise JetworkerConnectionError(f"Failed to ensure stream '{stream_name}': {e}") from e
