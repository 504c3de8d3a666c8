import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import cache
from typing import Any, Optional

from google.cloud import pubsub_v1
from loguru import logger

from ..exceptions import JobNotificationTimeout, SubscriptionClosed

# Message attribute the DLP service sets to the name of the finished job
JOB_NAME_ATTRIBUTE = "DlpJobName"

# Seconds to wait for the streaming pull to shut down after cancelling it
SHUTDOWN_TIMEOUT = 10.0


@cache
def get_publisher() -> pubsub_v1.PublisherClient:
    return pubsub_v1.PublisherClient()


@cache
def get_subscriber() -> pubsub_v1.SubscriberClient:
    return pubsub_v1.SubscriberClient()


def topic_path(project: str, topic: str) -> str:
    return f"projects/{project}/topics/{topic}"


def subscription_path(project: str, subscription: str) -> str:
    return f"projects/{project}/subscriptions/{subscription}"


def verify_topic(publisher: pubsub_v1.PublisherClient, project: str, topic: str) -> str:
    """Fetches the topic so that a missing topic fails before a job is created.

    Raises `google.api_core.exceptions.NotFound` if the topic does not exist.
    """
    path = topic_path(project, topic)
    publisher.get_topic(request={"topic": path})
    logger.debug(f"Using topic {path}")
    return path


def wait_for_job_notification(
    subscriber: pubsub_v1.SubscriberClient,
    subscription: str,
    job_name: str,
    timeout: Optional[float] = None,
) -> str:
    """Blocks until the completion notification for `job_name` arrives.

    The message carrying the job's name is acknowledged. Every other message
    is negatively acknowledged so that it is redelivered to its rightful
    listener. The streaming pull is cancelled on return, and its shutdown is
    awaited so that no callback runs after this function has returned.

    Parameters
    ----------
    subscriber : `pubsub_v1.SubscriberClient`
        Client used to open the streaming pull.
    subscription : `str`
        Fully qualified subscription path.
    job_name : `str`
        Name of the DLP job to wait for.
    timeout : `Optional[float]`
        Seconds to wait. `None` waits indefinitely.

    Returns
    -------
    `str`
        The job name.

    Raises
    ------
    `JobNotificationTimeout`
        No matching message arrived within `timeout` seconds.
    `SubscriptionClosed`
        The streaming pull ended without an error before the job's message
        arrived.
    `Exception`
        Any error raised by the streaming pull itself.
    """
    finished: Future = Future()
    lock = threading.Lock()

    def callback(message: Any) -> None:
        attributes = message.attributes or {}
        with lock:
            if finished.done() or attributes.get(JOB_NAME_ATTRIBUTE) != job_name:
                logger.debug(f"Ignoring message {message.message_id}")
                message.nack()
                return
            message.ack()
            finished.set_result(job_name)
        logger.info(f"Received completion notification for {job_name}")

    def on_stream_done(future: Any) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            exc = SubscriptionClosed(subscription, job_name)
        with lock:
            if not finished.done():
                finished.set_exception(exc)

    streaming_pull = subscriber.subscribe(subscription, callback=callback)
    streaming_pull.add_done_callback(on_stream_done)
    logger.info(f"Listening on {subscription} for job {job_name}")
    try:
        return finished.result(timeout=timeout)
    except FutureTimeoutError:
        raise JobNotificationTimeout(job_name, timeout) from None
    finally:
        streaming_pull.cancel()
        try:
            streaming_pull.result(timeout=SHUTDOWN_TIMEOUT)
        except Exception as e:
            logger.debug(f"Streaming pull on {subscription} ended with: {e}")
