import time
from pathlib import Path
from typing import Optional, Union

from google.cloud import dlp_v2, pubsub_v1
from loguru import logger

from .config import AppConfig
from .exceptions import InvalidTarget
from .formatting import format_findings, format_job, print_lines
from .gcp.dlp import (
    build_content_request,
    build_job_request,
    byte_item,
    bytes_type_for,
    create_job,
    get_dlp_client,
    get_job,
    inspect_content,
    text_item,
)
from .gcp.pubsub import (
    get_publisher,
    get_subscriber,
    subscription_path,
    verify_topic,
    wait_for_job_notification,
)
from .models import Finding, InspectOptions, JobSummary, StorageTarget


def inspect_string(
    project: str,
    text: str,
    options: InspectOptions,
    client: Optional[dlp_v2.DlpServiceClient] = None,
) -> list[Finding]:
    """Inspects a string and prints its findings."""
    client = client or get_dlp_client()
    request = build_content_request(project, text_item(text), options)
    return _run_content_inspection(client, request, options)


def inspect_file(
    project: str,
    path: Union[str, Path],
    options: InspectOptions,
    client: Optional[dlp_v2.DlpServiceClient] = None,
) -> list[Finding]:
    """Inspects a local file (text, image or document) and prints its findings."""
    path = Path(path)
    if not path.is_file():
        raise InvalidTarget(f"File '{path}' not found.")
    bytes_type = bytes_type_for(path)
    logger.debug(f"Inspecting {path} as {bytes_type}")

    client = client or get_dlp_client()
    item = byte_item(path.read_bytes(), bytes_type)
    request = build_content_request(project, item, options)
    return _run_content_inspection(client, request, options)


def _run_content_inspection(
    client: dlp_v2.DlpServiceClient, request: dict, options: InspectOptions
) -> list[Finding]:
    response = inspect_content(client, request)
    findings = [Finding.from_proto(f) for f in response.result.findings]
    print_lines(format_findings(findings, include_quote=options.include_quote))
    return findings


def inspect_storage(
    calling_project: str,
    target: StorageTarget,
    topic: str,
    subscription: str,
    options: InspectOptions,
    timeout: Optional[float] = None,
    settle_delay: Optional[float] = None,
    dlp_client: Optional[dlp_v2.DlpServiceClient] = None,
    publisher: Optional[pubsub_v1.PublisherClient] = None,
    subscriber: Optional[pubsub_v1.SubscriberClient] = None,
) -> JobSummary:
    """Runs an inspection job over a storage target and prints its outcome.

    The job publishes to `topic` when it finishes. We listen on
    `subscription` (attached to that topic) for the message naming our job,
    then fetch the job's final record.

    Parameters
    ----------
    calling_project : `str`
        Project the job runs under. Owns the topic and the subscription.
    target : `StorageTarget`
        Cloud Storage file set, Datastore kind or BigQuery table.
    topic : `str`
        ID of the Pub/Sub topic the job notifies.
    subscription : `str`
        ID of a subscription to `topic`.
    options : `InspectOptions`
        What to look for.
    timeout : `Optional[float]`
        Seconds to wait for the notification. Defaults to `AppConfig.job_timeout`.
    settle_delay : `Optional[float]`
        Seconds to wait between the notification and fetching the job.
        Defaults to `AppConfig.settle_delay`.

    Returns
    -------
    `JobSummary`
        The job's terminal state and per-info-type finding counts.
    """
    config = AppConfig()
    if timeout is None:
        timeout = config.job_timeout
    if settle_delay is None:
        settle_delay = config.settle_delay

    dlp_client = dlp_client or get_dlp_client()
    publisher = publisher or get_publisher()
    subscriber = subscriber or get_subscriber()

    verify_topic(publisher, calling_project, topic)
    sub_path = subscription_path(calling_project, subscription)

    logger.info(f"Starting inspection job over {target.describe()}")
    request = build_job_request(calling_project, target, options, topic)
    job_name = create_job(dlp_client, request)

    wait_for_job_notification(subscriber, sub_path, job_name, timeout=timeout)

    if settle_delay:
        time.sleep(settle_delay)
    job = get_job(dlp_client, job_name)

    summary = JobSummary.from_proto(job)
    logger.debug(f"Job {summary.name} reported {summary.total_findings} finding(s)")
    print_lines(format_job(summary))
    return summary
