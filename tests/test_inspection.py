from pathlib import Path
from unittest.mock import Mock

import pytest
from google.api_core.exceptions import NotFound
from google.cloud import dlp_v2
from pytest_mock import MockerFixture

from dlp_inspector.exceptions import InvalidTarget, JobNotificationTimeout
from dlp_inspector.gcp.pubsub import JOB_NAME_ATTRIBUTE
from dlp_inspector.inspection import inspect_file, inspect_storage, inspect_string
from dlp_inspector.models import (
    BigQueryTarget,
    CloudStorageTarget,
    DatastoreTarget,
    InspectOptions,
)
from tests.fakes import JOB_NAME, FakeMessage, FakeSubscriber


def test_inspect_string(dlp_client: Mock, options: InspectOptions, capsys) -> None:
    findings = inspect_string("my-project", "My email is gary@example.com", options, dlp_client)

    request = dlp_client.inspect_content.call_args.kwargs["request"]
    assert request["parent"] == "projects/my-project"
    assert request["item"] == {"value": "My email is gary@example.com"}
    assert [f.info_type for f in findings] == ["EMAIL_ADDRESS"]

    out = capsys.readouterr().out.splitlines()
    assert out == [
        "Findings: ",
        "\tQuote: gary@example.com",
        "\tInfo type: EMAIL_ADDRESS",
        "\tLikelihood: LIKELY",
    ]


def test_inspect_string_no_findings(
    dlp_client: Mock, options: InspectOptions, capsys
) -> None:
    dlp_client.inspect_content.return_value = dlp_v2.InspectContentResponse()
    assert inspect_string("my-project", "nothing here", options, dlp_client) == []
    assert capsys.readouterr().out == "Findings: None\n"


def test_inspect_file(dlp_client: Mock, options: InspectOptions, tmp_path: Path) -> None:
    image = tmp_path / "image.png"
    image.write_bytes(b"\x89PNG\r\n")

    findings = inspect_file("my-project", image, options, dlp_client)

    request = dlp_client.inspect_content.call_args.kwargs["request"]
    byte_item = request["item"]["byte_item"]
    assert byte_item["type_"] == dlp_v2.ByteContentItem.BytesType.IMAGE_PNG
    assert byte_item["data"] == b"\x89PNG\r\n"
    assert len(findings) == 1


def test_inspect_file_missing(dlp_client: Mock, options: InspectOptions, tmp_path: Path) -> None:
    with pytest.raises(InvalidTarget):
        inspect_file("my-project", tmp_path / "missing.txt", options, dlp_client)
    dlp_client.inspect_content.assert_not_called()


def _completed_subscriber() -> FakeSubscriber:
    return FakeSubscriber(
        [
            FakeMessage({JOB_NAME_ATTRIBUTE: "projects/my-project/dlpJobs/other"}, "1"),
            FakeMessage({JOB_NAME_ATTRIBUTE: JOB_NAME}, "2"),
        ]
    )


@pytest.mark.parametrize(
    "target,storage_key",
    [
        (CloudStorageTarget(bucket="my-bucket", file="my-file.txt"), "cloud_storage_options"),
        (DatastoreTarget(project="data-project", kind="Person"), "datastore_options"),
        (
            BigQueryTarget(project="data-project", dataset="ds", table="t"),
            "big_query_options",
        ),
    ],
)
def test_inspect_storage(
    target, storage_key: str, dlp_client: Mock, options: InspectOptions, capsys
) -> None:
    publisher = Mock()
    subscriber = _completed_subscriber()

    summary = inspect_storage(
        "my-project",
        target,
        "my-topic",
        "my-sub",
        options,
        timeout=1,
        settle_delay=0,
        dlp_client=dlp_client,
        publisher=publisher,
        subscriber=subscriber,
    )

    publisher.get_topic.assert_called_once_with(
        request={"topic": "projects/my-project/topics/my-topic"}
    )
    request = dlp_client.create_dlp_job.call_args.kwargs["request"]
    assert storage_key in request["inspect_job"]["storage_config"]
    assert subscriber.subscriptions == ["projects/my-project/subscriptions/my-sub"]
    dlp_client.get_dlp_job.assert_called_once_with(request={"name": JOB_NAME})

    assert summary.state == "DONE"
    assert capsys.readouterr().out.splitlines() == [
        f"Job {JOB_NAME} status: DONE",
        "  Found 3 instance(s) of infoType EMAIL_ADDRESS.",
        "  Found 1 instance(s) of infoType PHONE_NUMBER.",
    ]


def test_inspect_storage_no_findings(
    dlp_client: Mock, options: InspectOptions, capsys
) -> None:
    dlp_client.get_dlp_job.return_value = dlp_v2.DlpJob(
        name=JOB_NAME, state=dlp_v2.DlpJob.JobState.DONE
    )
    inspect_storage(
        "my-project",
        CloudStorageTarget(bucket="b", file="f"),
        "my-topic",
        "my-sub",
        options,
        settle_delay=0,
        dlp_client=dlp_client,
        publisher=Mock(),
        subscriber=_completed_subscriber(),
    )
    assert capsys.readouterr().out.splitlines()[-1] == "No findings."


def test_inspect_storage_settle_delay(
    dlp_client: Mock, options: InspectOptions, mocker: MockerFixture
) -> None:
    sleep = mocker.patch("dlp_inspector.inspection.time.sleep")
    inspect_storage(
        "my-project",
        CloudStorageTarget(bucket="b", file="f"),
        "my-topic",
        "my-sub",
        options,
        settle_delay=0.5,
        dlp_client=dlp_client,
        publisher=Mock(),
        subscriber=_completed_subscriber(),
    )
    sleep.assert_called_once_with(0.5)


def test_inspect_storage_missing_topic(dlp_client: Mock, options: InspectOptions) -> None:
    publisher = Mock()
    publisher.get_topic.side_effect = NotFound("Resource not found")
    with pytest.raises(NotFound):
        inspect_storage(
            "my-project",
            CloudStorageTarget(bucket="b", file="f"),
            "missing-topic",
            "my-sub",
            options,
            dlp_client=dlp_client,
            publisher=publisher,
            subscriber=FakeSubscriber(),
        )
    dlp_client.create_dlp_job.assert_not_called()


def test_inspect_storage_timeout(dlp_client: Mock, options: InspectOptions) -> None:
    with pytest.raises(JobNotificationTimeout):
        inspect_storage(
            "my-project",
            CloudStorageTarget(bucket="b", file="f"),
            "my-topic",
            "my-sub",
            options,
            timeout=0.01,
            dlp_client=dlp_client,
            publisher=Mock(),
            subscriber=FakeSubscriber(),
        )
    dlp_client.get_dlp_job.assert_not_called()
