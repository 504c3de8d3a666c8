import os

os.environ.setdefault("GCLOUD_PROJECT", "my-project")
os.environ.setdefault("DLP_SETTLE_DELAY", "0")
os.environ.setdefault("DLP_JOB_TIMEOUT", "5")

from unittest.mock import Mock

import pytest
from google.cloud import dlp_v2

from dlp_inspector.models import InspectOptions

from .fakes import JOB_NAME


@pytest.fixture
def options() -> InspectOptions:
    return InspectOptions()


@pytest.fixture
def dlp_job() -> dlp_v2.DlpJob:
    return dlp_v2.DlpJob(
        name=JOB_NAME,
        state=dlp_v2.DlpJob.JobState.DONE,
        inspect_details=dlp_v2.InspectDataSourceDetails(
            result=dlp_v2.InspectDataSourceDetails.Result(
                info_type_stats=[
                    dlp_v2.InfoTypeStats(
                        info_type=dlp_v2.InfoType(name="EMAIL_ADDRESS"), count=3
                    ),
                    dlp_v2.InfoTypeStats(
                        info_type=dlp_v2.InfoType(name="PHONE_NUMBER"), count=1
                    ),
                ]
            )
        ),
    )


@pytest.fixture
def inspect_response() -> dlp_v2.InspectContentResponse:
    return dlp_v2.InspectContentResponse(
        result=dlp_v2.InspectResult(
            findings=[
                dlp_v2.Finding(
                    quote="gary@example.com",
                    info_type=dlp_v2.InfoType(name="EMAIL_ADDRESS"),
                    likelihood=dlp_v2.Likelihood.LIKELY,
                )
            ]
        )
    )


@pytest.fixture
def dlp_client(dlp_job: dlp_v2.DlpJob, inspect_response) -> Mock:
    client = Mock(spec=dlp_v2.DlpServiceClient)
    client.create_dlp_job.return_value = dlp_v2.DlpJob(name=JOB_NAME)
    client.get_dlp_job.return_value = dlp_job
    client.inspect_content.return_value = inspect_response
    return client
