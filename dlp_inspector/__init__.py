__version__ = "0.1.0"


from .inspection import inspect_file, inspect_storage, inspect_string
from .models import (
    BigQueryTarget,
    CloudStorageTarget,
    DatastoreTarget,
    InspectOptions,
    JobSummary,
    Likelihood,
)
