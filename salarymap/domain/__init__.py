"""Domain records and errors shared by the services."""

from .errors import DatasetLoadError, TopologyError, UnknownStateError
from .records import County, CountyIncome, CountyValue, SalaryRecord, USStateName

__all__ = [
    "County",
    "CountyIncome",
    "CountyValue",
    "DatasetLoadError",
    "SalaryRecord",
    "TopologyError",
    "USStateName",
    "UnknownStateError",
]
