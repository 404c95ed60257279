from .tenancy import Store
from .inventory import Item, CurrentStock
from .documents import (
    StockSubmission,
    StockSubmissionRevision,
    TemperatureLog,
    TemperatureCheck,
    TemperatureCheckRevision,
)
from .auth import User, ROLE_ADMIN, ROLE_EMPLOYEE

__all__ = [
    'Store',
    'Item', 'CurrentStock',
    'StockSubmission', 'StockSubmissionRevision',
    'TemperatureLog', 'TemperatureCheck', 'TemperatureCheckRevision',
    'User', 'ROLE_ADMIN', 'ROLE_EMPLOYEE',
]
