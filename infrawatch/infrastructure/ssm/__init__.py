from infrawatch.infrastructure.ssm.client import SsmDirectoryClient
from infrawatch.infrastructure.ssm.di import SsmProvider

__all__ = ["SsmDirectoryClient", "SsmProvider"]
