"""DI provider for the SSM directory client."""

from collections.abc import Iterable
from typing import Any, NewType

import boto3
from botocore.config import Config as BotoConfig
from dishka import Provider, provide

from infrawatch.config import Config
from infrawatch.domain.inventory.port.directory import DirectoryClient
from infrawatch.infrastructure.ssm.client import SsmDirectoryClient
from infrawatch.util.di.scope import Scope

SsmClient = NewType("SsmClient", Any)

# Retries are handled by PagedFetcher
_BOTO_CONFIG = BotoConfig(retries={"max_attempts": 1, "mode": "standard"})


class SsmProvider(Provider):
    @provide(scope=Scope.APP)
    def get_ssm_client(self, config: Config) -> Iterable[SsmClient]:
        client = boto3.client("ssm", region_name=config.aws.region, config=_BOTO_CONFIG)
        yield SsmClient(client)
        client.close()

    @provide(scope=Scope.APP)
    def get_directory_client(self, client: SsmClient) -> DirectoryClient:
        return SsmDirectoryClient(client)
