from datetime import datetime

from infrawatch.domain.shared.model.value import Document


class ServiceInfo(Document):
    code: str
    name: str


class ServicesDocument(Document):
    """Contents of services.json: service codes with display names."""

    count: int
    services: list[ServiceInfo]
    source: str = "ssm"
    timestamp: datetime

    def names(self) -> dict[str, str]:
        return {s.code: s.name for s in self.services}


class ServiceCodes(Document):
    """Services section of a snapshot, codes only for compactness."""

    count: int
    services: list[str]
    source: str = "ssm"
    timestamp: datetime

    @classmethod
    def from_services(cls, document: ServicesDocument) -> "ServiceCodes":
        return cls(
            count=document.count,
            services=[s.code for s in document.services],
            source=document.source,
            timestamp=document.timestamp,
        )
