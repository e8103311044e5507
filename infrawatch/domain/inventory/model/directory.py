from infrawatch.domain.shared.model.value import ValueObject


class DirectoryEntry(ValueObject):
    """One leaf record from the directory service."""

    path: str
    value: str = ""


class DirectoryPage(ValueObject):
    """One page of a paginated listing."""

    entries: list[DirectoryEntry] = []
    next_token: str | None = None  # Continuation token, None on the last page
