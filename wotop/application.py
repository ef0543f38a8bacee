"""Application instance metadata."""

from __future__ import annotations

import secrets
import string
from dataclasses import asdict, dataclass, field
from datetime import datetime

_ID_ALPHABET = string.ascii_letters + string.digits
START_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def generate_id(length: int) -> str:
    """Return a random alphanumeric identifier of the given length."""
    if length < 1:
        raise ValueError(f"identifier length must be positive, got {length}")
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class ApplicationData:
    """Metadata describing one running application instance."""

    app_name: str
    app_instance_id: str = field(default_factory=lambda: generate_id(4))
    start_time: str = field(
        default_factory=lambda: datetime.now().strftime(START_TIME_FORMAT)
    )

    def to_dict(self) -> dict[str, str]:
        """Return the metadata as a JSON-ready dictionary."""
        return asdict(self)


def new_application_data(app_name: str) -> ApplicationData:
    """Create metadata for a new instance with a fresh id and the current time."""
    return ApplicationData(
        app_name=app_name,
        app_instance_id=generate_id(4),
        start_time=datetime.now().strftime(START_TIME_FORMAT),
    )