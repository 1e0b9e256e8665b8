"""Transport configuration model."""

from pydantic import BaseModel, Field


class TransportConfig(BaseModel):
    """Configuration for the HTTP transport.

    Attributes:
        max_workers: Concurrent in-flight requests per transport
        follow_redirects: Follow 3xx responses (unfollowed ones fail as client errors)
        expected_content_type: Media type successful responses must declare
    """

    max_workers: int = Field(4, gt=0, le=64)
    follow_redirects: bool = True
    expected_content_type: str = "application/json"
