"""
Data models for tracking events on the queue.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, TypeAdapter


class _QueuedEvent(BaseModel):
    site_id: str = Field(..., min_length=1, description="Site token")

    # Set by the queue on consume, used for acknowledgment
    message_id: Optional[str] = Field(None, exclude=True)


class PageviewEvent(_QueuedEvent):
    """
    A page was viewed.

    Carries the site's resolved zone so the worker can bucket the hit
    into the right local hour without looking the site up.
    """
    kind: Literal["pageview"] = "pageview"
    time_zone: str = Field(..., description="Canonical IANA zone id of the site")
    timestamp: AwareDatetime = Field(..., description="When the pageview happened (aware)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "kind": "pageview",
                "site_id": "4d73838feca02647cd000001",
                "time_zone": "Europe/Helsinki",
                "timestamp": "2011-06-08T12:00:00+00:00"
            }
        }
    )


class VisitEvent(_QueuedEvent):
    """A visit ping (the tracker script is still open on a page)"""
    kind: Literal["visit"] = "visit"
    timestamp: AwareDatetime = Field(..., description="When the ping was sent (aware)")


class VisitorEvent(_QueuedEvent):
    """A visitor was seen on a site-local calendar day"""
    kind: Literal["visitor"] = "visitor"
    visitor_id: str = Field(..., min_length=1, description="Opaque visitor identifier")
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Site-local date, YYYY-MM-DD")


TrackingEvent = Annotated[
    Union[PageviewEvent, VisitEvent, VisitorEvent],
    Field(discriminator="kind")
]

tracking_event_adapter = TypeAdapter(TrackingEvent)
