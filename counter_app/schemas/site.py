from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SiteRef(BaseModel):
    """
    What the host tells the counter about a site.

    The site record itself (name, owner, token generation, mapping a
    human zone name like "Helsinki" to "Europe/Helsinki") lives in the
    host application; the counter only needs the token and the canonical
    zone id.
    """
    site_id: str = Field(..., min_length=1, description="Opaque site token")
    time_zone: str = Field(..., description="Canonical IANA zone id, e.g. Europe/Helsinki")

    model_config = ConfigDict(frozen=True)

    @field_validator("time_zone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value

    @property
    def tz(self) -> ZoneInfo:
        # ZoneInfo caches instances per key
        return ZoneInfo(self.time_zone)
