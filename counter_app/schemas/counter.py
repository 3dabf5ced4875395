from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

# (hour, pageviews)
ChartPoint = Tuple[int, int]


class CounterData(BaseModel):
    """Headline numbers for a site, all computed against the same "now" """
    pageviews_today: int = Field(0, ge=0)
    active_visitors: int = Field(0, ge=0)
    visitors_today: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True)


class ChartData(BaseModel):
    """Hour-by-hour pageviews for today (so far) and all of yesterday"""
    today: List[ChartPoint] = Field(default_factory=list)
    yesterday: List[ChartPoint] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
