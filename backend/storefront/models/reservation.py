from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Reservation(BaseModel):
    """A soft hold on one unit of `catalog_id`. Inert once `expires_at` has passed."""

    model_config = ConfigDict(frozen=True)
    catalog_id: str
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now
