from pydantic import BaseModel, ConfigDict


class CheckoutSession(BaseModel):
    model_config = ConfigDict(frozen=True)
    url: str
    id: str = ""
