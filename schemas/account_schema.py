from pydantic import BaseModel


class AccountDetailsRequest(BaseModel):
    session: str
    # Comma separated subset of "email", "admin", "subscription_policy"
    details: str = ""


class SubscriptionRequest(BaseModel):
    session: str
    subscription: str
